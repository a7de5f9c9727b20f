"""Checks on the status code."""

from typing import TYPE_CHECKING, Literal

from pydantic import Field

from reqcheck.checks.base import Check, response_of
from reqcheck.checks.registry import register_check
from reqcheck.errors import CheckFailure

if TYPE_CHECKING:
    from reqcheck.testcase import Test


@register_check
class StatusCode(Check):
    """The status code equals expect.

    An expect below 10 matches a whole class of codes, e.g. 4 matches any 4xx.
    """

    check: Literal["StatusCode"] = "StatusCode"
    expect: int = Field(default=200, description="Wanted status code or class")

    def execute(self, test: "Test") -> None:
        got = response_of(test).status
        if self.expect < 10:
            if got // 100 != self.expect:
                raise CheckFailure(f"got {got}, want {self.expect}xx")
        elif got != self.expect:
            raise CheckFailure(f"got {got}, want {self.expect}")


@register_check
class NoServerError(Check):
    """The status code is no 5xx and the body could be read."""

    check: Literal["NoServerError"] = "NoServerError"

    def execute(self, test: "Test") -> None:
        response = response_of(test)
        if response.status // 100 == 5:
            raise CheckFailure(f"Server Error {response.status_line!r}")
        if response.body_error is not None:
            raise CheckFailure(str(response.body_error))
