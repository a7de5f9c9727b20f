"""Checks on the response body."""

from typing import TYPE_CHECKING, Literal

from pydantic import Field

from reqcheck.checks.base import Check, response_of
from reqcheck.checks.condition import Condition
from reqcheck.checks.registry import register_check
from reqcheck.errors import BadBody, CheckFailure

if TYPE_CHECKING:
    from reqcheck.testcase import Test


@register_check
class Body(Check):
    """The body fulfills condition."""

    check: Literal["Body"] = "Body"
    condition: Condition = Field(default_factory=Condition)

    def prepare(self, test: "Test") -> None:
        self.condition.compile()

    def execute(self, test: "Test") -> None:
        response = response_of(test)
        if response.body_error is not None:
            raise BadBody()
        self.condition.fulfilled(response.text)


@register_check
class UTF8Encoded(Check):
    """The body is valid UTF-8 without byte order marks."""

    check: Literal["UTF8Encoded"] = "UTF8Encoded"

    def execute(self, test: "Test") -> None:
        body = response_of(test).body
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as err:
            char = len(body[: err.start].decode("utf-8")) + 1
            raise CheckFailure(f"Invalid UTF-8 at character {char}.") from err
        if (bom := text.find("\ufeff")) != -1:
            raise CheckFailure(f"Unicode BOM at character {bom + 1}.")
