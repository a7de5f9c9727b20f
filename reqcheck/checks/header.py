"""Checks on response headers."""

from typing import TYPE_CHECKING, Literal

from pydantic import Field

from reqcheck.checks.base import Check, response_of
from reqcheck.checks.condition import Condition
from reqcheck.checks.registry import register_check
from reqcheck.errors import CheckFailure

if TYPE_CHECKING:
    from reqcheck.testcase import Test


@register_check
class Header(Check):
    """The first value of a header fulfills condition.

    A default condition only checks that the header is present; absent
    requires that it is missing.
    """

    check: Literal["Header"] = "Header"
    header: str = Field(..., description="Name of the header")
    condition: Condition = Field(default_factory=Condition)
    absent: bool = Field(default=False, description="Header must not be sent")

    def prepare(self, test: "Test") -> None:
        self.condition.compile()

    def execute(self, test: "Test") -> None:
        values = response_of(test).headers.getall(self.header, [])
        if self.absent:
            if values:
                raise CheckFailure(f"forbidden header {self.header} received")
            return
        if not values:
            raise CheckFailure(f"header {self.header} not received")
        self.condition.fulfilled(values[0])


@register_check
class ContentType(Check):
    """The Content-Type header names the wanted media type.

    is_ may be abbreviated: 'json' matches 'application/json'.
    """

    check: Literal["ContentType"] = "ContentType"
    is_: str = Field(..., alias="is", description="Wanted media type")
    charset: str = Field(default="", description="Wanted charset")

    def execute(self, test: "Test") -> None:
        values = response_of(test).headers.getall("Content-Type", [])
        if not values:
            raise CheckFailure("no Content-Type header received")
        if len(values) > 1:
            raise CheckFailure(f"received {len(values)} Content-Type headers")

        content_type = values[0]
        media_type, *params = (part.strip() for part in content_type.split(";"))
        want = self.is_ if "/" in self.is_ else "/" + self.is_
        if not media_type.endswith(want):
            raise CheckFailure(f"Content-Type is {content_type}")

        if self.charset:
            if not params:
                raise CheckFailure(f"no charset in {content_type}")
            if params[0] != f"charset={self.charset}":
                raise CheckFailure(f"bad charset in {content_type}")
