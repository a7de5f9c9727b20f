"""Checks on the duration of the operation."""

from typing import TYPE_CHECKING, Literal

from pydantic import Field

from reqcheck.checks.base import Check, response_of
from reqcheck.checks.registry import register_check
from reqcheck.errors import CheckFailure, MalformedCheck

if TYPE_CHECKING:
    from reqcheck.testcase import Test


@register_check
class ResponseTime(Check):
    """The response took less than lower and more than higher seconds."""

    check: Literal["ResponseTime"] = "ResponseTime"
    lower: float = Field(default=0, description="Upper bound in seconds, 0 disables")
    higher: float = Field(default=0, description="Lower bound in seconds, 0 disables")

    def prepare(self, test: "Test") -> None:
        if self.higher and self.lower and self.higher >= self.lower:
            raise MalformedCheck(f"{self.higher}s < RT < {self.lower}s unfulfillable")

    def execute(self, test: "Test") -> None:
        actual = response_of(test).duration
        if self.lower > 0 and actual > self.lower:
            raise CheckFailure(
                f"Response took {actual:.3f}s (allowed max {self.lower}s)."
            )
        if self.higher > 0 and actual < self.higher:
            raise CheckFailure(
                f"Response took {actual:.3f}s (required min {self.higher}s)."
            )
