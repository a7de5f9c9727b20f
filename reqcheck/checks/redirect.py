"""Checks on redirections."""

from typing import TYPE_CHECKING, Literal

from pydantic import Field

from reqcheck.checks.base import Check, response_of
from reqcheck.checks.registry import register_check
from reqcheck.errors import CheckFailure, ErrorList, MalformedCheck

if TYPE_CHECKING:
    from reqcheck.testcase import Test

REDIRECT_CODES = (301, 302, 303, 307, 308)


def dot_match(got: str, want: str) -> bool:
    """Match got against want where '...' stands for any text.

    A leading '...' matches a suffix, a trailing one a prefix and one in the
    middle both ends.
    """
    if want.startswith("..."):
        return got.endswith(want[3:])
    if want.endswith("..."):
        return got.startswith(want[:-3])
    if "..." in want:
        head, _, tail = want.partition("...")
        return got.startswith(head) and got.endswith(tail)
    return got == want


@register_check
class Redirect(Check):
    """The response redirects to the given location.

    Only meaningful for tests which do not follow redirects themselves.
    """

    check: Literal["Redirect"] = "Redirect"
    to: str = Field(..., description="Wanted Location, '...' matches any text")
    status_code: int = Field(
        default=0, description="Wanted status code, 0 accepts any redirect code"
    )

    def prepare(self, test: "Test") -> None:
        if not self.to:
            raise MalformedCheck("to must not be empty")
        if self.status_code and not 300 <= self.status_code <= 399:
            raise MalformedCheck(
                f"status code {self.status_code} out of redirect range"
            )

    def execute(self, test: "Test") -> None:
        response = response_of(test)
        errors = ErrorList()
        wanted = (self.status_code,) if self.status_code else REDIRECT_CODES
        if response.status not in wanted:
            errors.append(CheckFailure(f"got status code {response.status}"))

        locations = response.headers.getall("Location", [])
        if not locations:
            errors.append(CheckFailure("no Location header received"))
        else:
            if len(locations) > 1:
                errors.append(CheckFailure(f"got {len(locations)} Location header"))
            if not dot_match(locations[0], self.to):
                errors.append(CheckFailure(f"Location = {locations[0]}"))

        if errors.as_error() is not None:
            raise errors
