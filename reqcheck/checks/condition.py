"""Conditions on strings, shared by the body and header checks."""

import re

from pydantic import Field, PrivateAttr

from reqcheck.errors import (
    CheckFailure,
    CheckNotPrepared,
    FoundForbidden,
    MalformedCheck,
    NotFound,
    WrongCount,
)
from reqcheck.models.base import Model


def _shorten(text: str, want: str) -> str:
    if len(text) <= len(want) * 3 // 2:
        return repr(text)
    end = len(want) + 10
    if end >= len(text):
        return repr(text)
    return repr(text[:end]) + "..."


class Condition(Model):
    """A conjunction of tests against a string.

    Count applies to both contains and regexp: 0 means at least one
    occurrence, a positive value exactly that many and a negative value none
    at all. Zero values disable a test.
    """

    equals: str = Field(default="", description="Exact value, disables all others")
    prefix: str = Field(default="", description="Required prefix")
    suffix: str = Field(default="", description="Required suffix")
    contains: str = Field(default="", description="Required substring")
    regexp: str = Field(default="", description="Regular expression to look for")
    count: int = Field(default=0, description="Required number of occurrences")
    min: int = Field(default=0, description="Minimum length")
    max: int = Field(default=0, description="Maximum length")
    greater_than: float | None = Field(
        default=None, description="Exclusive lower bound of the numerical value"
    )
    less_than: float | None = Field(
        default=None, description="Exclusive upper bound of the numerical value"
    )

    _re: re.Pattern[str] | None = PrivateAttr(default=None)

    def compile(self) -> None:
        """Precompile the regular expression.

        Raises:
            MalformedCheck: If regexp is not a valid regular expression

        """
        if not self.regexp:
            return
        try:
            self._re = re.compile(self.regexp)
        except re.error as err:
            raise MalformedCheck(err) from err

    def fulfilled(self, text: str) -> None:
        """Check text against all conditions.

        Raises:
            CheckFailure: On the first condition text does not fulfill
            CheckNotPrepared: If regexp is set but compile was not called

        """
        if self.equals:
            if text != self.equals:
                raise CheckFailure(f"Unequal, was {_shorten(text, self.equals)}")
            return

        if self.prefix and not text.startswith(self.prefix):
            raise CheckFailure(f"Bad prefix, got {text[: len(self.prefix)]!r}")

        if self.suffix and not text.endswith(self.suffix):
            got = text[-len(self.suffix) :] if text else ""
            raise CheckFailure(f"Bad suffix, got {got!r}")

        if self.contains:
            self._check_count(text.count(self.contains))

        if self.regexp:
            if self._re is None:
                raise CheckNotPrepared("regexp condition")
            self._check_count(len(self._re.findall(text)))

        if self.min > 0 and len(text) < self.min:
            raise CheckFailure(f"Too short, was {len(text)}")

        if self.max > 0 and len(text) > self.max:
            raise CheckFailure(f"Too long, was {len(text)}")

        if self.greater_than is not None or self.less_than is not None:
            self._check_bounds(text)

    def _check_count(self, found: int) -> None:
        if self.count == 0 and found == 0:
            raise NotFound()
        if self.count < 0 and found > 0:
            raise FoundForbidden()
        if self.count > 0 and found != self.count:
            raise WrongCount(got=found, want=self.count)

    def _check_bounds(self, text: str) -> None:
        stripped = text.strip().strip("\"'")
        try:
            value = float(stripped)
        except ValueError as err:
            raise CheckFailure(f"not a number: {stripped!r}") from err
        if self.greater_than is not None and value <= self.greater_than:
            raise CheckFailure(f"Not greater than {self.greater_than:g}, was {value:g}")
        if self.less_than is not None and value >= self.less_than:
            raise CheckFailure(f"Not less than {self.less_than:g}, was {value:g}")
