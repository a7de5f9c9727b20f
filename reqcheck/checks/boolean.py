"""Boolean combinators over lists of checks."""

from typing import TYPE_CHECKING, Literal

from pydantic import Field

from reqcheck.checks.base import Check
from reqcheck.checks.registry import CheckList, register_check
from reqcheck.errors import CheckFailure, ErrorList, MalformedCheck, ReqcheckError

if TYPE_CHECKING:
    from reqcheck.testcase import Test


def prepare_all(checks: CheckList, test: "Test") -> None:
    """Prepare every check, raising all preparation failures at once."""
    errors = ErrorList()
    for check in checks:
        try:
            check.prepare(test)
        except ReqcheckError as err:
            errors.append(err)
    if errors.as_error() is not None:
        raise errors


@register_check
class AnyOne(Check):
    """Passes if at least one of the checks passes.

    The checks are executed in order until the first one passes.
    """

    check: Literal["AnyOne"] = "AnyOne"
    of: CheckList = Field(default_factory=list)

    def prepare(self, test: "Test") -> None:
        prepare_all(self.of, test)

    def execute(self, test: "Test") -> None:
        errors = ErrorList()
        for check in self.of:
            try:
                check.execute(test)
            except ReqcheckError as err:
                errors.append(err)
            else:
                return
        if errors.as_error() is not None:
            raise errors


@register_check
class NoneOf(Check):
    """Passes if none of the checks passes.

    All checks are always executed; the first passing one is reported. A
    malformed sub-check is never taken as a failure.
    """

    check: Literal["None"] = "None"
    of: CheckList = Field(default_factory=list)

    def prepare(self, test: "Test") -> None:
        prepare_all(self.of, test)

    def execute(self, test: "Test") -> None:
        passed = 0
        for ordinal, check in enumerate(self.of, start=1):
            try:
                check.execute(test)
            except MalformedCheck:
                raise
            except ReqcheckError:
                continue
            passed = passed or ordinal
        if passed:
            raise CheckFailure(f"Check {passed} passed")
