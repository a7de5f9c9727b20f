"""Base class of all checks."""

from abc import abstractmethod
from typing import TYPE_CHECKING

from reqcheck.errors import CheckFailure
from reqcheck.models.base import Model
from reqcheck.models.result import Response

if TYPE_CHECKING:
    from reqcheck.testcase import Test


class Check(Model):
    """A validation of the outcome of a test.

    Every concrete check stores its registered name in the ``check`` field,
    which is the discriminator of the serialized form. Checks raise a
    CheckFailure (or a subclass) from ``execute`` if the asserted property
    does not hold and return None on success.
    """

    check: str

    @property
    def name(self) -> str:
        return self.check

    def prepare(self, test: "Test") -> None:
        """Validate and precompile the check before the test is performed.

        Raises:
            MalformedCheck: If the check cannot be evaluated at all

        """

    @abstractmethod
    def execute(self, test: "Test") -> None:
        """Evaluate the check against the outcome of test.

        Raises:
            CheckFailure: If the check does not hold

        """


def response_of(test: "Test") -> Response:
    """The response of test; a check failure if there is none."""
    if test.response is None:
        raise CheckFailure("no response received")
    return test.response
