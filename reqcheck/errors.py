"""Error taxonomy shared by the compiler, the performers and the checks."""

from collections.abc import Iterable, Iterator, Sequence


class ReqcheckError(Exception):
    """Base class of all errors raised by reqcheck."""


class CompileError(ReqcheckError):
    """Raised when a test declaration cannot be turned into an operation.

    A compile error renders the test Bogus and is never retried.
    """


class TemplateError(CompileError):
    """Raised for malformed NOW or RANDOM placeholders."""


class MalformedPseudoQuery(CompileError):
    """Raised when a sql:// pseudo request lacks driver, DSN or query."""


class UnknownCheckError(CompileError):
    """Raised when deserializing a check or extractor with an unknown name."""

    def __init__(self, kind: str, name: str, suggestions: Sequence[str]) -> None:
        self.kind = kind
        self.name = name
        self.suggestions = list(suggestions)
        message = f"no such {kind} {name}"
        if self.suggestions:
            message += f" (did you mean {', '.join(self.suggestions)}?)"
        super().__init__(message)


class TransportError(ReqcheckError):
    """Raised when performing the operation failed (network, process, driver)."""


class CheckFailure(ReqcheckError):
    """Ordinary failure of a check: the asserted property did not hold."""


class MalformedCheck(CheckFailure):
    """The check cannot be evaluated at all, e.g. a broken regular expression."""

    def __init__(self, err: BaseException | str) -> None:
        self.err = err
        super().__init__(f"malformed check: {err}")


class CheckNotPrepared(MalformedCheck):
    """A check which needs preparation was executed unprepared."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} executed before being prepared")


class NotFound(CheckFailure):
    """Sentinel failure: the expected thing was not found."""

    def __init__(self) -> None:
        super().__init__("not found")


class FoundForbidden(CheckFailure):
    """Sentinel failure: a forbidden thing was found."""

    def __init__(self) -> None:
        super().__init__("found forbidden")


class WrongCount(CheckFailure):
    """Sentinel failure: the number of occurrences differs from the wanted one."""

    def __init__(self, got: int, want: int) -> None:
        self.got = got
        self.want = want
        super().__init__(f"found {got}, want {want}")


class BadBody(CheckFailure):
    """The response body is unavailable, e.g. it could not be read."""

    def __init__(self) -> None:
        super().__init__("skipped due to bad body")


class ErrorList(ReqcheckError):
    """A collection of errors reported as one."""

    def __init__(self, errors: Iterable[BaseException] = ()) -> None:
        self.errors: list[BaseException] = []
        for err in errors:
            self.append(err)
        super().__init__()

    def append(self, err: BaseException | None) -> "ErrorList":
        """Append err, flattening nested error lists. None is ignored."""
        if err is None:
            return self
        if isinstance(err, ErrorList):
            self.errors.extend(err.errors)
        else:
            self.errors.append(err)
        return self

    def as_strings(self) -> list[str]:
        """Return the messages of all contained errors."""
        return [str(err) for err in self.errors]

    def as_error(self) -> "ErrorList | None":
        """Return self, or None if no error was collected."""
        return self if self.errors else None

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[BaseException]:
        return iter(self.errors)

    def __str__(self) -> str:
        return "; ".join(self.as_strings())

    def __repr__(self) -> str:
        return f"ErrorList({self.errors!r})"
