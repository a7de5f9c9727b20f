"""Models for execution outcomes."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from http.cookies import SimpleCookie

from multidict import CIMultiDict, CIMultiDictProxy

from reqcheck.models.status import Status


@dataclass(kw_only=True)
class CheckResult:
    """Outcome of a single check for the try that decided the test."""

    name: str
    json: str = ""
    status: Status = Status.NOT_RUN
    duration: float = 0.0
    error: BaseException | None = None


@dataclass(frozen=True, kw_only=True)
class Extraction:
    """Result of one named extraction."""

    value: str = ""
    error: BaseException | None = None


@dataclass(kw_only=True)
class Response:
    """Response envelope, synthesized for the pseudo-schemes.

    Contains only the outcome, the request is kept on the compiled request.
    """

    status: int = 0
    reason: str = ""
    url: str = ""
    headers: CIMultiDictProxy[str] = field(
        default_factory=lambda: CIMultiDictProxy(CIMultiDict())
    )
    body: bytes = b""
    body_error: BaseException | None = None
    redirections: Sequence[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def text(self) -> str:
        """The body decoded as UTF-8, undecodable bytes replaced."""
        return self.body.decode("utf-8", errors="replace")

    @property
    def status_line(self) -> str:
        return f"{self.status} {self.reason}".strip()

    def cookies(self) -> SimpleCookie:
        """Parse all Set-Cookie headers of the response."""
        jar: SimpleCookie = SimpleCookie()
        for header in self.headers.getall("Set-Cookie", []):
            jar.load(header)
        return jar


def synthesized_response(
    status: int,
    reason: str,
    body: bytes = b"",
    headers: CIMultiDict[str] | None = None,
    url: str = "",
) -> Response:
    """Build a response envelope for a non-network operation."""
    return Response(
        status=status,
        reason=reason,
        url=url,
        headers=CIMultiDictProxy(headers if headers is not None else CIMultiDict()),
        body=body,
    )
