"""Abstract base class for the performers of compiled requests."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from aiohttp.abc import AbstractCookieJar
from yarl import URL

from reqcheck.compiler import CompiledRequest
from reqcheck.config import DEFAULT_CONFIG, ClientConfig
from reqcheck.errors import CompileError
from reqcheck.models.result import Response

LOCAL_HOSTS = ("", "localhost", "127.0.0.1")


@dataclass(frozen=True, kw_only=True)
class Performer(ABC):
    """Performs a compiled request of one URL scheme.

    Network requests and the file, bash and sql pseudo requests share this
    interface; pseudo requests synthesize a response envelope so that the
    same checks apply to their outcome.
    """

    config: ClientConfig = DEFAULT_CONFIG

    def validate(self, compiled: CompiledRequest) -> None:
        """Reject requests which cannot be performed at all.

        Runs at compile time, before anything is performed.

        Raises:
            CompileError: If the request is malformed for this scheme

        """

    @abstractmethod
    async def perform(
        self, compiled: CompiledRequest, jar: AbstractCookieJar | None = None
    ) -> Response:
        """Perform the request and return the response envelope.

        Args:
            compiled: The request to perform
            jar: Cookie jar shared with other tests, if any

        Returns:
            The response

        Raises:
            TransportError: If performing failed; checks are not run then

        """


def require_local_host(url: URL) -> None:
    """Pseudo requests operate on the local machine only."""
    if (url.host or "") not in LOCAL_HOSTS:
        raise CompileError(f"{url.scheme}:// on remote host {url.host} not implemented")
