"""Real network requests over HTTP and HTTPS."""

import asyncio
import logging
import time
from dataclasses import dataclass

import aiohttp
from aiohttp.abc import AbstractCookieJar

from reqcheck.compiler import CompiledRequest
from reqcheck.errors import TransportError
from reqcheck.models.result import Response
from reqcheck.performers.base import Performer

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class HttpPerformer(Performer):
    """Sends the compiled request with aiohttp.

    Redirects are followed up to the configured number of hops if the request
    asks for it, else a 3xx is returned as is and its body left unread. The
    cookie jar, if given, is shared with the other tests of a collection.
    """

    async def perform(
        self, compiled: CompiledRequest, jar: AbstractCookieJar | None = None
    ) -> Response:
        follow = compiled.request.follow_redirects
        start = time.monotonic()
        async with aiohttp.ClientSession(
            cookie_jar=jar if jar is not None else aiohttp.DummyCookieJar(),
            timeout=aiohttp.ClientTimeout(total=compiled.timeout),
            auto_decompress=True,
        ) as session:
            try:
                async with session.request(
                    compiled.method,
                    compiled.url,
                    headers=compiled.headers,
                    data=compiled.body or None,
                    chunked=compiled.request.chunked or None,
                    allow_redirects=follow,
                    max_redirects=self.config.max_redirects,
                    ssl=self.config.verify_ssl,
                ) as resp:
                    response = Response(
                        status=resp.status,
                        reason=resp.reason or "",
                        url=str(resp.url),
                        headers=resp.headers,
                        redirections=redirections(resp),
                    )
                    aborted = not follow and 300 <= resp.status < 400
                    if aborted:
                        log.debug("Aborted redirect chain at %s", resp.url)
                    elif compiled.method != "HEAD":
                        try:
                            response.body = await resp.read()
                        except aiohttp.ClientPayloadError as err:
                            response.body_error = err
            except (aiohttp.ClientError, asyncio.TimeoutError) as err:
                raise TransportError(
                    f"{compiled.method} {compiled.url}: {err or type(err).__name__}"
                ) from err
            finally:
                duration = time.monotonic() - start

        response.duration = duration
        return response


def redirections(resp: aiohttp.ClientResponse) -> list[str]:
    """URLs visited while following redirects, the final one included."""
    if not resp.history:
        return []
    return [str(r.url) for r in resp.history[1:]] + [str(resp.url)]
