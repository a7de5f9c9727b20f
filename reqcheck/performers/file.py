"""The file:// pseudo request: read, write or delete a local file."""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from aiohttp.abc import AbstractCookieJar

from reqcheck.compiler import CompiledRequest
from reqcheck.errors import CompileError, TransportError
from reqcheck.models.result import Response, synthesized_response
from reqcheck.performers.base import Performer, require_local_host

log = logging.getLogger(__name__)

FILE_METHODS = ("GET", "PUT", "DELETE")


@dataclass(frozen=True, kw_only=True)
class FilePerformer(Performer):
    """GET reads the file at the URL path, PUT writes the body, DELETE removes it."""

    def validate(self, compiled: CompiledRequest) -> None:
        require_local_host(compiled.url)
        if compiled.method not in FILE_METHODS:
            raise CompileError(f"method {compiled.method} not supported on file:// URL")
        path = Path(compiled.url.path)
        if compiled.method == "GET" and not path.exists():
            raise CompileError(f"file {path} does not exist")

    async def perform(
        self, compiled: CompiledRequest, jar: AbstractCookieJar | None = None
    ) -> Response:
        path = Path(compiled.url.path)
        log.info("%s %s", compiled.method, compiled.url)
        start = time.monotonic()
        try:
            match compiled.method:
                case "GET":
                    body = await asyncio.to_thread(path.read_bytes)
                case "PUT":
                    await asyncio.to_thread(path.write_bytes, compiled.body)
                    body = f"Successfully wrote {compiled.url}".encode()
                case "DELETE":
                    await asyncio.to_thread(path.unlink)
                    body = f"Successfully deleted {compiled.url}".encode()
                case _:
                    raise CompileError(
                        f"method {compiled.method} not supported on file:// URL"
                    )
        except OSError as err:
            raise TransportError(f"{compiled.method} {path}: {err}") from err

        response = synthesized_response(200, "OK", body=body, url=str(compiled.url))
        response.duration = time.monotonic() - start
        return response
