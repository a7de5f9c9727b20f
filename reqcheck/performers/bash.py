"""The bash:// pseudo request: run the body as a bash script."""

import asyncio
import contextlib
import logging
import os
import tempfile
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from aiohttp.abc import AbstractCookieJar
from multidict import CIMultiDict

from reqcheck.compiler import CompiledRequest
from reqcheck.errors import TransportError
from reqcheck.models.result import Response, synthesized_response
from reqcheck.performers.base import Performer, require_local_host

log = logging.getLogger(__name__)

BASH = "/bin/bash"
EXIT_STATUS_HEADER = "Exit-Status"


def script_environment(params: Mapping[str, Sequence[str]]) -> dict[str, str]:
    """Build the script's environment from the first value of each parameter.

    Names containing '=' cannot be environment variables and are dropped.
    """
    env = {}
    for name, values in params.items():
        if "=" in name:
            log.warning("Environment variable %r from params contains =; dropped", name)
            continue
        env[name] = values[0] if values else ""
    return env


@dataclass(frozen=True, kw_only=True)
class BashPerformer(Performer):
    """Runs the request body with /bin/bash in the directory given by the URL path.

    The combined output becomes the body. The status is 200 on success, 500
    on a non-zero exit and 408 if the request timeout expired; the
    Exit-Status header reports the exit status.
    """

    def validate(self, compiled: CompiledRequest) -> None:
        require_local_host(compiled.url)

    async def perform(
        self, compiled: CompiledRequest, jar: AbstractCookieJar | None = None
    ) -> Response:
        workdir = compiled.url.path or "."
        log.info("Bash script in %s", compiled.url)
        start = time.monotonic()
        try:
            fd, script = tempfile.mkstemp(prefix="bashscript", dir=workdir)
            with os.fdopen(fd, "wb") as file:
                file.write(compiled.body)
        except OSError as err:
            raise TransportError(f"cannot write script to {workdir}: {err}") from err

        try:
            response = await self._run(script, workdir, compiled)
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(script)

        response.duration = time.monotonic() - start
        return response

    async def _run(
        self, script: str, workdir: str, compiled: CompiledRequest
    ) -> Response:
        try:
            process = await asyncio.create_subprocess_exec(
                BASH,
                script,
                cwd=workdir,
                env=script_environment(compiled.request.params),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as err:
            raise TransportError(f"cannot run {BASH}: {err}") from err

        try:
            output, _ = await asyncio.wait_for(
                process.communicate(), timeout=compiled.timeout
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            log.info("Bash script killed after %.1fs", compiled.timeout)
            return synthesized_response(408, "Request Timeout", url=str(compiled.url))

        headers: CIMultiDict[str] = CIMultiDict()
        headers[EXIT_STATUS_HEADER] = f"exit status {process.returncode}"
        if process.returncode == 0:
            status, reason = 200, "OK"
        else:
            status, reason = 500, "Internal Server Error"
        return synthesized_response(
            status, reason, body=output, headers=headers, url=str(compiled.url)
        )
