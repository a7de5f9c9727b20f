"""Compilation of a declarative Request into the concrete operation to perform."""

import logging
from dataclasses import dataclass, field
from urllib.parse import urlencode

from aiohttp import BasicAuth
from multidict import CIMultiDict
from yarl import URL

from reqcheck.config import DEFAULT_CONFIG, ClientConfig
from reqcheck.errors import CompileError
from reqcheck.models.request import Request
from reqcheck.multipart import file_data, multipart_body
from reqcheck.templating import Replacer

log = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(kw_only=True)
class CompiledRequest:
    """The concrete operation as it will be sent.

    Keeps the exact bytes of the body for replay and for producing an
    equivalent curl call.
    """

    request: Request
    method: str
    url: URL
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    body: bytes = b""
    timeout: float = DEFAULT_CONFIG.timeout

    @property
    def scheme(self) -> str:
        return self.url.scheme

    @property
    def body_text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def wire_dump(self) -> str:
        """Render request line, headers and body like they travel on the wire."""
        target = self.url.raw_path_qs if self.url.is_absolute() else str(self.url)
        lines = [f"{self.method} {target} HTTP/1.1"]
        if self.url.raw_host:
            lines.append(f"Host: {self.url.raw_authority}")
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        return "\r\n".join(lines) + "\r\n\r\n" + self.body_text


@dataclass(frozen=True, kw_only=True)
class RequestCompiler:
    """Turns a Request with bound variables into a CompiledRequest."""

    config: ClientConfig = DEFAULT_CONFIG

    def compile(
        self, request: Request, replacer: Replacer | None = None
    ) -> CompiledRequest:
        """Compile request; variables must already be substituted.

        Args:
            request: The substituted request declaration
            replacer: Applied to the content of @vfile: values

        Returns:
            The concrete request

        Raises:
            CompileError: For a bad URL, an illegal combination of method,
                parameter mode and body or an unreadable file

        """
        method = request.method or "GET"
        params_as = request.params_as or "URL"

        try:
            url = URL(request.url)
        except (TypeError, ValueError) as err:
            raise CompileError(f"bad URL {request.url!r}: {err}") from err
        if not url.scheme:
            raise CompileError(f"missing scheme in URL {request.url!r}")

        pairs = [
            (name, value) for name, values in request.params.items() for value in values
        ]

        body = b""
        content_type = ""
        if request.params:
            if params_as in ("body", "multipart"):
                if method in ("GET", "HEAD"):
                    raise CompileError(
                        f"{method} does not allow body or multipart parameters"
                    )
                if request.body:
                    raise CompileError("body used with body/multipart parameters")
            match params_as:
                case "URL":
                    url = url.extend_query(pairs)
                case "body":
                    body = urlencode(pairs).encode()
                    content_type = FORM_CONTENT_TYPE
                case "multipart":
                    body, boundary = multipart_body(request.params, replacer)
                    content_type = f"multipart/form-data; boundary={boundary}"
                case _:
                    raise CompileError(f"unknown parameter method {params_as!r}")

        if request.body:
            body = file_data(request.body, replacer).data

        log.debug("Compiled %s %s (%d body bytes)", method, url, len(body))
        return CompiledRequest(
            request=request,
            method=method,
            url=url,
            headers=self._headers(request, content_type),
            body=body,
            timeout=request.timeout if request.timeout > 0 else self.config.timeout,
        )

    def _headers(self, request: Request, content_type: str) -> CIMultiDict[str]:
        headers: CIMultiDict[str] = CIMultiDict()
        for name, values in request.header.items():
            for value in values:
                headers.add(name, value)

        if content_type and "Content-Type" not in headers:
            headers["Content-Type"] = content_type
        headers.setdefault("Accept", self.config.accept)
        headers.setdefault("User-Agent", self.config.user_agent)

        if request.cookies:
            pairs = [f"{cookie.name}={cookie.value}" for cookie in request.cookies]
            if existing := headers.get("Cookie"):
                pairs.insert(0, existing)
            headers["Cookie"] = "; ".join(pairs)

        if request.basic_auth_user:
            try:
                auth = BasicAuth(request.basic_auth_user, request.basic_auth_pass)
            except ValueError as err:
                raise CompileError(f"bad basic auth credentials: {err}") from err
            headers["Authorization"] = auth.encode()

        return headers
