"""The sql:// pseudo request: run a query through a DB-API 2.0 driver."""

import asyncio
import contextlib
import csv
import importlib
import io
import json
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from types import ModuleType
from typing import Any
from urllib.parse import urlsplit

from aiohttp.abc import AbstractCookieJar
from multidict import CIMultiDict

from reqcheck.compiler import CompiledRequest
from reqcheck.errors import MalformedPseudoQuery, TransportError
from reqcheck.models.result import Response, synthesized_response
from reqcheck.performers.base import Performer

log = logging.getLogger(__name__)

DSN_HEADER = "Data-Source-Name"


@dataclass(frozen=True, kw_only=True)
class Rows:
    """Result of a read query."""

    columns: Sequence[str]
    rows: Sequence[Sequence[Any]]


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def parse_accept(accept: str) -> tuple[str, dict[str, str]]:
    """Split an Accept-like header into the media type and its parameters."""
    media_type, *params = (part.strip() for part in accept.split(";"))
    options = {}
    for param in params:
        key, _, value = param.partition("=")
        options[key.strip().lower()] = value.strip().strip('"')
    return media_type.lower(), options


def format_rows(result: Rows, accept: str) -> tuple[str, str]:
    """Serialize rows as JSON (default), CSV or delimited text.

    Returns:
        The body and its content type

    """
    media_type, options = parse_accept(accept)
    records = [[_text(value) for value in row] for row in result.rows]
    match media_type:
        case "text/csv":
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            if options.get("header") == "present":
                writer.writerow(result.columns)
            writer.writerows(["" if v is None else v for v in row] for row in records)
            return buffer.getvalue(), "text/csv"
        case "text/plain":
            sep = options.get("fieldsep") or "\t"
            lines = [sep.join("" if v is None else v for v in row) for row in records]
            if options.get("header") == "present":
                lines.insert(0, sep.join(result.columns))
            return "".join(line + "\n" for line in lines), "text/plain"
        case _:
            objects = [dict(zip(result.columns, row, strict=True)) for row in records]
            return json.dumps(objects, indent=2), "application/json"


def driver_name(compiled: CompiledRequest) -> str:
    """The host of the request URL as written.

    yarl lowercases hosts, module names like MySQLdb are case sensitive.
    """
    return urlsplit(compiled.request.url).netloc.rpartition("@")[2].partition(":")[0]


def load_driver(name: str) -> ModuleType:
    """Import the DB-API 2.0 module name.

    Raises:
        MalformedPseudoQuery: If there is no such module or it lacks connect()
            or the Error exception class

    """
    try:
        module = importlib.import_module(name)
    except ImportError as err:
        raise MalformedPseudoQuery(f"unknown database driver {name}") from err
    error = getattr(module, "Error", None)
    if not callable(getattr(module, "connect", None)) or not (
        isinstance(error, type) and issubclass(error, Exception)
    ):
        raise MalformedPseudoQuery(f"{name} is not a DB-API database driver")
    return module


@dataclass(frozen=True, kw_only=True)
class SqlPerformer(Performer):
    """Runs the request body as SQL query.

    The URL host names the driver module (e.g. sqlite3), the Data-Source-Name
    header is passed to its connect(). GET returns the rows, POST executes a
    statement and reports LastInsertId and RowsAffected.
    """

    def validate(self, compiled: CompiledRequest) -> None:
        self._driver(compiled)
        if not compiled.headers.get(DSN_HEADER):
            raise MalformedPseudoQuery(
                f"missing data source name ({DSN_HEADER} header) in sql pseudo query"
            )
        if not compiled.body:
            raise MalformedPseudoQuery("missing query (request body) in sql pseudo query")
        if compiled.method not in ("GET", "POST"):
            raise MalformedPseudoQuery(
                f"illegal method {compiled.method} for sql pseudo query"
            )

    def _driver(self, compiled: CompiledRequest) -> ModuleType:
        name = driver_name(compiled)
        if not name:
            raise MalformedPseudoQuery(
                "missing database driver name (host of URL) in sql pseudo query"
            )
        return load_driver(name)

    async def perform(
        self, compiled: CompiledRequest, jar: AbstractCookieJar | None = None
    ) -> Response:
        driver = self._driver(compiled)
        dsn = compiled.headers[DSN_HEADER]
        query = compiled.body_text
        log.info("SQL query in %s", compiled.url)

        start = time.monotonic()
        headers: CIMultiDict[str] = CIMultiDict()
        try:
            if compiled.method == "GET":
                rows = await asyncio.to_thread(self._query, driver, dsn, query)
                body, headers["Content-Type"] = format_rows(
                    rows, compiled.headers.get("Accept", "")
                )
            else:
                body = await asyncio.to_thread(self._execute, driver, dsn, query)
                headers["Content-Type"] = "application/json"
        except driver.Error as err:
            raise TransportError(f"sql query failed: {err}") from err

        response = synthesized_response(
            200, "OK", body=body.encode(), headers=headers, url=str(compiled.url)
        )
        response.duration = time.monotonic() - start
        return response

    @staticmethod
    def _query(driver: ModuleType, dsn: str, query: str) -> Rows:
        with contextlib.closing(driver.connect(dsn)) as conn:
            cursor = conn.cursor()
            cursor.execute(query)
            columns = [column[0] for column in cursor.description or ()]
            return Rows(columns=columns, rows=cursor.fetchall())

    @staticmethod
    def _execute(driver: ModuleType, dsn: str, query: str) -> str:
        with contextlib.closing(driver.connect(dsn)) as conn:
            cursor = conn.cursor()
            cursor.execute(query)
            conn.commit()
            result = {
                "LastInsertId": {"Value": cursor.lastrowid or 0},
                "RowsAffected": {"Value": max(cursor.rowcount, 0)},
            }
        return json.dumps(result, indent=4)
