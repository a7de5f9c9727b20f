"""The test: a request, its checks and the retry loop tying them together."""

import asyncio
import json
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from aiohttp.abc import AbstractCookieJar

from reqcheck.checks.base import Check
from reqcheck.checks.registry import dump_check, load_checks
from reqcheck.checks.status import StatusCode
from reqcheck.compiler import CompiledRequest, RequestCompiler
from reqcheck.config import DEFAULT_CONFIG, ClientConfig
from reqcheck.curl import curl_call
from reqcheck.errors import (
    CheckFailure,
    CompileError,
    ErrorList,
    MalformedCheck,
    ReqcheckError,
    TransportError,
)
from reqcheck.extraction import Extractor, load_extractor
from reqcheck.models.request import Execution, Request
from reqcheck.models.result import CheckResult, Extraction, Response
from reqcheck.models.status import Criticality, Status, worst
from reqcheck.performers.base import Performer
from reqcheck.performers.loading import get_performer
from reqcheck.random_values import DEFAULT_RANDOM, RandomSource
from reqcheck.templating import (
    Replacer,
    find_special_variables,
    merge_variables,
    special_variables,
)

log = logging.getLogger(__name__)


def _malformed(err: ReqcheckError) -> bool:
    """Report whether err is, or aggregates, a malformed check."""
    if isinstance(err, ErrorList):
        return any(isinstance(e, MalformedCheck) for e in err)
    return isinstance(err, MalformedCheck)


@dataclass(kw_only=True)
class Test:
    """A single test: the declaration plus the results of its last run.

    Checks and extractors may be given in their serialized form. The
    declaration is never modified by running; every try substitutes the
    variables into fresh copies of the request and the checks.
    """

    __test__ = False

    name: str
    description: str = ""
    request: Request
    checks: Sequence[Check] = field(default_factory=list)
    execution: Execution = field(default_factory=Execution)
    extractors: Mapping[str, Extractor] = field(default_factory=dict)
    variables: Mapping[str, str] = field(default_factory=dict)
    criticality: Criticality = Criticality.DEFAULT
    jar: AbstractCookieJar | None = field(default=None, repr=False)
    config: ClientConfig = field(default=DEFAULT_CONFIG, repr=False)
    random: RandomSource = field(default=DEFAULT_RANDOM, repr=False)

    status: Status = field(default=Status.NOT_RUN, init=False)
    error: BaseException | None = field(default=None, init=False)
    check_results: list[CheckResult] = field(default_factory=list, init=False)
    response: Response | None = field(default=None, init=False, repr=False)
    compiled: CompiledRequest | None = field(default=None, init=False, repr=False)
    tries: int = field(default=0, init=False)
    started: datetime | None = field(default=None, init=False)
    duration: float = field(default=0.0, init=False)
    full_duration: float = field(default=0.0, init=False)
    extractions: dict[str, Extraction] = field(default_factory=dict, init=False)

    _replacer: Replacer = field(default_factory=Replacer, init=False, repr=False)

    def __post_init__(self) -> None:
        self.checks = load_checks(self.checks)
        self.extractors = {
            name: load_extractor(extractor)
            for name, extractor in self.extractors.items()
        }

    async def run(self, variables: Mapping[str, str] | None = None) -> None:
        """Run the test, retrying as the execution policy allows.

        Args:
            variables: Values for {{NAME}} placeholders; the test's own
                variables take precedence

        Raises:
            CompileError: If the test could not be compiled; it is Bogus then.
                All other outcomes are recorded on the test only.

        """
        self.started = datetime.now(UTC)
        start = time.monotonic()
        self._reset()
        self._info("Running")
        try:
            await self._run(variables)
        finally:
            self.full_duration = time.monotonic() - start

    def _reset(self) -> None:
        self.status, self.error = Status.NOT_RUN, None
        self.check_results = []
        self.response = None
        self.compiled = None
        self.tries = 0
        self.duration = 0.0
        self.extractions = {}

    async def _run(self, variables: Mapping[str, str] | None) -> None:
        if self.execution.skip():
            self.status = Status.SKIPPED
            self._info("Skipped")
            return
        max_tries = max(self.execution.tries, 1)

        if self.execution.pre_sleep > 0:
            self._debug("PreSleep %.3fs", self.execution.pre_sleep)
            await asyncio.sleep(self.execution.pre_sleep)

        start = time.monotonic()
        for attempt in range(1, max_tries + 1):
            self.tries = attempt
            if attempt > 1:
                self._debug("Retry %d", attempt)
                if self.execution.wait > 0:
                    await asyncio.sleep(self.execution.wait)
            self.status, self.error = Status.NOT_RUN, None
            self.response = None

            performer, checks = self._compile(variables)
            await self._execute(performer, checks)
            if self.status == Status.PASS:
                break
        self.duration = time.monotonic() - start

        if max_tries > 1:
            if self.status == Status.PASS:
                self._debug("Trying succeeded after %d tries", self.tries)
            else:
                self._debug("Trying failed all %d tries", max_tries)
        self._info("Result: %s (%.3fs) %d tries", self.status, self.duration, self.tries)

        if self.execution.post_sleep > 0:
            self._debug("PostSleep %.3fs", self.execution.post_sleep)
            await asyncio.sleep(self.execution.post_sleep)

    def _compile(
        self, variables: Mapping[str, str] | None
    ) -> tuple[Performer, list[Check]]:
        """Substitute variables, compile the request and prepare the checks."""
        try:
            names = find_special_variables(
                self.name, self.description, self.request, list(self.checks)
            )
            self._replacer = Replacer(
                merge_variables(
                    variables,
                    self.variables,
                    special_variables(names, source=self.random),
                )
            )
            request = self._replacer.substitute(self.request)
            checks = self._replacer.substitute(list(self.checks))

            self.compiled = RequestCompiler(config=self.config).compile(
                request, self._replacer
            )
            performer = get_performer(self.compiled.scheme, self.config)
            performer.validate(self.compiled)
            self._prepare_checks(checks)
        except CompileError as err:
            self.status, self.error = Status.BOGUS, err
            log.error("%s: %s", self.name, err)
            raise
        return performer, checks

    def _prepare_checks(self, checks: Sequence[Check]) -> None:
        errors = ErrorList()
        for index, check in enumerate(checks, start=1):
            try:
                check.prepare(self)
            except ReqcheckError as err:
                log.error("%s: preparing check %d %s: %s", self.name, index, check.name, err)
                errors.append(err)
        if errors.as_error() is not None:
            raise CompileError(f"preparing checks: {errors}") from errors

        if len(self.check_results) != len(checks):
            self.check_results = [
                CheckResult(name=check.name, json=json.dumps(dump_check(check)))
                for check in checks
            ]

    async def _execute(self, performer: Performer, checks: Sequence[Check]) -> None:
        assert self.compiled is not None
        self._info("%s %s", self.compiled.method, self.compiled.url)
        if self.execution.verbosity >= 3:
            self._trace("Full request\n%s", self.compiled.wire_dump())

        try:
            self.response = await performer.perform(self.compiled, self.jar)
        except TransportError as err:
            self.status, self.error = Status.ERROR, err
            self._info("Request failed: %s", err)
            return

        for hop, url in enumerate(self.response.redirections, start=1):
            self._debug("Redirection %d: %s", hop, url)
        self._debug("Request took %.3fs", self.response.duration)
        if self.execution.verbosity >= 3:
            self._trace(
                "Full response\n%s\n%s\n\n%s",
                self.response.status_line,
                "\n".join(f"{k}: {v}" for k, v in self.response.headers.items()),
                self.response.text,
            )

        if not checks:
            self.status = Status.PASS
            return
        if self.execution.inter_sleep > 0:
            self._debug("InterSleep %.3fs", self.execution.inter_sleep)
            await asyncio.sleep(self.execution.inter_sleep)
        self._execute_checks(checks)

    def _execute_checks(self, checks: Sequence[Check]) -> None:
        """Execute checks in order and aggregate their status.

        If the first check asks for status 200 and fails the remaining ones
        are skipped.
        """
        errors = ErrorList()
        for index, check in enumerate(checks):
            result = self.check_results[index]
            start = time.monotonic()
            try:
                check.execute(self)
            except ReqcheckError as err:
                result.status = Status.BOGUS if _malformed(err) else Status.FAIL
                result.error = err
                self._debug("Check %d %s %s: %s", index + 1, check.name, result.status, err)
                for failure in err if isinstance(err, ErrorList) else [err]:
                    errors.append(CheckFailure(f"Check {check.name}: {failure}"))
            else:
                result.status, result.error = Status.PASS, None
                self._debug("Check %d %s: Pass", index + 1, check.name)
            result.duration = time.monotonic() - start

            if (
                index == 0
                and result.status != Status.PASS
                and isinstance(check, StatusCode)
                and check.expect == 200
            ):
                self._debug("Skipping remaining checks as status is not 200")
                for later in self.check_results[1:]:
                    later.status, later.error = Status.SKIPPED, None
                break

        self.status = worst(result.status for result in self.check_results)
        self.error = errors.as_error()

    def extract(self) -> dict[str, Extraction]:
        """Run the extractors against the outcome of the last run."""
        self.extractions = {}
        for name, extractor in self.extractors.items():
            try:
                value = self._replacer.substitute(extractor).extract(self)
            except ReqcheckError as err:
                log.error("%s: extracting %s: %s", self.name, name, err)
                self.extractions[name] = Extraction(error=err)
            else:
                self._debug("Extracted %s=%r", name, value)
                self.extractions[name] = Extraction(value=value)
        return self.extractions

    def extracted_variables(self) -> dict[str, str]:
        """Successfully extracted values by name."""
        return {
            name: extraction.value
            for name, extraction in self.extractions.items()
            if extraction.error is None
        }

    def curl_call(self) -> str:
        """A curl command line reproducing the last compiled request."""
        if self.compiled is None:
            raise ReqcheckError(f"test {self.name} was never compiled")
        return curl_call(self.compiled, self.jar)

    def _info(self, msg: str, *args: object) -> None:
        if self.execution.verbosity >= 1:
            log.info("%s: " + msg, self.name, *args)

    def _debug(self, msg: str, *args: object) -> None:
        if self.execution.verbosity >= 2:
            log.info("%s: " + msg, self.name, *args)

    def _trace(self, msg: str, *args: object) -> None:
        if self.execution.verbosity >= 3:
            log.debug("%s: " + msg, self.name, *args)
