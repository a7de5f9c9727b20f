"""Sequential execution of tests with setup, teardown and shared variables."""

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import aiohttp
from aiohttp.abc import AbstractCookieJar

from reqcheck.collection import collect_errors
from reqcheck.errors import CompileError, ErrorList
from reqcheck.models.status import Status, worst
from reqcheck.templating import lcm_of, repeat
from reqcheck.testcase import Test

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class Suite:
    """An ordered list of tests run one after the other.

    Values extracted from a passing test become variables of all later
    tests. If a setup test does not pass the main tests are skipped; the
    teardown tests run in any case.

    Main tests are unrolled over the value lists in unroll: each is repeated
    for the least common multiple of the list lengths, cycling through the
    values.
    """

    name: str
    description: str = ""
    tests: Sequence[Test] = field(default_factory=list)
    setup: Sequence[Test] = field(default_factory=list)
    teardown: Sequence[Test] = field(default_factory=list)
    variables: Mapping[str, str] = field(default_factory=dict)
    unroll: Mapping[str, Sequence[str]] = field(default_factory=dict)
    keep_cookies: bool = False
    jar: AbstractCookieJar | None = field(default=None, repr=False)

    status: Status = field(default=Status.NOT_RUN, init=False)
    error: ErrorList | None = field(default=None, init=False)
    duration: float = field(default=0.0, init=False)
    final_variables: dict[str, str] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        if self.unroll:
            count = lcm_of(self.unroll)
            self.tests = [
                rep for test in self.tests for rep in repeat(test, count, self.unroll)
            ]

    async def execute(self) -> ErrorList | None:
        """Run setup, main and teardown tests.

        Returns:
            The errors of the failed tests, None if there are none

        """
        start = time.monotonic()
        jar = self.jar
        if jar is None and self.keep_cookies:
            jar = aiohttp.CookieJar(unsafe=True)
        scope = dict(self.variables)

        log.info("Suite %s: running %d setup test(s)", self.name, len(self.setup))
        for test in self.setup:
            await self._run_test(test, scope, jar)

        if all(test.status == Status.PASS for test in self.setup):
            for test in self.tests:
                await self._run_test(test, scope, jar)
        else:
            log.warning("Suite %s: setup failed, skipping main tests", self.name)
            for test in self.tests:
                test.status = Status.SKIPPED

        for test in self.teardown:
            await self._run_test(test, scope, jar)

        every = [*self.setup, *self.tests, *self.teardown]
        self.status = worst(test.status for test in every)
        self.error = collect_errors(every).as_error()
        self.final_variables = scope
        self.duration = time.monotonic() - start
        log.info("Suite %s: status=%s duration=%.1fs", self.name, self.status, self.duration)
        return self.error

    async def _run_test(
        self, test: Test, scope: dict[str, str], jar: AbstractCookieJar | None
    ) -> None:
        test.jar = jar
        try:
            await test.run(scope)
        except CompileError as err:
            log.warning("Test %s is bogus: %s", test.name, err)
            return
        if test.status == Status.PASS and test.extractors:
            test.extract()
            scope.update(test.extracted_variables())
