"""Concurrent execution of a collection of tests."""

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import aiohttp
from aiohttp.abc import AbstractCookieJar

from reqcheck.errors import CompileError, ErrorList
from reqcheck.models.status import Status, worst
from reqcheck.testcase import Test

log = logging.getLogger(__name__)


def collect_errors(tests: Iterable[Test]) -> ErrorList:
    """The errors of all tests which did not pass or get skipped."""
    errors = ErrorList()
    for test in tests:
        if test.status > Status.PASS:
            errors.append(test.error)
    return errors


@dataclass(kw_only=True)
class Collection:
    """An unordered set of tests sharing a cookie jar."""

    tests: Sequence[Test]

    status: Status = field(default=Status.NOT_RUN, init=False)
    error: ErrorList | None = field(default=None, init=False)

    async def execute_concurrent(
        self,
        max_concurrent: int,
        jar: AbstractCookieJar | None = None,
        variables: Mapping[str, str] | None = None,
    ) -> ErrorList | None:
        """Run all tests with at most max_concurrent of them at the same time.

        Each worker runs one test to completion, retries included, before
        taking the next one. Tests which fail to compile are recorded as
        Bogus and do not stop the others.

        Args:
            max_concurrent: Upper bound of simultaneously running tests
            jar: Cookie jar assigned to every test, a fresh one if None
            variables: Variables for all tests

        Returns:
            The errors of the failed tests, None if there are none

        """
        if jar is None:
            jar = aiohttp.CookieJar(unsafe=True)
        for test in self.tests:
            test.jar = jar

        queue: asyncio.Queue[Test] = asyncio.Queue()
        for test in self.tests:
            queue.put_nowait(test)

        workers = max(1, min(max_concurrent, len(self.tests)))
        log.info("Running %d test(s) with %d worker(s)", len(self.tests), workers)
        await asyncio.gather(*(self._worker(queue, variables) for _ in range(workers)))

        self.status = worst(test.status for test in self.tests)
        self.error = collect_errors(self.tests).as_error()
        log.info("Collection completed: status=%s", self.status)
        return self.error

    async def _worker(
        self, queue: "asyncio.Queue[Test]", variables: Mapping[str, str] | None
    ) -> None:
        while True:
            try:
                test = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await test.run(variables)
            except CompileError as err:
                log.warning("Test %s is bogus: %s", test.name, err)
            finally:
                queue.task_done()
