"""Shared fixtures."""

from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Protocol

import pytest
from aioresponses import aioresponses as aioresponses_cls

from reqcheck.checks.base import Check
from reqcheck.models.request import Execution, Request
from reqcheck.testcase import Test
from reqcheck.testing.factories import ExecutionFactory, RequestFactory


class MakeTestFn(Protocol):
    """Protocol for test construction function."""

    def __call__(
        self,
        request: Request | None = None,
        checks: Sequence[Check | Mapping[str, Any]] = (),
        *,
        name: str = "test",
        execution: Execution | None = None,
        **kwargs: Any,
    ) -> Test:
        """Create a test with sensible defaults."""


@pytest.fixture
def aioresponses() -> Iterator[aioresponses_cls]:
    """Mock all aiohttp client requests."""
    with aioresponses_cls() as mocked:
        yield mocked


@pytest.fixture
def make_test() -> MakeTestFn:
    """Return a function to create tests."""

    def _make(
        request: Request | None = None,
        checks: Sequence[Check | Mapping[str, Any]] = (),
        *,
        name: str = "test",
        execution: Execution | None = None,
        **kwargs: Any,
    ) -> Test:
        return Test(
            name=name,
            request=request or RequestFactory.build(),
            checks=list(checks),
            execution=execution or ExecutionFactory.build(),
            **kwargs,
        )

    return _make
