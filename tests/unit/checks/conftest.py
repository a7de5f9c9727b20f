"""Fixtures for check tests."""

from collections.abc import Mapping
from typing import Any, Protocol

import pytest
from multidict import CIMultiDict, CIMultiDictProxy

from reqcheck.models.request import Request
from reqcheck.testcase import Test
from reqcheck.testing.factories import ResponseFactory


class RespondedFn(Protocol):
    """Protocol for the function creating a test with a response."""

    def __call__(
        self,
        status: int = 200,
        body: bytes = b"",
        headers: Mapping[str, str] | list[tuple[str, str]] | None = None,
        **kwargs: Any,
    ) -> Test:
        """Create a test which received the given response."""


@pytest.fixture
def responded() -> RespondedFn:
    """Return a function to create tests which already got a response."""

    def _responded(
        status: int = 200,
        body: bytes = b"",
        headers: Mapping[str, str] | list[tuple[str, str]] | None = None,
        **kwargs: Any,
    ) -> Test:
        test = Test(name="check", request=Request(url="http://www.example.org/"))
        test.response = ResponseFactory.build(
            status=status,
            body=body,
            headers=CIMultiDictProxy(CIMultiDict(headers or {})),
            **kwargs,
        )
        return test

    return _responded
