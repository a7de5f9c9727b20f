"""Tests for the test state machine."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import pytest
from aiohttp.abc import AbstractCookieJar

from reqcheck.checks import AnyOne, Body, Condition, Header, NoneOf, StatusCode
from reqcheck.checks.base import Check
from reqcheck.compiler import CompiledRequest
from reqcheck.errors import (
    CompileError,
    ErrorList,
    MalformedCheck,
    ReqcheckError,
    TransportError,
)
from reqcheck.models.request import Request
from reqcheck.models.result import Response
from reqcheck.models.status import Status
from reqcheck.performers.base import Performer
from reqcheck.testcase import Test
from reqcheck.testing.factories import ExecutionFactory, ResponseFactory

MakeTest = Callable[..., Test]


@dataclass(frozen=True, kw_only=True)
class MockPerformer(Performer):
    """Performer returning configured responses one after the other."""

    responses: Sequence[Response | Exception] = field(default_factory=list)
    performed: list[CompiledRequest] = field(default_factory=list)

    async def perform(
        self, compiled: CompiledRequest, jar: AbstractCookieJar | None = None
    ) -> Response:
        """Return or raise the next configured outcome."""
        outcome = self.responses[min(len(self.performed), len(self.responses) - 1)]
        self.performed.append(compiled)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def use_performer(monkeypatch: pytest.MonkeyPatch) -> Callable[..., MockPerformer]:
    """Return a function installing a mock performer for all schemes."""

    def _use(*responses: Response | Exception) -> MockPerformer:
        performer = MockPerformer(responses=list(responses))
        monkeypatch.setattr(
            "reqcheck.testcase.get_performer", lambda scheme, config: performer
        )
        return performer

    return _use


def respond(status: int, body: bytes = b"") -> Response:
    return ResponseFactory.build(status=status, body=body)


class Unusable(Check):
    """Check which cannot be evaluated."""

    check: Literal["Unusable"] = "Unusable"

    def execute(self, test: Test) -> None:
        raise MalformedCheck("cannot evaluate")


class TestRun:
    """Tests for a single try."""

    async def test_passes(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """All checks passing make the test pass."""
        use_performer(respond(200, b"hello world"))
        test = make_test(
            checks=[StatusCode(), Body(condition=Condition(contains="world"))]
        )

        await test.run()

        assert test.status == Status.PASS
        assert test.error is None
        assert test.tries == 1
        assert [r.status for r in test.check_results] == [Status.PASS, Status.PASS]
        assert test.check_results[1].json == (
            '{"check": "Body", "condition": {"contains": "world"}}'
        )

    async def test_without_checks_passes(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """A test without checks passes once the request was performed."""
        use_performer(respond(500))
        test = make_test()

        await test.run()

        assert test.status == Status.PASS

    async def test_failing_check(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """A failing check fails the test and names the check."""
        use_performer(respond(200, b"hello"))
        test = make_test(
            checks=[StatusCode(), Body(condition=Condition(contains="world"))]
        )

        await test.run()

        assert test.status == Status.FAIL
        assert isinstance(test.error, ErrorList)
        assert test.error.as_strings() == ["Check Body: not found"]
        assert test.check_results[1].status == Status.FAIL

    async def test_status_200_failure_skips_remaining_checks(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """If the first check wants 200 and fails the others are skipped."""
        use_performer(respond(404, b"hello"))
        test = make_test(
            checks=[
                StatusCode(),
                Body(condition=Condition(contains="world")),
                Header(header="X-Missing"),
            ]
        )

        await test.run()

        assert test.status == Status.FAIL
        assert [r.status for r in test.check_results] == [
            Status.FAIL,
            Status.SKIPPED,
            Status.SKIPPED,
        ]
        assert test.check_results[1].error is None
        assert isinstance(test.error, ErrorList)
        assert test.error.as_strings() == ["Check StatusCode: got 404, want 200"]

    async def test_status_200_failure_after_failed_try(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """Checks skipped in the last try carry no error of an earlier try."""
        use_performer(respond(200, b"hello"), respond(404))
        test = make_test(
            checks=[StatusCode(), Body(condition=Condition(contains="world"))],
            execution=ExecutionFactory.build(tries=2),
        )

        await test.run()

        assert test.tries == 2
        assert test.status == Status.FAIL
        assert test.check_results[0].status == Status.FAIL
        assert test.check_results[1].status == Status.SKIPPED
        assert test.check_results[1].error is None

    async def test_other_status_failure_runs_all_checks(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """Only a wanted 200 aborts the check list."""
        use_performer(respond(404, b"hello"))
        test = make_test(
            checks=[StatusCode(expect=2), Body(condition=Condition(contains="world"))]
        )

        await test.run()

        assert [r.status for r in test.check_results] == [Status.FAIL, Status.FAIL]

    async def test_transport_error(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """A failed operation is an error and no check runs."""
        use_performer(TransportError("connection refused"))
        test = make_test(checks=[StatusCode()])

        await test.run()

        assert test.status == Status.ERROR
        assert str(test.error) == "connection refused"
        assert test.response is None
        assert test.check_results[0].status == Status.NOT_RUN

    async def test_malformed_check_is_bogus(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """Checks failing preparation make the test bogus without performing it."""
        performer = use_performer(respond(200))
        test = make_test(checks=[Body(condition=Condition(regexp="("))])

        with pytest.raises(CompileError, match="preparing checks"):
            await test.run()

        assert test.status == Status.BOGUS
        assert test.error is not None
        assert performer.performed == []

    @pytest.mark.parametrize(
        "combinator",
        [
            AnyOne(of=[StatusCode(expect=404), Unusable()]),
            NoneOf(of=[StatusCode(expect=404), Unusable()]),
        ],
    )
    async def test_malformed_check_in_combinator_is_bogus(
        self,
        make_test: MakeTest,
        use_performer: Callable[..., MockPerformer],
        combinator: Check,
    ) -> None:
        """A sub-check which cannot be evaluated makes the test bogus."""
        use_performer(respond(200))
        test = make_test(checks=[combinator])

        await test.run()

        assert test.check_results[0].status == Status.BOGUS
        assert test.status == Status.BOGUS

    async def test_binary_multipart_upload(
        self,
        make_test: MakeTest,
        use_performer: Callable[..., MockPerformer],
        tmp_path: Path,
    ) -> None:
        """Binary files are uploaded unchanged."""
        image = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
        path = tmp_path / "img.png"
        path.write_bytes(image)
        performer = use_performer(respond(200))
        test = make_test(
            request=Request(
                method="POST",
                url="http://h/p",
                params={"f": [f"@file:{path}"]},
                params_as="multipart",
            )
        )

        await test.run()

        assert test.status == Status.PASS
        assert image in performer.performed[0].body

    async def test_bad_request_is_bogus(self, make_test: MakeTest) -> None:
        """Uncompilable requests make the test bogus."""
        test = make_test(request=Request(url="gopher://h/"))

        with pytest.raises(CompileError, match="unrecognized URL scheme 'gopher'"):
            await test.run()

        assert test.status == Status.BOGUS

    async def test_substitutes_variables(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """Run variables and test variables are substituted into the request."""
        performer = use_performer(respond(200))
        test = make_test(
            request=Request(url="http://{{HOST}}/{{PATH}}"),
            variables={"PATH": "own"},
        )

        await test.run({"HOST": "h", "PATH": "run"})

        assert str(performer.performed[0].url) == "http://h/own"
        assert test.request.url == "http://{{HOST}}/{{PATH}}"


class TestRetry:
    """Tests for the retry policy."""

    async def test_polls_until_pass(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """A test is retried until it passes."""
        performer = use_performer(respond(503), respond(503), respond(503), respond(200))
        test = make_test(checks=[StatusCode()], execution=ExecutionFactory.build(tries=4))

        await test.run()

        assert test.status == Status.PASS
        assert test.tries == 4
        assert test.error is None
        assert len(performer.performed) == 4

    async def test_gives_up_after_max_tries(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """The outcome of the last try is kept."""
        use_performer(respond(503))
        test = make_test(checks=[StatusCode()], execution=ExecutionFactory.build(tries=3))

        await test.run()

        assert test.status == Status.FAIL
        assert test.tries == 3

    async def test_retries_transport_errors(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """Transport errors are retried like failures."""
        use_performer(TransportError("refused"), respond(200))
        test = make_test(checks=[StatusCode()], execution=ExecutionFactory.build(tries=2))

        await test.run()

        assert test.status == Status.PASS
        assert test.tries == 2

    async def test_negative_tries_skip(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """A negative number of tries disables the test."""
        performer = use_performer(respond(200))
        test = make_test(checks=[StatusCode()], execution=ExecutionFactory.build(tries=-1))

        await test.run()

        assert test.status == Status.SKIPPED
        assert test.tries == 0
        assert performer.performed == []


class TestCurlCall:
    """Tests for Test.curl_call."""

    async def test_after_run(
        self, make_test: MakeTest, use_performer: Callable[..., MockPerformer]
    ) -> None:
        """The last compiled request is rendered."""
        use_performer(respond(200))
        test = make_test(request=Request(url="http://h/p"))
        await test.run()

        assert test.curl_call().endswith(" 'http://h/p'")

    def test_before_run(self, make_test: MakeTest) -> None:
        """Tests never compiled have no curl call."""
        with pytest.raises(ReqcheckError, match="never compiled"):
            make_test().curl_call()
