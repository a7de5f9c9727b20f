"""Tests for statuses."""

from reqcheck.models.status import Status, worst


def test_ordering() -> None:
    """Statuses are ordered by severity."""
    assert (
        Status.NOT_RUN
        < Status.PASS
        < Status.SKIPPED
        < Status.FAIL
        < Status.ERROR
        < Status.BOGUS
    )


def test_names() -> None:
    """Statuses print with their display names."""
    assert [str(status) for status in Status] == [
        "NotRun",
        "Pass",
        "Skipped",
        "Fail",
        "Error",
        "Bogus",
    ]


def test_worst() -> None:
    """The most severe status wins, nothing at all has not run."""
    assert worst([Status.PASS, Status.FAIL, Status.SKIPPED]) == Status.FAIL
    assert worst([]) == Status.NOT_RUN
