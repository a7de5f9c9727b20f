"""Verdicts of checks, tests and collections."""

from collections.abc import Iterable
from enum import IntEnum, StrEnum


class Status(IntEnum):
    """Outcome of a check, a test or a collection, ordered by severity."""

    NOT_RUN = 0
    PASS = 1
    SKIPPED = 2
    FAIL = 3
    ERROR = 4
    BOGUS = 5

    def __str__(self) -> str:
        return STATUS_NAMES[self]


STATUS_NAMES = {
    Status.NOT_RUN: "NotRun",
    Status.PASS: "Pass",
    Status.SKIPPED: "Skipped",
    Status.FAIL: "Fail",
    Status.ERROR: "Error",
    Status.BOGUS: "Bogus",
}


def worst(statuses: Iterable[Status]) -> Status:
    """Return the most severe status, NOT_RUN for no statuses at all."""
    return max(statuses, default=Status.NOT_RUN)


class Criticality(StrEnum):
    """Business severity of a test failure; not interpreted by the engine."""

    DEFAULT = "default"
    IGNORE = "ignore"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    CRITICAL = "critical"
