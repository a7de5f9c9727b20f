"""Registry of check types and the serialized form of check lists."""

from collections.abc import Iterable, Mapping, Sequence
from typing import Annotated, Any, TypeVar

from pydantic import BeforeValidator, PlainSerializer, ValidationError

from reqcheck.checks.base import Check
from reqcheck.errors import CompileError, UnknownCheckError

CHECK_REGISTRY: dict[str, type[Check]] = {}

C = TypeVar("C", bound=type[Check])


def register_check(cls: C) -> C:
    """Register a check class under the default of its ``check`` field."""
    name = cls.model_fields["check"].default
    if not isinstance(name, str) or not name:
        raise TypeError(f"{cls.__name__} lacks a default for its check field")
    CHECK_REGISTRY[name] = cls
    return cls


def damerau_levenshtein(s1: str, s2: str) -> int:
    """Edit distance of s1 and s2 allowing transpositions of adjacent characters."""
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    maxdist = len(s1) + len(s2)
    d = [[0] * (len(s2) + 2) for _ in range(len(s1) + 2)]
    d[0][0] = maxdist
    for i in range(len(s1) + 1):
        d[i + 1][0] = maxdist
        d[i + 1][1] = i
    for j in range(len(s2) + 1):
        d[0][j + 1] = maxdist
        d[1][j + 1] = j

    seen: dict[str, int] = {}
    for i in range(1, len(s1) + 1):
        db = 0
        for j in range(1, len(s2) + 1):
            k = seen.get(s2[j - 1], 0)
            last = db
            cost = 1
            if s1[i - 1] == s2[j - 1]:
                cost = 0
                db = j
            d[i + 1][j + 1] = min(
                d[i][j] + cost,  # substitution
                d[i + 1][j] + 1,  # insertion
                d[i][j + 1] + 1,  # deletion
                d[k][last] + (i - k - 1) + 1 + (j - last - 1),  # transposition
            )
        seen[s1[i - 1]] = i

    return d[len(s1) + 1][len(s2) + 1]


def possible_names(name: str, valid: Iterable[str]) -> list[str]:
    """Sorted names from valid within distance 2 of name, ignoring case."""
    upper = name.upper()
    return sorted(n for n in valid if damerau_levenshtein(n.upper(), upper) <= 2)


def load_check(data: Mapping[str, Any] | Check) -> Check:
    """Construct a check from its serialized form.

    Raises:
        UnknownCheckError: If the discriminator names no registered check
        CompileError: If the fields do not validate

    """
    if isinstance(data, Check):
        return data
    name = str(data.get("check", ""))
    if (cls := CHECK_REGISTRY.get(name)) is None:
        raise UnknownCheckError("check", name, possible_names(name, CHECK_REGISTRY))
    try:
        return cls.model_validate(data)
    except ValidationError as err:
        raise CompileError(f"problems constructing check {name}: {err}") from err


def load_checks(items: Sequence[Mapping[str, Any] | Check]) -> list[Check]:
    return [load_check(item) for item in items]


def dump_check(check: Check) -> dict[str, Any]:
    """Serialize check to a mapping keyed by its discriminator and fields."""
    fields = check.model_dump(mode="json", by_alias=True, exclude_defaults=True)
    return {"check": check.check} | fields


def dump_checks(checks: Iterable[Check]) -> list[dict[str, Any]]:
    return [dump_check(check) for check in checks]


CheckList = Annotated[
    list[Check],
    BeforeValidator(load_checks),
    PlainSerializer(dump_checks, return_type=list[dict[str, Any]]),
]
