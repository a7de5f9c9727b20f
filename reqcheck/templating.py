"""Variable substitution.

Placeholders of the form ``{{NAME}}`` are replaced by the value bound to
NAME; unbound placeholders are left verbatim so that partially substituted
templates can be substituted again later. Two special forms produce values
on the fly:

    {{NOW [+|- <n><s|m|h|d>] [| "<strftime layout>"]}}
    {{RANDOM NUMBER [<min>-]<max> [<fmt>]}}
    {{RANDOM TEXT [<lang>] [<min>-]<max>}}
    {{RANDOM EMAIL [<domain>]}}

Keys of the form ``#123`` bind integers: every integer field equal to 123
of a substituted model is replaced.
"""

import dataclasses
import json
import math
import re
from collections.abc import Iterator, Mapping, Sequence
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel

from reqcheck.errors import TemplateError
from reqcheck.random_values import DEFAULT_RANDOM, RandomSource, random_value

T = TypeVar("T")

if TYPE_CHECKING:
    from reqcheck.testcase import Test

DEFAULT_TIME_LAYOUT = "%a, %d %b %Y %H:%M:%S GMT"

_SPECIAL_RE = re.compile(r"\{\{((?:NOW|RANDOM)(?![0-9A-Za-z_]).*?)\}\}", re.DOTALL)
_NOW_RE = re.compile(
    r'NOW *(?:(?P<sign>[+-]) *(?P<count>[1-9][0-9]*)(?P<unit>[smhd]))?'
    r' *(?:\| *"(?P<layout>.*)")? *',
    re.DOTALL,
)
_NOW_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


class Replacer:
    """Substitutes bound variables into strings, integers and whole models."""

    def __init__(self, variables: Mapping[str, str] | None = None) -> None:
        self.strings: dict[str, str] = {}
        self.integers: dict[int, int] = {}
        for key, value in (variables or {}).items():
            if key.startswith("#"):
                try:
                    self.integers[int(key[1:])] = int(value)
                except ValueError as err:
                    raise TemplateError(
                        f"bad integer substitution {key}={value!r}"
                    ) from err
            else:
                self.strings["{{" + key + "}}"] = value

        # Longest placeholder first so that the single pass is deterministic.
        placeholders = sorted(self.strings, key=len, reverse=True)
        self._pattern = (
            re.compile("|".join(map(re.escape, placeholders))) if placeholders else None
        )

    def replace(self, text: str) -> str:
        if self._pattern is None or "{{" not in text:
            return text
        return self._pattern.sub(lambda m: self.strings[m.group(0)], text)

    def replace_int(self, value: int) -> int:
        return self.integers.get(value, value)

    def substitute(self, value: T) -> T:
        """Return a copy of value with all strings and integers substituted.

        Models, mappings and sequences are walked recursively; enums, floats
        and booleans are kept. Mapping keys are never substituted.
        """
        return self._substitute(value)

    def _substitute(self, value: Any) -> Any:
        match value:
            case Enum() | bool() | float() | None:
                return value
            case str():
                return self.replace(value)
            case int():
                return self.replace_int(value)
            case BaseModel():
                updates = {
                    name: self._substitute(getattr(value, name))
                    for name in type(value).model_fields
                }
                return value.model_copy(update=updates)
            case Mapping():
                return {key: self._substitute(item) for key, item in value.items()}
            case tuple():
                return tuple(self._substitute(item) for item in value)
            case list():
                return [self._substitute(item) for item in value]
            case _:
                return value


def iter_strings(value: Any) -> Iterator[str]:
    """Yield every string reachable from value (models, mappings, sequences)."""
    match value:
        case Enum():
            return
        case str():
            yield value
        case BaseModel():
            for name in type(value).model_fields:
                yield from iter_strings(getattr(value, name))
        case Mapping():
            for item in value.values():
                yield from iter_strings(item)
        case list() | tuple():
            for item in value:
                yield from iter_strings(item)


def find_special_variables(*values: Any) -> list[str]:
    """Return the sorted names of all NOW and RANDOM placeholders in values.

    The enclosing braces are not part of the names. The fixed order makes
    the assignment of random values reproducible.
    """
    names: set[str] = set()
    for value in values:
        for text in iter_strings(value):
            if "{{" in text:
                names.update(_SPECIAL_RE.findall(text))
    return sorted(names)


def now_value(name: str, now: datetime) -> str:
    match = _NOW_RE.fullmatch(name)
    if match is None:
        raise TemplateError(f"malformed time placeholder {{{{{name}}}}}")
    moment = now
    if match["unit"]:
        offset = int(match["count"]) * _NOW_UNITS[match["unit"]]
        moment = now - offset if match["sign"] == "-" else now + offset
    layout = match["layout"] or DEFAULT_TIME_LAYOUT
    try:
        return moment.strftime(layout)
    except ValueError as err:
        raise TemplateError(f"bad time layout {layout!r}: {err}") from err


def special_variables(
    names: Sequence[str],
    now: datetime | None = None,
    source: RandomSource = DEFAULT_RANDOM,
) -> dict[str, str]:
    """Produce values for the special variable names found in a test."""
    if now is None:
        now = datetime.now(UTC)
    values: dict[str, str] = {}
    for name in names:
        if name in values:
            continue
        if name.startswith("NOW"):
            values[name] = now_value(name, now)
        elif name.startswith("RANDOM"):
            values[name] = random_value(name, source)
        else:
            raise TemplateError(f"unknown special variable {name!r}")
    return values


def merge_variables(*mappings: Mapping[str, str] | None) -> dict[str, str]:
    """Merge variable mappings, later ones take precedence."""
    merged: dict[str, str] = {}
    for mapping in mappings:
        if mapping:
            merged.update(mapping)
    return merged


def substitute_test(test: "Test", replacer: Replacer) -> "Test":
    """Return a fresh copy of the test declaration with replacer applied."""
    return dataclasses.replace(
        test,
        name=replacer.replace(test.name),
        description=replacer.replace(test.description),
        request=replacer.substitute(test.request),
        checks=replacer.substitute(list(test.checks)),
        extractors=dict(test.extractors),
        variables={k: replacer.replace(v) for k, v in test.variables.items()},
    )


def lcm_of(variables: Mapping[str, Sequence[str]]) -> int:
    """Least common multiple of the number of values of all variables."""
    return math.lcm(*(len(values) for values in variables.values()))


def repeat(
    test: "Test", count: int, variables: Mapping[str, Sequence[str]]
) -> list["Test"]:
    """Unroll test count times, cycling through the values of each variable."""
    repetitions = []
    for index in range(count):
        current = {key: values[index % len(values)] for key, values in variables.items()}
        rep = substitute_test(test, Replacer(current))
        rep.description += "".join(
            f"\nVar {key}={json.dumps(value)}" for key, value in current.items()
        )
        repetitions.append(rep)
    return repetitions
