"""Tests for variable substitution."""

from datetime import UTC, datetime

import pytest

from reqcheck.checks.status import StatusCode
from reqcheck.errors import TemplateError
from reqcheck.models.request import Request
from reqcheck.random_values import RandomSource
from reqcheck.templating import (
    Replacer,
    find_special_variables,
    lcm_of,
    merge_variables,
    now_value,
    repeat,
    special_variables,
)
from reqcheck.testcase import Test

NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


class TestReplacer:
    """Tests for Replacer."""

    def test_replaces_bound_variables(self) -> None:
        """Bound placeholders are replaced by their values."""
        replacer = Replacer({"HOST": "example.org", "ID": "7"})

        assert replacer.replace("http://{{HOST}}/item/{{ID}}") == (
            "http://example.org/item/7"
        )

    def test_leaves_unbound_placeholders_verbatim(self) -> None:
        """Unbound placeholders survive for a later substitution."""
        replacer = Replacer({"HOST": "example.org"})

        assert replacer.replace("{{HOST}}/{{PATH}}") == "example.org/{{PATH}}"

    def test_replaces_in_a_single_pass(self) -> None:
        """Values are not substituted again."""
        replacer = Replacer({"A": "{{B}}", "B": "b"})

        assert replacer.replace("{{A}}{{B}}") == "{{B}}b"

    def test_integer_substitution(self) -> None:
        """#N keys replace integer fields equal to N."""
        replacer = Replacer({"#200": "404"})

        check = replacer.substitute(StatusCode(expect=200))

        assert check.expect == 404
        assert replacer.replace_int(201) == 201

    def test_bad_integer_substitution_raises(self) -> None:
        """Non-numeric values for #N keys are rejected."""
        with pytest.raises(TemplateError, match="bad integer substitution"):
            Replacer({"#200": "many"})

    def test_substitute_returns_copy(self) -> None:
        """Substituting a model leaves the original untouched."""
        request = Request(
            url="http://{{HOST}}/",
            params={"q": ["{{TERM}}"]},
            header={"X-Term": ["{{TERM}}"]},
        )
        replacer = Replacer({"HOST": "h", "TERM": "t"})

        copy = replacer.substitute(request)

        assert copy.url == "http://h/"
        assert copy.params == {"q": ["t"]}
        assert copy.header == {"X-Term": ["t"]}
        assert request.url == "http://{{HOST}}/"

    def test_mapping_keys_not_substituted(self) -> None:
        """Only the values of mappings are substituted."""
        replacer = Replacer({"K": "v"})

        assert replacer.substitute({"{{K}}": "{{K}}"}) == {"{{K}}": "v"}


class TestSpecialVariables:
    """Tests for NOW and RANDOM placeholders."""

    def test_finds_sorted_special_names(self) -> None:
        """Special placeholders are collected without braces and sorted."""
        request = Request(
            url="http://h/{{RANDOM NUMBER 5}}",
            body='{{NOW + 2d | "%Y"}} {{HOST}} {{RANDOM NUMBER 5}}',
        )

        names = find_special_variables("{{NOW}}", request)

        assert names == ["NOW", 'NOW + 2d | "%Y"', "RANDOM NUMBER 5"]

    def test_ignores_lookalike_names(self) -> None:
        """Names merely starting with NOW are ordinary variables."""
        assert find_special_variables("{{NOWHERE}} {{RANDOMIZED}}") == []

    def test_now_default_layout(self) -> None:
        """NOW is formatted like an HTTP date."""
        assert now_value("NOW", NOW) == "Mon, 15 Jan 2024 12:00:00 GMT"

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ('NOW + 2d | "%Y-%m-%d"', "2024-01-17"),
            ('NOW - 90m | "%H:%M"', "10:30"),
            ('NOW + 30s | "%H:%M:%S"', "12:00:30"),
            ('NOW-3h|"%H"', "09"),
        ],
    )
    def test_now_offsets_and_layouts(self, name: str, expected: str) -> None:
        """Offsets shift the time, layouts format it."""
        assert now_value(name, NOW) == expected

    def test_malformed_now_raises(self) -> None:
        """Unparsable NOW placeholders are template errors."""
        with pytest.raises(TemplateError, match="malformed time placeholder"):
            now_value("NOW + soon", NOW)

    def test_special_values_are_generated(self) -> None:
        """Each special name gets a value."""
        values = special_variables(
            ["NOW", "RANDOM NUMBER 3-3"], now=NOW, source=RandomSource()
        )

        assert values == {
            "NOW": "Mon, 15 Jan 2024 12:00:00 GMT",
            "RANDOM NUMBER 3-3": "3",
        }

    def test_same_seed_same_values(self) -> None:
        """A seeded source produces reproducible values."""
        names = ["RANDOM EMAIL", "RANDOM NUMBER 1000", "RANDOM TEXT en 10"]

        first = special_variables(names, now=NOW, source=RandomSource(seed=1))
        second = special_variables(names, now=NOW, source=RandomSource(seed=1))

        assert first == second


class TestMergeVariables:
    """Tests for merge_variables."""

    def test_later_mappings_take_precedence(self) -> None:
        """Values of later mappings override earlier ones."""
        merged = merge_variables({"A": "1", "B": "1"}, None, {"B": "2"})

        assert merged == {"A": "1", "B": "2"}


class TestRepeat:
    """Tests for unrolling tests over variable values."""

    def test_lcm_of_value_counts(self) -> None:
        """The number of repetitions covers every combination cycle."""
        assert lcm_of({"a": ["1", "2"], "b": ["x", "y", "z"]}) == 6

    def test_repeat_cycles_values(self) -> None:
        """Each repetition substitutes the next value of every variable."""
        test = Test(
            name="fetch {{ID}}",
            description="Fetch",
            request=Request(url="http://h/{{ID}}"),
        )

        repetitions = repeat(test, 3, {"ID": ["1", "2"]})

        assert [rep.request.url for rep in repetitions] == [
            "http://h/1",
            "http://h/2",
            "http://h/1",
        ]
        assert repetitions[1].name == "fetch 2"
        assert repetitions[1].description == 'Fetch\nVar ID="2"'
        assert test.request.url == "http://h/{{ID}}"
