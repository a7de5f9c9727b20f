"""Extraction of values from a completed test for use as variables elsewhere."""

import json
import re
from abc import abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal, TypeVar

from pydantic import Field, ValidationError

from reqcheck.checks.registry import possible_names
from reqcheck.errors import BadBody, CompileError, ReqcheckError, UnknownCheckError
from reqcheck.models.base import Model
from reqcheck.models.result import Response

if TYPE_CHECKING:
    from reqcheck.testcase import Test


class ExtractionError(ReqcheckError):
    """Raised when an extractor cannot find its value."""


class Extractor(Model):
    """Reads one value out of the outcome of a test.

    The ``extractor`` field holds the registered name and is the
    discriminator of the serialized form.
    """

    extractor: str

    @abstractmethod
    def extract(self, test: "Test") -> str:
        """Return the extracted value.

        Raises:
            ReqcheckError: If the value cannot be extracted

        """


EXTRACTOR_REGISTRY: dict[str, type[Extractor]] = {}

E = TypeVar("E", bound=type[Extractor])


def register_extractor(cls: E) -> E:
    EXTRACTOR_REGISTRY[cls.model_fields["extractor"].default] = cls
    return cls


def load_extractor(data: Mapping[str, Any] | Extractor) -> Extractor:
    """Construct an extractor from its serialized form.

    Raises:
        UnknownCheckError: If the discriminator names no registered extractor
        CompileError: If the fields do not validate

    """
    if isinstance(data, Extractor):
        return data
    name = str(data.get("extractor", ""))
    if (cls := EXTRACTOR_REGISTRY.get(name)) is None:
        raise UnknownCheckError(
            "extractor", name, possible_names(name, EXTRACTOR_REGISTRY)
        )
    try:
        return cls.model_validate(data)
    except ValidationError as err:
        raise CompileError(f"problems constructing extractor {name}: {err}") from err


def dump_extractor(extractor: Extractor) -> dict[str, Any]:
    fields = extractor.model_dump(mode="json", exclude_defaults=True)
    return {"extractor": extractor.extractor} | fields


def _response(test: "Test") -> Response:
    if test.response is None:
        raise ExtractionError("no response to extract from")
    if test.response.body_error is not None:
        raise BadBody()
    return test.response


@register_extractor
class BodyExtractor(Extractor):
    """Extracts a submatch of a regular expression from the body.

    Submatch 0 is the whole match.
    """

    extractor: Literal["BodyExtractor"] = "BodyExtractor"
    regexp: str = Field(..., description="Regular expression to apply")
    submatch: int = Field(default=0, ge=0, description="Group to extract")

    def extract(self, test: "Test") -> str:
        body = _response(test).text
        try:
            pattern = re.compile(self.regexp)
        except re.error as err:
            raise ExtractionError(f"bad regexp {self.regexp!r}: {err}") from err
        match = pattern.search(body)
        if match is None:
            raise ExtractionError(f"no match found in {body[:200]!r}")
        if self.submatch > pattern.groups:
            raise ExtractionError(
                f"got only {pattern.groups} submatches in {match.group(0)!r}"
            )
        return match.group(self.submatch) or ""


@register_extractor
class JSONExtractor(Extractor):
    """Extracts an element of a JSON body.

    Element is a path like 'data.items.0.name'; the empty path selects the
    whole document. Strings are returned unquoted, null as the empty string
    and everything else as compact JSON.
    """

    extractor: Literal["JSONExtractor"] = "JSONExtractor"
    element: str = Field(default="", description="Path to the element")
    sep: str = Field(default=".", min_length=1, description="Path separator")

    def extract(self, test: "Test") -> str:
        try:
            value: Any = json.loads(_response(test).body)
        except ValueError as err:
            raise ExtractionError(f"body is no JSON: {err}") from err

        for key in self.element.split(self.sep) if self.element else []:
            match value:
                case dict() if key in value:
                    value = value[key]
                case list() if key.isdigit() and int(key) < len(value):
                    value = value[int(key)]
                case _:
                    raise ExtractionError(f"element {self.element} not found")

        match value:
            case None:
                return ""
            case str():
                return value
            case _:
                return json.dumps(value, separators=(",", ":"))


@register_extractor
class CookieExtractor(Extractor):
    """Extracts the value of a cookie set by the response."""

    extractor: Literal["CookieExtractor"] = "CookieExtractor"
    name: str = Field(..., description="Name of the cookie")

    def extract(self, test: "Test") -> str:
        if test.response is None:
            raise ExtractionError("no response to extract from")
        cookies = test.response.cookies()
        if self.name not in cookies:
            raise ExtractionError(f"cookie {self.name} not received")
        return cookies[self.name].value


@register_extractor
class HeaderExtractor(Extractor):
    """Extracts the first value of a response header."""

    extractor: Literal["HeaderExtractor"] = "HeaderExtractor"
    header: str = Field(..., description="Name of the header")

    def extract(self, test: "Test") -> str:
        if test.response is None:
            raise ExtractionError("no response to extract from")
        if (value := test.response.headers.get(self.header)) is None:
            raise ExtractionError(f"header {self.header} not received")
        return value


@register_extractor
class SetVariable(Extractor):
    """Sets a variable to a constant, possibly templated, value."""

    extractor: Literal["SetVariable"] = "SetVariable"
    to: str = Field(default="", description="The value")

    def extract(self, test: "Test") -> str:
        return self.to
