"""Checks, their registry and serialized form."""

from reqcheck.checks.base import Check
from reqcheck.checks.body import Body, UTF8Encoded
from reqcheck.checks.boolean import AnyOne, NoneOf
from reqcheck.checks.condition import Condition
from reqcheck.checks.header import ContentType, Header
from reqcheck.checks.redirect import Redirect
from reqcheck.checks.registry import (
    CHECK_REGISTRY,
    CheckList,
    dump_check,
    dump_checks,
    load_check,
    load_checks,
    register_check,
)
from reqcheck.checks.status import NoServerError, StatusCode
from reqcheck.checks.timing import ResponseTime

__all__ = [
    "CHECK_REGISTRY",
    "AnyOne",
    "Body",
    "Check",
    "CheckList",
    "Condition",
    "ContentType",
    "Header",
    "NoServerError",
    "NoneOf",
    "Redirect",
    "ResponseTime",
    "StatusCode",
    "UTF8Encoded",
    "dump_check",
    "dump_checks",
    "load_check",
    "load_checks",
    "register_check",
]
