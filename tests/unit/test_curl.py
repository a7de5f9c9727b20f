"""Tests for curl command lines."""

from reqcheck.compiler import RequestCompiler
from reqcheck.config import ClientConfig
from reqcheck.curl import curl_call, escape_for_bash, nontrivial_data
from reqcheck.models.request import Request

compiler = RequestCompiler(config=ClientConfig(user_agent="reqcheck", accept="*/*"))


def test_escape_for_bash() -> None:
    """Single quotes are spliced in double quotes."""
    assert escape_for_bash("foo'bar") == "'foo'\"'\"'bar'"
    assert escape_for_bash("plain") == "'plain'"


def test_nontrivial_data() -> None:
    """Control characters make data nontrivial."""
    assert nontrivial_data("a\nb")
    assert not nontrivial_data("a b")


def test_simple_get() -> None:
    """A GET lists its headers and ends with the URL."""
    call = curl_call(compiler.compile(Request(url="http://h/p?q=1")))

    assert call == (
        "curl -X GET -H 'Accept: */*' -H 'User-Agent: reqcheck' 'http://h/p?q=1'"
    )


def test_body_params_and_auth() -> None:
    """Body parameters use -d and credentials -u."""
    request = Request(
        method="POST",
        url="http://h/",
        params={"a": ["1"], "f": ["@file:/tmp/x"]},
        params_as="body",
        basic_auth_user="user",
        basic_auth_pass="pass",
    )

    call = curl_call(compiler.compile(request))

    assert "Content-Type" not in call
    assert "Authorization" not in call
    assert " -u 'user:pass'" in call
    assert " -d 'a=1' -d 'f=@/tmp/x'" in call


def test_multipart_params() -> None:
    """Multipart parameters use -F."""
    request = Request(
        method="POST", url="http://h/", params={"a": ["1"]}, params_as="multipart"
    )

    assert " -F 'a=1' " in curl_call(compiler.compile(request))


def test_nontrivial_body_goes_through_file() -> None:
    """Bodies with control characters are written with printf first."""
    request = Request(method="PUT", url="http://h/", body="line1\nline2")

    call = curl_call(compiler.compile(request))

    assert call.startswith('tmp=$(mktemp)\nprintf "line1\\x0aline2" > $tmp\ncurl')
    assert ' --data-binary "@$tmp" ' in call


def test_cookies() -> None:
    """Request cookies are sent in a Cookie header."""
    request = Request(url="http://h/", cookies=[{"name": "sid", "value": "abc"}])

    assert " -H 'Cookie: sid=abc' " in curl_call(compiler.compile(request))
