"""Models for the declarative request and its execution policy."""

from collections.abc import Mapping, Sequence
from typing import Literal

from pydantic import Field

from reqcheck.models.base import Model

ParamsAs = Literal["", "URL", "body", "multipart"]


class Cookie(Model):
    """A cookie sent with the request."""

    name: str = Field(..., description="Cookie name")
    value: str = Field(default="", description="Cookie value")


class Request(Model):
    """Declarative description of the operation to perform."""

    method: str = Field(default="", description="Request method, empty means GET")
    url: str = Field(..., description="URL, the scheme selects the performer")
    params: Mapping[str, Sequence[str]] = Field(
        default_factory=dict,
        description="Parameters, values may reference files via @file:/@vfile:",
    )
    params_as: ParamsAs = Field(
        default="", description="How parameters are transmitted, empty means URL"
    )
    header: Mapping[str, Sequence[str]] = Field(
        default_factory=dict, description="Request specific headers"
    )
    cookies: Sequence[Cookie] = Field(
        default_factory=list, description="Cookies to send"
    )
    body: str = Field(default="", description="Literal body or @file:/@vfile:")
    follow_redirects: bool = Field(default=False, description="Follow redirects")
    basic_auth_user: str = Field(default="", description="Basic auth user name")
    basic_auth_pass: str = Field(default="", description="Basic auth password")
    chunked: bool = Field(default=False, description="Use chunked transfer encoding")
    timeout: float = Field(
        default=0, description="Timeout in seconds, zero means configured default"
    )


class Execution(Model):
    """Retry policy and sleeps around the operation."""

    tries: int = Field(
        default=0,
        description="Maximum number of tries; 0 and 1 mean one, negative skips",
    )
    wait: float = Field(default=0, description="Seconds to wait between tries")
    pre_sleep: float = Field(default=0, description="Seconds before the first try")
    inter_sleep: float = Field(
        default=0, description="Seconds between operation and checks"
    )
    post_sleep: float = Field(default=0, description="Seconds after the last try")
    verbosity: int = Field(default=0, description="Logging verbosity level")

    def skip(self) -> bool:
        """Return whether the test is disabled."""
        return self.tries < 0
