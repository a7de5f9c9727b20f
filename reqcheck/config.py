"""Client configuration threaded into the request compiler and performers."""

from pydantic import Field

from reqcheck.models.base import Model

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 6.1; WOW64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/36.0.1985.143 Safari/537.36"
)

DEFAULT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
)


class ClientConfig(Model):
    """Configuration shared by all tests run with the same client settings.

    Frozen, so a single instance can serve as default of the compiler and
    the performers.
    """

    user_agent: str = DEFAULT_USER_AGENT
    accept: str = DEFAULT_ACCEPT
    timeout: float = Field(default=10.0, gt=0, description="Default timeout (s)")
    max_redirects: int = Field(default=10, ge=0)
    verify_ssl: bool = True


DEFAULT_CONFIG = ClientConfig()
