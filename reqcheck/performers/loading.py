"""Selection of the performer by URL scheme."""

from collections.abc import Mapping

from reqcheck.config import DEFAULT_CONFIG, ClientConfig
from reqcheck.errors import CompileError
from reqcheck.performers.base import Performer
from reqcheck.performers.bash import BashPerformer
from reqcheck.performers.file import FilePerformer
from reqcheck.performers.http import HttpPerformer
from reqcheck.performers.sql import SqlPerformer

PERFORMERS: Mapping[str, type[Performer]] = {
    "http": HttpPerformer,
    "https": HttpPerformer,
    "file": FilePerformer,
    "bash": BashPerformer,
    "sql": SqlPerformer,
}


class PerformerNotFoundError(CompileError):
    """Raised when no performer handles a URL scheme."""


def get_performer(scheme: str, config: ClientConfig = DEFAULT_CONFIG) -> Performer:
    """Get the performer for a URL scheme.

    Args:
        scheme: The scheme of the compiled URL (e.g., "https", "bash")
        config: Client configuration handed to the performer

    Returns:
        The performer instance

    Raises:
        PerformerNotFoundError: If no performer handles the scheme

    """
    if (performer_cls := PERFORMERS.get(scheme)) is None:
        raise PerformerNotFoundError(
            f"unrecognized URL scheme '{scheme}'. Available schemes: {sorted(PERFORMERS)}"
        )
    return performer_cls(config=config)
