"""Performers of compiled requests, one per URL scheme."""

from reqcheck.performers.base import Performer
from reqcheck.performers.bash import BashPerformer
from reqcheck.performers.file import FilePerformer
from reqcheck.performers.http import HttpPerformer
from reqcheck.performers.loading import PerformerNotFoundError, get_performer
from reqcheck.performers.sql import SqlPerformer

__all__ = [
    "BashPerformer",
    "FilePerformer",
    "HttpPerformer",
    "Performer",
    "PerformerNotFoundError",
    "SqlPerformer",
    "get_performer",
]
