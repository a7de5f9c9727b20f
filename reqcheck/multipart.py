"""File-backed parameter values and multipart/form-data bodies."""

import mimetypes
import posixpath
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from reqcheck.errors import CompileError
from reqcheck.templating import Replacer

FILE_PREFIX = "@file:"
VFILE_PREFIX = "@vfile:"
DEFAULT_PART_TYPE = "application/octet-stream"


def is_file_value(value: str) -> bool:
    return value.startswith((FILE_PREFIX, VFILE_PREFIX))


def strip_file_prefix(value: str) -> str:
    """Turn '@file:path' and '@vfile:path' into curl's '@path'."""
    for prefix in (FILE_PREFIX, VFILE_PREFIX):
        if value.startswith(prefix):
            return "@" + value[len(prefix) :]
    return value


@dataclass(frozen=True, kw_only=True)
class FileData:
    """Resolved value of a parameter or body."""

    data: bytes
    basename: str = ""
    inline: bool = False


def file_data(value: str, replacer: Replacer | None = None) -> FileData:
    """Resolve a possibly file-backed value to its data and basename.

    Handled forms of value:

        @file:/path/to/thefile    raw bytes of the file, basename 'thefile'
        @vfile:/path/to/thefile   UTF-8 content of the file with variables
                                  substituted, basename 'thefile'
        @file:@name:inline-data   'inline-data' as is, basename 'name';
        @vfile:@name:inline-data  neither read from disk nor substituted
        anything-else             value as is, empty basename

    Raises:
        CompileError: If the filename is missing, the file cannot be read or
            a @vfile: is not UTF-8 text

    """
    if not is_file_value(value):
        return FileData(data=value.encode())

    kind, _, filename = value.partition(":")
    if not filename:
        raise CompileError(f"missing filename in {kind}: parameter")

    if filename.startswith("@") and ":" in filename:
        basename, _, data = filename[1:].partition(":")
        return FileData(data=data.encode(), basename=basename, inline=True)

    try:
        data = Path(filename).read_bytes()
    except OSError as err:
        raise CompileError(f"cannot read {filename}: {err}") from err
    if kind == VFILE_PREFIX[:-1] and replacer is not None:
        try:
            text = data.decode()
        except UnicodeDecodeError as err:
            raise CompileError(
                f"cannot substitute variables in {filename}: {err}"
            ) from err
        data = replacer.replace(text).encode()
    return FileData(data=data, basename=posixpath.basename(filename))


def _escape_quotes(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def part_content_type(file: FileData) -> str:
    """Content type of a file part.

    Derived from the extension of a file read from disk; inline data is
    always sent as application/octet-stream.
    """
    if file.inline or "." not in file.basename:
        return DEFAULT_PART_TYPE
    content_type, _ = mimetypes.guess_type(file.basename, strict=False)
    return content_type or DEFAULT_PART_TYPE


def multipart_body(
    params: Mapping[str, Sequence[str]],
    replacer: Replacer | None = None,
    boundary: str | None = None,
) -> tuple[bytes, str]:
    """Encode params as a multipart/form-data body.

    All plain parameters are written before the file parameters. A parameter
    without any value is sent as one empty field.

    Returns:
        The encoded body and the boundary to announce in the Content-Type

    """
    if boundary is None:
        boundary = uuid.uuid4().hex
    parts: list[bytes] = []

    def add_part(headers: Sequence[str], data: bytes) -> None:
        head = "".join(f"{line}\r\n" for line in headers)
        parts.append(f"--{boundary}\r\n{head}\r\n".encode() + data + b"\r\n")

    for name, values in params.items():
        for value in values or [""]:
            if is_file_value(value):
                continue
            add_part(
                [f'Content-Disposition: form-data; name="{_escape_quotes(name)}"'],
                value.encode(),
            )

    for name, values in params.items():
        for value in values:
            if not is_file_value(value):
                continue
            file = file_data(value, replacer)
            add_part(
                [
                    "Content-Disposition: form-data; "
                    f'name="{_escape_quotes(name)}"; '
                    f'filename="{_escape_quotes(file.basename)}"',
                    f"Content-Type: {part_content_type(file)}",
                ],
                file.data,
            )

    return b"".join(parts) + f"--{boundary}--\r\n".encode(), boundary
