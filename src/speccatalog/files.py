"""Turn user-supplied files into :class:`~speccatalog.models.SerializedFile` objects and text.

This module is the file decoding collaborator of the parsing service. It
owns all I/O so that the extractors stay pure functions of text:

* :func:`load_serialized_file` -- read a local file, a URL, or stdin (``-``)
  into a :class:`~speccatalog.models.SerializedFile`.
* :func:`decode_content` -- decode a serialized file's bytes as UTF-8.
* :func:`get_file_extension` / :func:`get_file_name_without_extension` --
  file-name helpers used by format detection and error specifications.
"""

from __future__ import annotations

import mimetypes
import sys
import time
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

import httpx

from speccatalog.exceptions import FileDecodeError
from speccatalog.models import SerializedFile


def get_file_extension(file_name: str) -> str:
    """Return the lower-cased extension of *file_name*, including the dot.

    Returns an empty string when the name has no extension. Only the last
    suffix counts, so ``api.v2.yaml`` yields ``.yaml``.
    """
    return PurePosixPath(file_name).suffix.lower()


def get_file_name_without_extension(file_name: str) -> str:
    """Return the base name of *file_name* with its last extension removed."""
    return PurePosixPath(file_name.replace("\\", "/")).stem


def decode_content(file: SerializedFile) -> str:
    """Decode the file's bytes as UTF-8 text, dropping a leading BOM.

    Raises:
        FileDecodeError: If the bytes are not valid UTF-8.
    """
    try:
        return file.content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FileDecodeError(
            f"File {file.name} is not valid UTF-8 text: {exc}"
        ) from exc


def serialized_file_from_bytes(
    name: str, content: bytes, mime_type: str | None = None
) -> SerializedFile:
    """Wrap raw bytes in a :class:`~speccatalog.models.SerializedFile`."""
    if mime_type is None:
        mime_type = mimetypes.guess_type(name)[0] or ""
    return SerializedFile(
        name=name,
        size=len(content),
        type=mime_type,
        last_modified=int(time.time() * 1000),
        content=content,
    )


def load_serialized_file(source: str) -> SerializedFile:
    """Load a file from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The serialized file.

    Raises:
        FileDecodeError: If the source cannot be read.
    """
    if source == "-":
        return serialized_file_from_stdin()
    elif source.startswith(("http://", "https://")):
        return serialized_file_from_url(source)
    else:
        return serialized_file_from_path(source)


def serialized_file_from_stdin(name: Optional[str] = None) -> SerializedFile:
    """Read all of stdin as one file.

    Stdin carries no file name, so *name* supplies the extension used for
    format detection. Without one the input is named ``stdin.json`` when it
    starts like a JSON document and ``stdin.yaml`` otherwise.
    """
    try:
        content = sys.stdin.buffer.read()
    except Exception as exc:
        raise FileDecodeError(f"Failed to read from stdin: {exc}") from exc

    stripped = content.strip()
    if not stripped:
        raise FileDecodeError("No input received from stdin")

    if name is None:
        starts_like_json = stripped.removeprefix(b"\xef\xbb\xbf")[:1] in (b"{", b"[")
        name = "stdin.json" if starts_like_json else "stdin.yaml"
    return serialized_file_from_bytes(name, content)


def serialized_file_from_url(url: str) -> SerializedFile:
    """Fetch a file over HTTP(S).

    The file name is the last segment of the URL path, so detection works on
    the URL's extension.

    Raises:
        FileDecodeError: If the URL cannot be fetched.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FileDecodeError(
            f"HTTP {exc.response.status_code} fetching {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise FileDecodeError(f"Failed to fetch {url}: {exc}") from exc

    name = PurePosixPath(urlparse(url).path).name or "download"
    content_type = response.headers.get("content-type", "").split(";")[0].strip()
    return serialized_file_from_bytes(name, response.content, content_type or None)


def serialized_file_from_path(path: str) -> SerializedFile:
    """Read a local file.

    Raises:
        FileDecodeError: If the file does not exist or cannot be read.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise FileDecodeError(f"File not found: {path}")

    try:
        content = file_path.read_bytes()
        stat = file_path.stat()
    except OSError as exc:
        raise FileDecodeError(f"Failed to read file {path}: {exc}") from exc

    return SerializedFile(
        name=file_path.name,
        size=len(content),
        type=mimetypes.guess_type(file_path.name)[0] or "",
        last_modified=int(stat.st_mtime * 1000),
        content=content,
    )
