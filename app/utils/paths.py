"""Audio Convert API - File name utilities.

Derives staging suffixes and download names from client-supplied file names.
Client names are untrusted: only the basename is used and anything that could
break a header or a path is replaced.
"""

import re
from pathlib import PurePosixPath

# Longest extension carried over from the upload name
MAX_EXTENSION_LENGTH = 10

_UNSAFE_NAME_CHARS = re.compile(r'[^\x21-\x7e ]|["\\;/]')
_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]+$")


def client_basename(filename: str | None) -> str:
    """Get the basename of a client-supplied file name.

    Handles both POSIX and Windows separators.

    Args:
        filename: Name as sent in the multipart part (may be None).

    Returns:
        Basename, possibly empty.
    """
    if not filename:
        return ""
    return PurePosixPath(filename.replace("\\", "/")).name


def upload_suffix(filename: str | None) -> str:
    """Get the staging suffix for an uploaded file.

    Args:
        filename: Client-supplied file name.

    Returns:
        Lowercase extension with leading dot (e.g. ".wav"), or "" when the
        name has no safe extension.
    """
    suffix = PurePosixPath(client_basename(filename)).suffix
    if not suffix or len(suffix) > MAX_EXTENSION_LENGTH + 1:
        return ""
    if not _EXTENSION_RE.match(suffix):
        return ""
    return suffix.lower()


def download_filename(filename: str | None, fmt: str) -> str:
    """Build the download name for a converted file.

    The original extension is stripped and the target format appended:
    "song.wav" -> "song.flac".

    Args:
        filename: Client-supplied file name.
        fmt: Target format (without leading dot).

    Returns:
        Header-safe file name.
    """
    base = client_basename(filename)
    stem = PurePosixPath(base).stem if PurePosixPath(base).suffix else base
    stem = _UNSAFE_NAME_CHARS.sub("_", stem).strip()
    if not stem:
        stem = "audio"
    return f"{stem}.{fmt.lstrip('.')}"
