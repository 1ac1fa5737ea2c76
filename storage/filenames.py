"""
Filename encoding for cached clips: ``<id>-<sanitized_title>.mp4``.

The filename is the only place a clip's identity and title are stored, so
the formatter and the parsers below must stay in step with each other.
"""

import re
from pathlib import PurePath


MEDIA_EXTENSION = ".mp4"
ID_SEPARATOR = "-"
TITLE_MAX_LENGTH = 30

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\s\-_]")
_WHITESPACE_RUN = re.compile(r"\s+")
_WHITESPACE = re.compile(r"\s")


def sanitize_title(title: str) -> str:
    """Reduce a display title to a short, filesystem-safe token."""
    text = _UNSAFE_CHARS.sub("", title or "")
    text = _WHITESPACE_RUN.sub(" ", text)
    text = text[:TITLE_MAX_LENGTH].strip()
    return _WHITESPACE.sub("_", text)


def base_filename(clip_id: str, title: str) -> str:
    """Filename without extension; the downloader appends it."""
    return f"{clip_id}{ID_SEPARATOR}{sanitize_title(title)}"


def is_media_file(filename: str) -> bool:
    return filename.endswith(MEDIA_EXTENSION)


def _stem(filename: str) -> str:
    return PurePath(filename).stem


def parse_clip_id(filename: str) -> str:
    """
    Clip identity encoded in a filename.

    Everything before the first separator. An upstream id that itself
    contains the separator comes back truncated.
    """
    return _stem(filename).split(ID_SEPARATOR, 1)[0]


def parse_title(filename: str) -> str:
    """Display title recovered from a filename, underscores back to spaces."""
    stem = _stem(filename)
    prefix = parse_clip_id(filename) + ID_SEPARATOR
    title = stem[len(prefix):] if stem.startswith(prefix) else ""
    return title.replace("_", " ")


def id_prefix(clip_id: str) -> str:
    """Prefix every file materialized for ``clip_id`` starts with."""
    return f"{clip_id}{ID_SEPARATOR}"
