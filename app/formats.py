"""Audio Convert API - Target format policy.

Static allow-list of output formats and the ffmpeg directives for each.
Pure functions only; callers must check membership before asking for
directives.
"""

from __future__ import annotations

from dataclasses import dataclass

SUPPORTED_FORMATS = frozenset({"aac", "flac", "mp3"})

# Format used when an allowed name has no dedicated directive set
FALLBACK_FORMAT = "mp3"


@dataclass(frozen=True)
class TranscodeDirectives:
    """Engine parameters for one target format."""

    codec: str
    container: str
    extension: str


_DIRECTIVES: dict[str, TranscodeDirectives] = {
    # ffmpeg writes raw AAC through the ADTS muxer
    "aac": TranscodeDirectives(codec="aac", container="adts", extension="aac"),
    "flac": TranscodeDirectives(codec="flac", container="flac", extension="flac"),
    "mp3": TranscodeDirectives(codec="libmp3lame", container="mp3", extension="mp3"),
}


def normalize_format(fmt: str | None) -> str:
    """Lowercase a format name. None becomes an empty string."""
    return (fmt or "").lower()


def is_supported(fmt: str | None) -> bool:
    """Check whether a target format is on the allow-list (case-insensitive)."""
    return normalize_format(fmt) in SUPPORTED_FORMATS


def directives_for(fmt: str) -> TranscodeDirectives:
    """Get the ffmpeg directives for a supported format.

    Args:
        fmt: Target format name, any case.

    Returns:
        TranscodeDirectives for the format, or the mp3 set for an allowed
        name without a dedicated entry.
    """
    return _DIRECTIVES.get(normalize_format(fmt), _DIRECTIVES[FALLBACK_FORMAT])


def media_type_for(fmt: str) -> str:
    """Get the response content type for a target format."""
    return f"audio/{normalize_format(fmt)}"


__all__ = [
    "SUPPORTED_FORMATS",
    "TranscodeDirectives",
    "directives_for",
    "is_supported",
    "media_type_for",
    "normalize_format",
]
