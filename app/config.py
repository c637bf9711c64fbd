"""Audio Convert API - Configuration constants.

Plain module constants with environment overrides. No external config libraries.
All paths are relative to the repository root by default.
"""

import os
from pathlib import Path

# Repository root (parent of app/)
REPO_ROOT = Path(__file__).parent.parent.resolve()

# Staging directories: one for uploads, one for transcoder output
DATA_DIR = REPO_ROOT / "data"
UPLOAD_TMP_DIR = DATA_DIR / "upload-tmp"
CONVERT_TMP_DIR = DATA_DIR / "convert-tmp"

# Prefix shared by every staged temp file (used by startup cleanup)
TEMP_FILE_PREFIX = "audio-file-"


def _get_positive_int(name: str, default: int) -> int:
    """Read a positive integer from the environment.

    Args:
        name: Environment variable name.
        default: Value used when unset, non-numeric or not positive.

    Returns:
        The parsed value or the default.
    """
    env_val = os.environ.get(name)
    if env_val:
        try:
            value = int(env_val)
            if value > 0:
                return value
        except ValueError:
            pass
    return default


# Upload size ceiling (10 MiB)
MAX_UPLOAD_BYTES = 10 << 20

# Multipart form field carrying the audio payload
UPLOAD_FIELD_NAME = "audio_file"

# ffmpeg binary; override with CONVERT_FFMPEG_BIN
FFMPEG_BIN = os.environ.get("CONVERT_FFMPEG_BIN", "ffmpeg")

# Per-invocation ffmpeg timeout in seconds
FFMPEG_TIMEOUT_SECONDS = _get_positive_int("CONVERT_FFMPEG_TIMEOUT_SEC", 300)

# Upper bound on simultaneous ffmpeg processes
MAX_CONCURRENT_TRANSCODES = _get_positive_int("CONVERT_MAX_CONCURRENT", 4)

# How long a request waits for a free transcode slot before failing
TRANSCODE_QUEUE_WAIT_SECONDS = _get_positive_int("CONVERT_QUEUE_WAIT_SEC", 30)

# Orphans younger than this are left alone by startup cleanup
ORPHAN_GRACE_SECONDS = 60

# Listener (bootstrap only)
API_HOST = os.environ.get("CONVERT_API_HOST", "0.0.0.0")
API_PORT = _get_positive_int("CONVERT_API_PORT", 8080)

# Client-facing error title
ERROR_TITLE = "Something went wrong converting the audio file"
