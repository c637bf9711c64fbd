"""Audio Convert API - Utility modules."""

from app.utils.paths import client_basename, download_filename, upload_suffix
from app.utils.temp_files import (
    cleanup_orphan_temp_files,
    copy_stream_to_fd,
    create_temp_file,
    read_exact,
    remove_quietly,
)

__all__ = [
    # paths
    "client_basename",
    "download_filename",
    "upload_suffix",
    # temp_files
    "cleanup_orphan_temp_files",
    "copy_stream_to_fd",
    "create_temp_file",
    "read_exact",
    "remove_quietly",
]
