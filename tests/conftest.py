"""Shared pytest fixtures for Audio Convert API tests.

ffmpeg is never required here: fake_ffmpeg_run stands in for subprocess.run
and writes a predictable payload to the output path it is given.
"""

import tempfile
import wave
from pathlib import Path
from unittest import mock

import pytest
from fastapi.testclient import TestClient

from services.convert_api.main import app, override_convert_service
from services.convert_api.service import build_convert_service


def fake_ffmpeg_run(cmd, capture_output=True, check=False, timeout=None):
    """Pretend to be ffmpeg: write b"converted:<container>" to the output path."""
    container = cmd[cmd.index("-f") + 1]
    Path(cmd[-1]).write_bytes(f"converted:{container}".encode())
    result = mock.Mock()
    result.returncode = 0
    result.stderr = b"size=       1kB time=00:00:01.00 bitrate=   8.0kbits/s\n"
    return result


def failing_ffmpeg_run(cmd, capture_output=True, check=False, timeout=None):
    """Pretend ffmpeg rejected the input after creating a partial output."""
    Path(cmd[-1]).write_bytes(b"partial")
    result = mock.Mock()
    result.returncode = 1
    result.stderr = b"Invalid data found when processing input\n"
    return result


@pytest.fixture
def fake_ffmpeg():
    """Patch subprocess.run with a successful fake ffmpeg."""
    with mock.patch("subprocess.run", side_effect=fake_ffmpeg_run) as run:
        yield run


@pytest.fixture
def failing_ffmpeg():
    """Patch subprocess.run with a fake ffmpeg that exits with status 1."""
    with mock.patch("subprocess.run", side_effect=failing_ffmpeg_run) as run:
        yield run


@pytest.fixture
def staging_dirs():
    """Create upload and convert staging directories.

    Yields:
        tuple: (upload_dir, convert_dir)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        upload_dir = Path(tmpdir) / "upload-tmp"
        convert_dir = Path(tmpdir) / "convert-tmp"
        upload_dir.mkdir()
        convert_dir.mkdir()
        yield upload_dir, convert_dir


@pytest.fixture
def convert_service(staging_dirs):
    """ConvertService wired to the temporary staging directories."""
    upload_dir, convert_dir = staging_dirs
    return build_convert_service(upload_dir, convert_dir)


@pytest.fixture
def client(convert_service):
    """Create a FastAPI test client with an injected conversion service.

    Yields:
        tuple: (test_client, convert_service)
    """
    override_convert_service(convert_service)

    with TestClient(app) as test_client:
        yield test_client, convert_service

    override_convert_service(None)


@pytest.fixture
def sample_audio_file():
    """Create a sample WAV audio file for testing.

    Creates a minimal valid WAV file (1 second of silence, mono, 22050 Hz).

    Yields:
        Path: Path to the temporary WAV file.
    """
    with tempfile.NamedTemporaryFile(suffix=".wav", delete=False) as f:
        with wave.open(f.name, "wb") as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)
            wf.setframerate(22050)
            wf.writeframes(b"\x00" * 22050 * 2)

        yield Path(f.name)

    try:
        Path(f.name).unlink()
    except OSError:
        pass
