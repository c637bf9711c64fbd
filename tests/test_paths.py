"""Tests for app.utils.paths module."""

import pytest

from app.utils.paths import client_basename, download_filename, upload_suffix


class TestClientBasename:
    """Tests for client_basename function."""

    def test_plain_name(self):
        assert client_basename("song.wav") == "song.wav"

    def test_strips_posix_directories(self):
        assert client_basename("../../etc/song.wav") == "song.wav"

    def test_strips_windows_directories(self):
        assert client_basename("C:\\Users\\me\\song.wav") == "song.wav"

    def test_empty_and_none(self):
        assert client_basename("") == ""
        assert client_basename(None) == ""


class TestUploadSuffix:
    """Tests for upload_suffix function."""

    def test_keeps_extension(self):
        assert upload_suffix("song.wav") == ".wav"

    def test_lowercases_extension(self):
        assert upload_suffix("SONG.WAV") == ".wav"

    def test_last_extension_only(self):
        assert upload_suffix("song.backup.flac") == ".flac"

    @pytest.mark.parametrize(
        "filename",
        ["song", "", None, "song.", "song.w@v", "song.abcdefghijklmnop", "dir.d/song"],
    )
    def test_no_safe_extension(self, filename):
        assert upload_suffix(filename) == ""


class TestDownloadFilename:
    """Tests for download_filename function."""

    def test_replaces_extension(self):
        assert download_filename("song.wav", "flac") == "song.flac"

    def test_name_without_extension(self):
        assert download_filename("song", "mp3") == "song.mp3"

    def test_only_last_extension_replaced(self):
        assert download_filename("live.2024.wav", "aac") == "live.2024.aac"

    def test_path_components_dropped(self):
        assert download_filename("/tmp/uploads/song.wav", "mp3") == "song.mp3"

    def test_header_unsafe_characters_replaced(self):
        name = download_filename('bad"na;me\r\n.wav', "mp3")
        assert name.endswith(".mp3")
        assert '"' not in name
        assert ";" not in name
        assert "\r" not in name
        assert "\n" not in name

    def test_non_ascii_replaced(self):
        assert download_filename("canção.wav", "mp3") == "can__o.mp3"

    def test_empty_name_falls_back(self):
        assert download_filename("", "flac") == "audio.flac"
        assert download_filename(None, "flac") == "audio.flac"

    def test_format_with_leading_dot(self):
        assert download_filename("song.wav", ".mp3") == "song.mp3"
