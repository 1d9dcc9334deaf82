"""
Unit tests for URL classification.
"""

import pytest

from ingest_ops.db import IngestSource
from ingest_ops.lifecycle import detect_source, extract_youtube_video_id, is_audio_url


class TestYouTube:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtube.com/watch?v=dQw4w9WgXcQ&t=42s",
            "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://www.youtube.com/embed/dQw4w9WgXcQ",
        ],
    )
    def test_video_id_extracted(self, url):
        assert extract_youtube_video_id(url) == "dQw4w9WgXcQ"

    def test_channel_page_is_not_a_video(self):
        assert extract_youtube_video_id("https://www.youtube.com/@somechannel") is None


class TestAudio:
    def test_extensions_case_insensitive(self):
        assert is_audio_url("https://cdn.example.com/ep.MP3")
        assert is_audio_url("https://cdn.example.com/a/b/ep.m4a?token=abc")
        assert not is_audio_url("https://cdn.example.com/ep.mp4")


class TestDetectSource:
    def test_detects_both_kinds(self):
        assert detect_source("https://youtu.be/abc123") == IngestSource.YOUTUBE
        assert detect_source("https://cdn.example.com/ep.ogg") == IngestSource.AUDIO

    @pytest.mark.parametrize(
        "url",
        ["not a url", "ftp://example.com/ep.mp3", "https://example.com/article", ""],
    )
    def test_unsupported_urls(self, url):
        assert detect_source(url) is None
