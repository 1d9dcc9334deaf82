"""
Classification of submitted URLs into ingest sources.

A submission is either a YouTube video (watch, short-link or embed URL) or a
direct link to an audio file. Anything else is rejected before a request is
created.
"""

from typing import Optional
from urllib.parse import parse_qs, urlparse

from ingest_ops.db import IngestSource


AUDIO_EXTENSIONS = (".mp3", ".m4a", ".wav", ".ogg", ".flac", ".aac")


def _parse(url: str):
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return parsed


def extract_youtube_video_id(url: str) -> Optional[str]:
    """
    Extract the video id from a YouTube URL.

    Handles ``youtu.be/<id>``, ``youtube.com/watch?v=<id>`` and
    ``youtube.com/embed/<id>``.

    Returns:
        The video id, or None if the URL is not a YouTube video URL.
    """
    parsed = _parse(url)
    if parsed is None:
        return None

    hostname = (parsed.hostname or "").lower()
    if hostname == "youtu.be":
        return parsed.path.lstrip("/") or None

    if "youtube.com" in hostname:
        video_ids = parse_qs(parsed.query).get("v")
        if video_ids and video_ids[0]:
            return video_ids[0]
        parts = [p for p in parsed.path.split("/") if p]
        if "embed" in parts:
            index = parts.index("embed")
            if index + 1 < len(parts):
                return parts[index + 1]
    return None


def is_audio_url(url: str) -> bool:
    parsed = _parse(url)
    if parsed is None:
        return False
    return parsed.path.lower().endswith(AUDIO_EXTENSIONS)


def detect_source(url: str) -> Optional[IngestSource]:
    """Return the IngestSource for a URL, or None when it is not supported."""
    if extract_youtube_video_id(url):
        return IngestSource.YOUTUBE
    if is_audio_url(url):
        return IngestSource.AUDIO
    return None
