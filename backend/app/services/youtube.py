"""YouTube URL recognition — derive the canonical video ID from a link."""

import re
from urllib.parse import parse_qs, urlsplit

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_YOUTUBE_HOSTS = {"youtube.com", "youtube-nocookie.com"}
_SHORT_HOSTS = {"youtu.be"}
_PATH_PREFIXES = ("embed", "v", "shorts", "live")


def _normalise_host(host: str) -> str:
    host = host.lower()
    for prefix in ("www.", "m.", "music."):
        if host.startswith(prefix):
            return host[len(prefix):]
    return host


def normalise_url(url: str) -> str:
    """Trim whitespace and default a missing scheme to ``https``."""
    url = url.strip()
    if "://" not in url:
        url = f"https://{url}"
    return url


def extract_youtube_id(url: str) -> str | None:
    """Return the video ID a YouTube URL points at, or None if unrecognised.

    Recognised forms (scheme optional, ``www.``/``m.`` allowed)::

        https://www.youtube.com/watch?v=ID
        https://youtu.be/ID
        https://www.youtube.com/embed/ID
        https://www.youtube.com/v/ID
        https://www.youtube.com/shorts/ID
    """
    if not url:
        return None

    try:
        parts = urlsplit(normalise_url(url))
    except ValueError:
        return None
    if parts.scheme not in ("http", "https"):
        return None

    host = _normalise_host(parts.hostname or "")
    segments = [s for s in parts.path.split("/") if s]
    candidate: str | None = None

    if host in _SHORT_HOSTS:
        candidate = segments[0] if segments else None
    elif host in _YOUTUBE_HOSTS:
        if segments == ["watch"]:
            candidate = (parse_qs(parts.query).get("v") or [None])[0]
        elif len(segments) >= 2 and segments[0] in _PATH_PREFIXES:
            candidate = segments[1]

    if candidate and _VIDEO_ID_RE.match(candidate):
        return candidate
    return None
