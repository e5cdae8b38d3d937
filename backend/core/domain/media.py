"""Media attachment variants for announcements.

An announcement shows at most one piece of media: a static image, an
uploaded video, or an embedded YouTube video.  Each variant carries only the
payload it needs, so an "image plus video" state cannot be expressed.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class MediaKind(str, Enum):
    """Discriminator stored alongside the media columns."""
    NONE = "none"
    IMAGE = "image"
    VIDEO = "video"
    YOUTUBE = "youtube"


_YOUTUBE_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{11})"),
)


def extract_youtube_id(url: str) -> Optional[str]:
    """Return the 11-character video id from a YouTube link, or None."""
    for pattern in _YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


@dataclass(frozen=True)
class ImageMedia:
    """Static image."""
    path: str

    kind = MediaKind.IMAGE


@dataclass(frozen=True)
class UploadedVideoMedia:
    """Video file uploaded to the media store."""
    path: str

    kind = MediaKind.VIDEO


@dataclass(frozen=True)
class YouTubeMedia:
    """Embedded YouTube video."""
    url: str

    kind = MediaKind.YOUTUBE

    def __post_init__(self):
        if extract_youtube_id(self.url) is None:
            raise ValueError(f"Not a recognisable YouTube link: {self.url!r}")

    @property
    def video_id(self) -> str:
        return extract_youtube_id(self.url)

    @property
    def embed_url(self) -> str:
        return f"https://www.youtube.com/embed/{self.video_id}"


Media = Union[ImageMedia, UploadedVideoMedia, YouTubeMedia]
