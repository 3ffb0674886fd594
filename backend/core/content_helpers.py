"""
Small content helpers: link thumbnails, competitor details, shuffling.
"""

import random
import re
from typing import Sequence, TypeVar
from urllib.parse import urlparse

T = TypeVar("T")

_YOUTUBE_ID = re.compile(r"^.*(youtu\.be/|v/|/u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")


def get_youtube_thumbnail(url: str) -> dict:
    """Return ``{"url", "type"}`` thumbnail metadata for an inspiration link."""
    match = _YOUTUBE_ID.match(url)
    video_id = match.group(2) if match else None
    if video_id and len(video_id) == 11:
        return {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg", "type": "youtube"}
    return {"url": None, "type": "link"}


def is_valid_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_profile_details(url: str, name: str) -> dict:
    """Derive a placeholder icon and niche for a competitor profile."""
    icon = f"https://placehold.co/40x40/4f46e5/FFFFFF?text={name[:2].upper()}"
    niche = "marketing"

    if "youtube.com" in url or "youtu.be" in url:
        icon = "https://placehold.co/40x40/FF0000/FFFFFF?text=YT"
    elif "instagram.com" in url:
        icon = "https://placehold.co/40x40/C13584/FFFFFF?text=IG"
    elif "tiktok.com" in url:
        icon = "https://placehold.co/40x40/000000/FFFFFF?text=TK"

    lowered = name.lower()
    if "nekretnine" in lowered or "real estate" in lowered:
        niche = "realestate"
    elif "fitness" in lowered or "zdravlje" in lowered:
        niche = "fitness"

    return {"icon": icon, "niche": niche}


def placeholder_feed(today: str) -> list[dict]:
    """Sample feed stored with a new competitor until real data exists."""
    return [
        {"id": "1", "title": "Sample Post 1", "views": "10K", "date": today, "type": "reel"},
        {"id": "2", "title": "Sample Post 2", "views": "5K", "date": today, "type": "youtube"},
    ]


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy of ``items``."""
    rng = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def take_visible(items: Sequence[T], limit: int | None, rng: random.Random | None = None) -> list[T]:
    """Shuffle ``items`` and keep the first ``limit`` (all when unlimited)."""
    shuffled = fisher_yates_shuffle(items, rng)
    if limit is None:
        return shuffled
    return shuffled[:limit]
