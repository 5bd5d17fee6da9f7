"""Submission workflow: signed upload URLs, then finalize into an unapproved entry.

Keys are a slug of the song title plus a millisecond timestamp. That keeps
keys readable but only weakly unique (two submissions of the same title in
the same millisecond collide). Objects uploaded without a finalize call are
left in the bucket with no metadata.
"""
import logging
import re
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from phxradio.config import COVERS_PREFIX, SUBMISSIONS_PREFIX, UPLOAD_URL_TTL_SEC
from phxradio.core.errors import NotFoundError, ValidationError
from phxradio.core.metadata_store import MetadataStore
from phxradio.core.object_store import ObjectStore
from phxradio.models.song import SongMetadata

logger = logging.getLogger(__name__)

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")
MAX_SLUG_LENGTH = 64

AUDIO_EXTENSIONS = {
    "mpeg": ".mp3",
    "mp3": ".mp3",
    "wav": ".wav",
    "x-wav": ".wav",
    "wave": ".wav",
    "ogg": ".ogg",
    "flac": ".flac",
    "x-flac": ".flac",
    "aac": ".aac",
    "mp4": ".m4a",
    "x-m4a": ".m4a",
}
IMAGE_EXTENSIONS = {
    "jpeg": ".jpg",
    "jpg": ".jpg",
    "png": ".png",
    "webp": ".webp",
    "gif": ".gif",
}


def slugify(title: str) -> str:
    slug = _SLUG_STRIP.sub("-", title.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-") or "song"


def safe_file_name(title: str, ext: str, now_ms: Optional[int] = None) -> str:
    """e.g. ("Foo Bar!", ".mp3") -> "foo-bar-1718000000000.mp3"."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{slugify(title)}-{now_ms}{ext}"


def prefix_and_extension(content_type: str) -> tuple[str, str]:
    """Map an upload content type to (key prefix, file extension)."""
    kind, _, subtype = content_type.strip().lower().partition("/")
    subtype = subtype.split(";")[0].strip()
    if kind == "audio":
        return SUBMISSIONS_PREFIX, AUDIO_EXTENSIONS.get(subtype, ".mp3")
    if kind == "image":
        return COVERS_PREFIX, IMAGE_EXTENSIONS.get(subtype, ".jpg")
    raise ValidationError(f"Unsupported file type: {content_type!r} (expected audio/* or image/*)")


def request_upload_urls(
    objects: ObjectStore,
    title: str,
    file_types: Sequence[str],
    ttl: int = UPLOAD_URL_TTL_SEC,
    now_ms: Optional[int] = None,
) -> List[Dict[str, str]]:
    """Return one {signedUrl, publicUrl, key, type} per requested content type."""
    if not title or not title.strip():
        raise ValidationError("title is required")
    if not file_types:
        raise ValidationError("fileTypes must list at least one content type")
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    urls = []
    for content_type in file_types:
        prefix, ext = prefix_and_extension(content_type)
        key = prefix + safe_file_name(title, ext, now_ms)
        urls.append(
            {
                "signedUrl": objects.signed_upload_url(key, content_type, ttl),
                "publicUrl": objects.public_url(key),
                "key": key,
                "type": content_type,
            }
        )
    logger.info("Issued %d upload URL(s) for %r", len(urls), title)
    return urls


def _required(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required")
    return value


def finalize_submission(
    objects: ObjectStore,
    metadata: MetadataStore,
    *,
    artist_name: Optional[str],
    song_name: Optional[str],
    song_key: Optional[str],
    image_key: Optional[str],
    instagram_handle: Optional[str] = None,
) -> SongMetadata:
    """Create the unapproved metadata entry for an uploaded song."""
    artist_name = _required(artist_name, "artistName")
    song_name = _required(song_name, "songName")
    song_key = _required(song_key, "songKey")
    image_key = _required(image_key, "imageKey")
    if not song_key.startswith(SUBMISSIONS_PREFIX) or song_key == SUBMISSIONS_PREFIX:
        raise ValidationError(f"songKey must be under {SUBMISSIONS_PREFIX}")

    if not objects.exists(song_key):
        raise NotFoundError(f"Uploaded song not found: {song_key}")

    entry = SongMetadata(
        artist_name=artist_name,
        song_name=song_name,
        instagram_handle=(instagram_handle or "").strip().lstrip("@"),
        song_key=song_key,
        image_key=image_key,
        approved=False,
        submitted_at=datetime.now(timezone.utc).isoformat(),
    )
    metadata.add(entry)
    logger.info("Song submitted: %s by %s (%s)", song_name, artist_name, song_key)
    return entry
