"""Admin workflow: approve (move to songs/), delete/reject, list submissions.

Approve is a single idempotent operation. Each physical step checks its own
precondition first, so a call that stopped part way (or a concurrent call on
the same key) is finished by simply running approve again:

    copy      submissions/x -> songs/x   skipped if songs/x already exists
    delete    submissions/x              skipped if already gone
    metadata  re-key entry to songs/x, approved=true (version-checked write)

If the entry is deleted while the objects are moving, the songs/x copy is
removed again and the approve fails at the metadata step.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List

from phxradio.config import SONGS_PREFIX, SUBMISSIONS_PREFIX
from phxradio.core.errors import ConflictError, NotFoundError, PartialMoveError, UpstreamError, ValidationError
from phxradio.core.metadata_store import MetadataStore
from phxradio.core.object_store import ObjectStore
from phxradio.core.player import prune_song
from phxradio.core.playlist_store import PlaylistStore
from phxradio.core.submissions import AUDIO_EXTENSIONS
from phxradio.models.song import SongMetadata

logger = logging.getLogger(__name__)


def move_keys(song_key: str) -> tuple[str, str]:
    """(submissions key, songs key) for a key under either prefix."""
    if not song_key:
        raise ValidationError("songKey is required")
    for prefix in (SUBMISSIONS_PREFIX, SONGS_PREFIX):
        if song_key.startswith(prefix):
            filename = song_key[len(prefix):]
            if filename and "/" not in filename:
                return SUBMISSIONS_PREFIX + filename, SONGS_PREFIX + filename
    raise ValidationError(f"Invalid song key: {song_key}")


def _move_object(objects: ObjectStore, source_key: str, dest_key: str, completed: List[str]) -> None:
    if not objects.exists(dest_key):
        try:
            objects.copy(source_key, dest_key)
            completed.append("copy")
        except NotFoundError:
            # Source vanished: fine only if another approve already put it in place
            if not objects.exists(dest_key):
                raise NotFoundError(f"Song file not found: {source_key}")


def approve_song(objects: ObjectStore, metadata: MetadataStore, song_key: str) -> SongMetadata:
    """Approve a submission; safe to re-run and to run concurrently."""
    source_key, dest_key = move_keys(song_key)
    songs = metadata.get()
    if source_key not in songs and dest_key not in songs:
        raise NotFoundError(f"Song not found: {song_key}")

    def _rewrite(songs: Dict[str, SongMetadata]) -> SongMetadata:
        entry = songs.pop(source_key, None)
        if entry is None:
            entry = songs.get(dest_key)
            if entry is None:
                raise NotFoundError(f"Song was deleted during approve: {song_key}")
        songs[dest_key] = entry.approved_at(dest_key)
        return songs[dest_key]

    completed: List[str] = []
    step = "copy"
    try:
        _move_object(objects, source_key, dest_key, completed)
        step = "delete"
        if objects.exists(source_key):
            objects.delete(source_key)
            completed.append("delete")
        step = "metadata"
        approved = metadata.mutate(_rewrite)
    except NotFoundError as e:
        if step != "metadata":
            raise
        # Deleted mid-approve: the songs/ copy has no entry left to point at it
        try:
            objects.delete(dest_key)
            completed.append("cleanup")
        except UpstreamError as cleanup_error:
            logger.error("Could not remove orphaned %s: %s", dest_key, cleanup_error.message)
        logger.error(
            "Approve of %s failed at %s after %s: %s",
            song_key, step, completed or "no changes", e.message,
        )
        raise PartialMoveError(song_key, step, completed, e.message) from e
    except (UpstreamError, ConflictError) as e:
        logger.error(
            "Approve of %s failed at %s after %s: %s",
            song_key, step, completed or "no changes", e.message,
        )
        raise PartialMoveError(song_key, step, completed, e.message) from e

    if completed:
        logger.info("Approved %s -> %s (%s)", source_key, dest_key, ", ".join(completed + ["metadata"]))
    else:
        logger.info("Approve of %s: objects already in place, metadata confirmed", dest_key)
    return approved


def delete_song(
    objects: ObjectStore,
    metadata: MetadataStore,
    playlists: PlaylistStore,
    song_key: str,
) -> SongMetadata:
    """Remove audio + cover objects, the metadata entry and playlist references.

    Objects go first so a failed call can be retried: the entry is still there
    to find them by.
    """
    if not song_key:
        raise ValidationError("songKey is required")
    entry = metadata.get_entry(song_key)
    if entry is None:
        raise NotFoundError(f"Song not found: {song_key}")

    for key in (entry.song_key, entry.image_key):
        if key:
            objects.delete(key)
    removed = metadata.delete(song_key)
    prune_song(playlists, song_key)
    logger.info("Deleted %s (%s by %s)", song_key, removed.song_name, removed.artist_name)
    return removed


def list_submissions(objects: ObjectStore) -> List[str]:
    return objects.list(SUBMISSIONS_PREFIX)


def _is_audio_key(key: str) -> bool:
    return any(key.lower().endswith(ext) for ext in set(AUDIO_EXTENSIONS.values()))


def bootstrap_metadata(objects: ObjectStore, metadata: MetadataStore) -> Dict[str, SongMetadata]:
    """Return the full mapping, seeding it from submissions/ when it is empty.

    Covers a bucket that has uploads but no metadata document (lost or never
    written): each audio object gets a placeholder unapproved entry.
    """
    songs = metadata.get()
    if songs:
        return songs
    files = [k for k in list_submissions(objects) if _is_audio_key(k)]
    if not files:
        return songs

    now = datetime.now(timezone.utc).isoformat()

    def _seed(songs: Dict[str, SongMetadata]) -> Dict[str, SongMetadata]:
        for key in files:
            if key in songs:
                continue
            stem = key.rsplit("/", 1)[-1].rsplit(".", 1)[0]
            songs[key] = SongMetadata(
                artist_name="Unknown",
                song_name=stem or "Unknown",
                instagram_handle="",
                song_key=key,
                image_key="",
                approved=False,
                submitted_at=now,
            )
        return dict(songs)

    seeded = metadata.mutate(_seed)
    logger.info("Seeded metadata with %d placeholder submission(s)", len(files))
    return seeded
