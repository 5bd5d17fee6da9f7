"""Approved catalog, playback URLs, play queue and the current-song pointer.

Advance policy: drain the queue first (FIFO); when it is empty, go round-robin
over the approved catalog in submission order, wrapping at the end.
"""
import logging
from typing import Dict, List, Optional, Set

from phxradio.config import PLAYBACK_URL_TTL_SEC, SONGS_PREFIX, SUBMISSIONS_PREFIX
from phxradio.core.errors import NotFoundError, ValidationError
from phxradio.core.metadata_store import MetadataStore
from phxradio.core.object_store import ObjectStore
from phxradio.core.playlist_store import PlaylistStore
from phxradio.models.playlist import Playlist
from phxradio.models.song import SongMetadata

logger = logging.getLogger(__name__)

DIRECTIONS = ("up", "down")
AUDIO_PREFIXES = (SONGS_PREFIX, SUBMISSIONS_PREFIX)


def approved_songs(songs: Dict[str, SongMetadata]) -> List[SongMetadata]:
    """Approved entries in stable play order (submittedAt, then key)."""
    approved = [s for s in songs.values() if s.approved]
    return sorted(approved, key=lambda s: (s.submitted_at, s.song_key))


def list_approved(metadata: MetadataStore) -> List[SongMetadata]:
    return approved_songs(metadata.get())


def resolve_audio_url(objects: ObjectStore, song_key: str, ttl: int = PLAYBACK_URL_TTL_SEC) -> str:
    """Signed playback URL for an uploaded or approved song file."""
    if not song_key:
        raise ValidationError("songKey is required")
    if not song_key.startswith(AUDIO_PREFIXES) or song_key in AUDIO_PREFIXES:
        raise ValidationError(f"songKey must be under {SONGS_PREFIX} or {SUBMISSIONS_PREFIX}")
    if not objects.exists(song_key):
        raise NotFoundError(f"Song file not found: {song_key}")
    return objects.signed_download_url(song_key, ttl)


def _catalog(metadata: MetadataStore) -> Dict[str, SongMetadata]:
    return {s.song_key: s for s in list_approved(metadata)}


def _prune(playlist: Playlist, catalog_keys: Set[str]) -> None:
    """Drop queued keys (and the pointer) that are no longer in the catalog."""
    playlist.song_keys = [k for k in playlist.song_keys if k in catalog_keys]
    if playlist.current_song is not None and playlist.current_song not in catalog_keys:
        playlist.current_song = None


def _resolve(playlist: Playlist, catalog: Dict[str, SongMetadata]) -> List[SongMetadata]:
    return [catalog[k] for k in playlist.song_keys if k in catalog]


def get_playlist(playlists: PlaylistStore, metadata: MetadataStore) -> tuple[List[SongMetadata], Optional[SongMetadata]]:
    """Queued songs and current song, resolved against the approved catalog."""
    catalog = _catalog(metadata)
    playlist = playlists.get()
    current = catalog.get(playlist.current_song) if playlist.current_song else None
    return _resolve(playlist, catalog), current


def current_song(playlists: PlaylistStore, metadata: MetadataStore) -> Optional[SongMetadata]:
    return get_playlist(playlists, metadata)[1]


def add_to_playlist(playlists: PlaylistStore, metadata: MetadataStore, song_key: str) -> List[SongMetadata]:
    """Append an approved song to the queue; a song already queued is left where it is."""
    catalog = _catalog(metadata)
    if song_key not in catalog:
        raise NotFoundError(f"Song not found in catalog: {song_key}")

    def _add(playlist: Playlist) -> Playlist:
        _prune(playlist, set(catalog))
        if song_key not in playlist.song_keys:
            playlist.song_keys.append(song_key)
        return playlist

    playlist = playlists.mutate(_add)
    logger.info("Queued %s (%d in playlist)", song_key, len(playlist.song_keys))
    return _resolve(playlist, catalog)


def remove_from_playlist(playlists: PlaylistStore, metadata: MetadataStore, song_key: str) -> List[SongMetadata]:
    catalog = _catalog(metadata)

    def _remove(playlist: Playlist) -> Playlist:
        if song_key not in playlist.song_keys:
            raise NotFoundError(f"Song not found in playlist: {song_key}")
        playlist.song_keys.remove(song_key)
        _prune(playlist, set(catalog))
        return playlist

    return _resolve(playlists.mutate(_remove), catalog)


def move_in_playlist(
    playlists: PlaylistStore,
    metadata: MetadataStore,
    song_key: str,
    direction: str,
) -> List[SongMetadata]:
    """Swap a queued song with its neighbour. No-op at either end of the queue."""
    if direction not in DIRECTIONS:
        raise ValidationError(f"direction must be one of {', '.join(DIRECTIONS)}")
    catalog = _catalog(metadata)

    def _move(playlist: Playlist) -> Playlist:
        _prune(playlist, set(catalog))
        keys = playlist.song_keys
        if song_key not in keys:
            raise NotFoundError(f"Song not found in playlist: {song_key}")
        i = keys.index(song_key)
        j = i - 1 if direction == "up" else i + 1
        if 0 <= j < len(keys):
            keys[i], keys[j] = keys[j], keys[i]
        return playlist

    return _resolve(playlists.mutate(_move), catalog)


def advance(
    playlists: PlaylistStore,
    metadata: MetadataStore,
    finished_key: Optional[str] = None,
    objects: Optional[ObjectStore] = None,
) -> Optional[SongMetadata]:
    """Pick the next song after a track ends and make it current.

    finished_key is the song the client just finished; it defaults to the
    stored current song. Returns None when the catalog is empty. With objects,
    the next song's file must exist or nothing is saved (NotFoundError).
    """
    ordered = list_approved(metadata)
    catalog = {s.song_key: s for s in ordered}

    def _advance(playlist: Playlist) -> Optional[str]:
        reference = finished_key or playlist.current_song
        _prune(playlist, set(catalog))
        if playlist.song_keys:
            next_key = playlist.song_keys.pop(0)
        elif ordered:
            keys = [s.song_key for s in ordered]
            if reference in catalog:
                next_key = keys[(keys.index(reference) + 1) % len(keys)]
            else:
                next_key = keys[0]
        else:
            next_key = None
        if objects is not None and next_key and not objects.exists(next_key):
            raise NotFoundError(f"Song file not found: {next_key}")
        playlist.current_song = next_key
        return next_key

    next_key = playlists.mutate(_advance)
    logger.info("Advanced to %s", next_key or "<nothing>")
    return catalog.get(next_key) if next_key else None


def set_current_song(playlists: PlaylistStore, metadata: MetadataStore, song_key: str) -> SongMetadata:
    """Admin selection of the active song."""
    catalog = _catalog(metadata)
    song = catalog.get(song_key)
    if song is None:
        raise NotFoundError(f"Song not found in catalog: {song_key}")

    def _set(playlist: Playlist) -> None:
        playlist.current_song = song_key

    playlists.mutate(_set)
    logger.info("Current song set to %s", song_key)
    return song


def prune_song(playlists: PlaylistStore, song_key: str) -> bool:
    """Remove every reference to song_key. Returns True if anything changed."""

    def _prune_one(playlist: Playlist) -> bool:
        changed = song_key in playlist.song_keys or playlist.current_song == song_key
        playlist.song_keys = [k for k in playlist.song_keys if k != song_key]
        if playlist.current_song == song_key:
            playlist.current_song = None
        return changed

    return playlists.mutate(_prune_one)
