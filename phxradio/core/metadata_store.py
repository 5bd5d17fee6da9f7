"""Persist and load song metadata: one JSON document keyed by song key."""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

from phxradio.config import DOCUMENT_WRITE_ATTEMPTS, METADATA_KEY
from phxradio.core.documents import Document, DocumentBackend, read_modify_write
from phxradio.core.errors import ConflictError, NotFoundError
from phxradio.models.song import SongMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET: Any = object()


@dataclass
class MetadataSnapshot:
    songs: Dict[str, SongMetadata]
    version: Optional[str]


def _parse(doc: Document) -> Dict[str, SongMetadata]:
    out: Dict[str, SongMetadata] = {}
    for key, item in (doc.data or {}).items():
        try:
            entry = SongMetadata.from_dict(item)
        except (KeyError, TypeError, AttributeError):
            logger.warning("Skipping malformed metadata entry %r", key)
            continue
        out[key] = entry
    return out


def _unparsed(doc: Document, songs: Dict[str, SongMetadata]) -> Dict[str, Any]:
    """Raw items _parse could not read; written back untouched."""
    return {key: item for key, item in (doc.data or {}).items() if key not in songs}


def _serialize(songs: Dict[str, SongMetadata], unparsed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    data = {key: item for key, item in (unparsed or {}).items() if key not in songs}
    data.update({key: entry.to_dict() for key, entry in songs.items()})
    return data


class MetadataStore:
    """get / add / update / delete over the whole metadata mapping.

    Every write replaces the entire document. Writes are conditional on the
    version that was read, so concurrent admin actions cannot silently drop
    each other's changes: mutate() re-reads and re-applies on conflict, and
    update() with an explicit expected_version fails with ConflictError.
    """

    def __init__(
        self,
        backend: DocumentBackend,
        name: str = METADATA_KEY,
        attempts: int = DOCUMENT_WRITE_ATTEMPTS,
    ) -> None:
        self.backend = backend
        self.name = name
        self.attempts = attempts

    def snapshot(self) -> MetadataSnapshot:
        doc = self.backend.read(self.name)
        return MetadataSnapshot(songs=_parse(doc), version=doc.version)

    def get(self) -> Dict[str, SongMetadata]:
        """Return the full mapping; empty if the document does not exist yet."""
        return self.snapshot().songs

    def get_entry(self, song_key: str) -> Optional[SongMetadata]:
        return self.get().get(song_key)

    def mutate(self, fn: Callable[[Dict[str, SongMetadata]], T]) -> T:
        """Apply fn to a fresh copy of the mapping and save it conditionally.

        fn edits the mapping in place and returns a result; it is re-run on a
        re-read mapping if another writer got in first.
        """

        def apply(doc: Document):
            songs = _parse(doc)
            unparsed = _unparsed(doc, songs)
            result = fn(songs)
            return _serialize(songs, unparsed), result

        return read_modify_write(self.backend, self.name, apply, self.attempts)

    def add(self, entry: SongMetadata) -> SongMetadata:
        """Insert a new entry. Raises ConflictError if the key is already present."""

        def _add(songs: Dict[str, SongMetadata]) -> SongMetadata:
            if entry.song_key in songs:
                raise ConflictError(f"Song already exists: {entry.song_key}")
            songs[entry.song_key] = entry
            return entry

        return self.mutate(_add)

    def update(self, songs: Dict[str, SongMetadata], expected_version: Optional[str] = _UNSET) -> str:
        """Replace the whole mapping and return the new version.

        With expected_version the write only happens if nobody wrote since that
        version was read. Without it, the write is last-writer-wins. Stored
        entries that cannot be parsed are kept.
        """
        doc = self.backend.read(self.name)
        if expected_version is _UNSET:
            expected_version = doc.version
        return self.backend.write(self.name, _serialize(songs, _unparsed(doc, _parse(doc))), expected_version)

    def delete(self, song_key: str) -> SongMetadata:
        """Remove an entry and return it. Raises NotFoundError if absent."""

        def _delete(songs: Dict[str, SongMetadata]) -> SongMetadata:
            entry = songs.pop(song_key, None)
            if entry is None:
                raise NotFoundError(f"Song not found: {song_key}")
            return entry

        return self.mutate(_delete)
