"""Persist and load the play queue and current-song pointer (JSON)."""
from typing import Callable, TypeVar

from phxradio.config import DOCUMENT_WRITE_ATTEMPTS, PLAYLIST_KEY
from phxradio.core.documents import Document, DocumentBackend, read_modify_write
from phxradio.models.playlist import Playlist

T = TypeVar("T")


def _parse(doc: Document) -> Playlist:
    if doc.data is None:
        return Playlist()
    return Playlist.from_dict(doc.data)


class PlaylistStore:
    def __init__(
        self,
        backend: DocumentBackend,
        name: str = PLAYLIST_KEY,
        attempts: int = DOCUMENT_WRITE_ATTEMPTS,
    ) -> None:
        self.backend = backend
        self.name = name
        self.attempts = attempts

    def get(self) -> Playlist:
        """Stored playlist, unfiltered. Empty if the document does not exist yet."""
        return _parse(self.backend.read(self.name))

    def mutate(self, fn: Callable[[Playlist], T]) -> T:
        """Apply fn to a fresh copy of the playlist and save it conditionally."""

        def apply(doc: Document):
            playlist = _parse(doc)
            result = fn(playlist)
            return playlist.to_dict(), result

        return read_modify_write(self.backend, self.name, apply, self.attempts)
