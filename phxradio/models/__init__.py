"""Data models for song metadata and the play queue."""
from phxradio.models.playlist import Playlist
from phxradio.models.song import SongMetadata

__all__ = [
    "Playlist",
    "SongMetadata",
]
