"""Play queue and current-song pointer."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Playlist:
    """Ordered queue of song keys plus the active song, stored as one document."""
    song_keys: List[str] = field(default_factory=list)
    current_song: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"songKeys": list(self.song_keys), "currentSong": self.current_song}

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "Playlist":
        keys = item.get("songKeys") or []
        return cls(
            song_keys=[k for k in keys if isinstance(k, str)],
            current_song=item.get("currentSong"),
        )
