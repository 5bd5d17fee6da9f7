"""Song metadata entry and the client-facing song shape."""
from dataclasses import dataclass, replace
from typing import Any, Dict


@dataclass
class SongMetadata:
    """Stored metadata entry, keyed by song_key in the metadata document."""
    artist_name: str
    song_name: str
    instagram_handle: str
    song_key: str
    image_key: str
    approved: bool
    submitted_at: str

    def to_dict(self) -> Dict[str, Any]:
        # camelCase on the wire and in the stored JSON document
        return {
            "artistName": self.artist_name,
            "songName": self.song_name,
            "instagramHandle": self.instagram_handle,
            "songKey": self.song_key,
            "imageKey": self.image_key,
            "approved": self.approved,
            "submittedAt": self.submitted_at,
        }

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "SongMetadata":
        """Build from a stored entry. Raises KeyError / TypeError on malformed input."""
        return cls(
            artist_name=item["artistName"],
            song_name=item["songName"],
            instagram_handle=item.get("instagramHandle") or "",
            song_key=item["songKey"],
            image_key=item.get("imageKey") or "",
            approved=bool(item.get("approved", False)),
            submitted_at=item.get("submittedAt") or "",
        )

    def approved_at(self, new_key: str) -> "SongMetadata":
        """Copy of this entry rewritten to its approved key."""
        return replace(self, song_key=new_key, approved=True)


def song_to_dict(entry: SongMetadata) -> Dict[str, Any]:
    """Player shape: {key, metadata}."""
    return {"key": entry.song_key, "metadata": entry.to_dict()}
