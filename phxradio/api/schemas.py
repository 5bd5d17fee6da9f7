"""Request bodies shared by routes. Field names are camelCase on the wire."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SongKeyBody(CamelModel):
    song_key: str


class UploadUrlsBody(CamelModel):
    title: str
    file_types: List[str]


class SubmitSongBody(CamelModel):
    artist_name: str
    song_name: str
    song_key: str
    image_key: str
    instagram_handle: Optional[str] = None


class MoveBody(CamelModel):
    song_key: str
    direction: str


class AdvanceBody(CamelModel):
    finished_song_key: Optional[str] = None
