"""Play queue and current song. Advancing is driven by the client's track-end event."""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends

from phxradio.api.schemas import AdvanceBody, MoveBody, SongKeyBody
from phxradio.api.state import AppState, get_state
from phxradio.core import player
from phxradio.models.song import SongMetadata, song_to_dict

router = APIRouter()


def _playlist_response(songs: List[SongMetadata]) -> dict:
    return {"playlist": [song_to_dict(s) for s in songs]}


def _song_or_none(song: Optional[SongMetadata]) -> Optional[dict]:
    return song_to_dict(song) if song else None


@router.get("/playlist")
def get_playlist(state: AppState = Depends(get_state)):
    songs, current = player.get_playlist(state.playlist_store, state.metadata_store)
    response = _playlist_response(songs)
    response["currentSong"] = _song_or_none(current)
    return response


@router.post("/playlist/add")
def add_to_playlist(body: SongKeyBody, state: AppState = Depends(get_state)):
    songs = player.add_to_playlist(state.playlist_store, state.metadata_store, body.song_key)
    return _playlist_response(songs)


@router.post("/playlist/move")
def move_in_playlist(body: MoveBody, state: AppState = Depends(get_state)):
    """Swap with the neighbour above ("up") or below ("down"); no-op at the ends."""
    songs = player.move_in_playlist(
        state.playlist_store, state.metadata_store, body.song_key, body.direction
    )
    return _playlist_response(songs)


@router.post("/playlist/remove")
def remove_from_playlist(body: SongKeyBody, state: AppState = Depends(get_state)):
    songs = player.remove_from_playlist(state.playlist_store, state.metadata_store, body.song_key)
    return _playlist_response(songs)


@router.get("/current-song")
def get_current_song(state: AppState = Depends(get_state)):
    return {"song": _song_or_none(player.current_song(state.playlist_store, state.metadata_store))}


@router.post("/current-song/advance")
def advance(
    body: AdvanceBody | None = Body(None),
    state: AppState = Depends(get_state),
):
    """Track ended: next queued song, else the next approved song (wrapping)."""
    finished = body.finished_song_key if body else None
    song = player.advance(state.playlist_store, state.metadata_store, finished, objects=state.object_store)
    url = player.resolve_audio_url(state.object_store, song.song_key) if song else None
    return {"song": _song_or_none(song), "url": url}
