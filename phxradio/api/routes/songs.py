"""Approved catalog and playback URLs."""
from fastapi import APIRouter, Depends, Query

from phxradio.api.schemas import SongKeyBody
from phxradio.api.state import AppState, get_state
from phxradio.core.player import list_approved, resolve_audio_url
from phxradio.models.song import song_to_dict

router = APIRouter()


@router.get("/songs")
def list_songs(state: AppState = Depends(get_state)):
    """Approved songs in play order."""
    return {"songs": [song_to_dict(s) for s in list_approved(state.metadata_store)]}


@router.get("/get-audio-url")
def get_audio_url(
    song_key: str = Query("", alias="songKey"),
    state: AppState = Depends(get_state),
):
    return {"url": resolve_audio_url(state.object_store, song_key)}


@router.post("/get-audio-url")
def post_audio_url(body: SongKeyBody, state: AppState = Depends(get_state)):
    return {"url": resolve_audio_url(state.object_store, body.song_key)}
