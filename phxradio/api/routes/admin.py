"""Admin: approve/move, delete/reject, listings, current-song selection.

All routes sit behind the basic-auth guard (see phxradio.api.auth).
"""
from fastapi import APIRouter, Depends

from phxradio.api.auth import require_admin
from phxradio.api.schemas import SongKeyBody
from phxradio.api.state import AppState, get_state
from phxradio.core import admin, player
from phxradio.models.song import song_to_dict

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/approve-song")
@router.post("/move-song")
def approve_song(body: SongKeyBody, state: AppState = Depends(get_state)):
    """Move submissions/<file> to songs/<file> and mark approved. Safe to retry."""
    entry = admin.approve_song(state.object_store, state.metadata_store, body.song_key)
    return {"success": True, "songKey": entry.song_key}


@router.post("/delete-song")
@router.post("/reject-song")
def delete_song(body: SongKeyBody, state: AppState = Depends(get_state)):
    admin.delete_song(
        state.object_store, state.metadata_store, state.playlist_store, body.song_key
    )
    return {"success": True}


@router.get("/get-songs")
def get_songs(state: AppState = Depends(get_state)):
    """Full metadata mapping keyed by song key (approved and pending)."""
    songs = admin.bootstrap_metadata(state.object_store, state.metadata_store)
    return {key: entry.to_dict() for key, entry in songs.items()}


@router.get("/list-submissions")
def list_submissions(state: AppState = Depends(get_state)):
    return admin.list_submissions(state.object_store)


@router.post("/set-current-song")
def set_current_song(body: SongKeyBody, state: AppState = Depends(get_state)):
    song = player.set_current_song(state.playlist_store, state.metadata_store, body.song_key)
    return {"success": True, "song": song_to_dict(song)}
