"""Submission: signed upload URLs, then finalize metadata."""
from fastapi import APIRouter, Depends

from phxradio.api.schemas import SubmitSongBody, UploadUrlsBody
from phxradio.api.state import AppState, get_state
from phxradio.core.submissions import finalize_submission, request_upload_urls

router = APIRouter()


@router.post("/get-upload-urls")
def get_upload_urls(body: UploadUrlsBody, state: AppState = Depends(get_state)):
    """Signed PUT URLs for the audio file and cover art, keyed by title + timestamp."""
    urls = request_upload_urls(state.object_store, body.title, body.file_types)
    return {"urls": urls}


@router.post("/submit-song")
@router.post("/submit")
def submit_song(body: SubmitSongBody, state: AppState = Depends(get_state)):
    """Create the unapproved metadata entry once both files are uploaded."""
    finalize_submission(
        state.object_store,
        state.metadata_store,
        artist_name=body.artist_name,
        song_name=body.song_name,
        song_key=body.song_key,
        image_key=body.image_key,
        instagram_handle=body.instagram_handle,
    )
    return {"success": True}
