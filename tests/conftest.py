"""Shared pytest fixtures: fake bucket, temp document store, wired test client."""
import pytest
from fastapi.testclient import TestClient

from phxradio.api.app import app
from phxradio.api.state import AppState, get_state
from phxradio.core.metadata_store import MetadataStore
from phxradio.core.playlist_store import PlaylistStore
from tests.fakes import FakeObjectStore, RacingFileBackend

ADMIN = ("admin", "s3cret")


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def backend(tmp_path):
    """File-backed JSON documents in a per-test temp directory."""
    return RacingFileBackend(tmp_path / "docs")


@pytest.fixture
def metadata_store(backend):
    return MetadataStore(backend)


@pytest.fixture
def playlist_store(backend):
    return PlaylistStore(backend)


@pytest.fixture
def state(object_store, backend):
    return AppState(
        object_store=object_store,
        document_backend=backend,
        admin_username=ADMIN[0],
        admin_password=ADMIN[1],
    )


@pytest.fixture
def client(state):
    """TestClient with get_state overridden; overrides are cleared afterwards."""
    app.dependency_overrides[get_state] = lambda: state
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def submit_song(client, object_store):
    """Upload audio + cover through signed URLs and finalize; returns the song key."""

    def _submit(title: str = "Foo", artist: str = "Artist") -> str:
        response = client.post(
            "/get-upload-urls",
            json={"title": title, "fileTypes": ["audio/mpeg", "image/jpeg"]},
        )
        assert response.status_code == 200
        urls = {u["type"]: u for u in response.json()["urls"]}
        object_store.upload_via_signed_url(urls["audio/mpeg"]["signedUrl"], b"ID3 audio", "audio/mpeg")
        object_store.upload_via_signed_url(urls["image/jpeg"]["signedUrl"], b"jpeg", "image/jpeg")
        response = client.post(
            "/submit-song",
            json={
                "artistName": artist,
                "songName": title,
                "instagramHandle": "@someone",
                "songKey": urls["audio/mpeg"]["key"],
                "imageKey": urls["image/jpeg"]["key"],
            },
        )
        assert response.status_code == 200, response.text
        return urls["audio/mpeg"]["key"]

    return _submit
