"""Tests for the approve/move state machine, delete and metadata bootstrap."""
import logging

import pytest

from phxradio.core import player
from phxradio.core.admin import approve_song, bootstrap_metadata, delete_song, list_submissions, move_keys
from phxradio.core.errors import NotFoundError, PartialMoveError, UpstreamError, ValidationError
from phxradio.models.song import SongMetadata

SOURCE = "submissions/foo-2024.mp3"
DEST = "songs/foo-2024.mp3"
COVER = "covers/foo-2024.jpg"


def seed(object_store, metadata_store, key=SOURCE, cover=COVER, approved=False, submitted_at="2024-01-01T00:00:00+00:00"):
    object_store.put(key, b"audio " + key.encode())
    object_store.put(cover, b"cover")
    entry = SongMetadata(
        artist_name="Artist",
        song_name=key.rsplit("/", 1)[-1],
        instagram_handle="",
        song_key=key,
        image_key=cover,
        approved=approved,
        submitted_at=submitted_at,
    )
    metadata_store.add(entry)
    return entry


def assert_approved_state(object_store, metadata_store):
    assert DEST in object_store.objects
    assert SOURCE not in object_store.objects
    songs = metadata_store.get()
    assert list(songs) == [DEST]
    assert songs[DEST].approved is True
    assert songs[DEST].song_key == DEST


def copies(object_store):
    return [c for c in object_store.calls if c[0] == "copy"]


class TestMoveKeys:
    def test_from_submission(self):
        assert move_keys(SOURCE) == (SOURCE, DEST)

    def test_from_song(self):
        assert move_keys(DEST) == (SOURCE, DEST)

    @pytest.mark.parametrize("key", ["", "covers/foo.jpg", "foo.mp3", "submissions/", "submissions/a/b.mp3"])
    def test_invalid(self, key):
        with pytest.raises(ValidationError):
            move_keys(key)


class TestApprove:
    def test_approve_moves_and_flags(self, object_store, metadata_store):
        seed(object_store, metadata_store)

        entry = approve_song(object_store, metadata_store, SOURCE)

        assert entry.song_key == DEST
        assert entry.approved is True
        assert_approved_state(object_store, metadata_store)
        assert object_store.objects[DEST] == b"audio " + SOURCE.encode()
        assert [s.song_key for s in player.list_approved(metadata_store)] == [DEST]

    def test_descriptive_fields_survive(self, object_store, metadata_store):
        original = seed(object_store, metadata_store)
        entry = approve_song(object_store, metadata_store, SOURCE)
        assert entry.artist_name == original.artist_name
        assert entry.image_key == original.image_key
        assert entry.submitted_at == original.submitted_at

    def test_unknown_song(self, object_store, metadata_store):
        with pytest.raises(NotFoundError):
            approve_song(object_store, metadata_store, SOURCE)

    def test_missing_object(self, object_store, metadata_store):
        seed(object_store, metadata_store)
        del object_store.objects[SOURCE]

        with pytest.raises(NotFoundError):
            approve_song(object_store, metadata_store, SOURCE)
        assert metadata_store.get_entry(SOURCE).approved is False

    def test_reapprove_is_idempotent(self, object_store, metadata_store):
        seed(object_store, metadata_store)
        approve_song(object_store, metadata_store, SOURCE)

        again = approve_song(object_store, metadata_store, SOURCE)

        assert again.song_key == DEST
        assert_approved_state(object_store, metadata_store)
        assert len(copies(object_store)) == 1

    def test_approve_by_songs_key(self, object_store, metadata_store):
        seed(object_store, metadata_store)
        approve_song(object_store, metadata_store, SOURCE)

        assert approve_song(object_store, metadata_store, DEST).approved is True
        assert_approved_state(object_store, metadata_store)

    def test_failed_delete_then_retry(self, object_store, metadata_store):
        seed(object_store, metadata_store)
        object_store.fail_next("delete", SOURCE)

        with pytest.raises(PartialMoveError) as excinfo:
            approve_song(object_store, metadata_store, SOURCE)

        err = excinfo.value
        assert err.failed_step == "delete"
        assert err.completed_steps == ["copy"]
        assert "Access Denied" in err.message
        # duplicate object, metadata untouched
        assert SOURCE in object_store.objects and DEST in object_store.objects
        assert metadata_store.get_entry(SOURCE).approved is False

        approve_song(object_store, metadata_store, SOURCE)
        assert_approved_state(object_store, metadata_store)
        assert len(copies(object_store)) == 1

    def test_failed_copy_changes_nothing(self, object_store, metadata_store):
        seed(object_store, metadata_store)
        object_store.fail_next("copy", SOURCE)

        with pytest.raises(PartialMoveError) as excinfo:
            approve_song(object_store, metadata_store, SOURCE)

        assert excinfo.value.failed_step == "copy"
        assert excinfo.value.completed_steps == []
        assert DEST not in object_store.objects
        assert metadata_store.get_entry(SOURCE) is not None

    def test_failed_metadata_write_then_retry(self, object_store, metadata_store, backend):
        seed(object_store, metadata_store)

        def broken_write():
            raise UpstreamError("disk full")

        backend.before_next_write = broken_write
        with pytest.raises(PartialMoveError) as excinfo:
            approve_song(object_store, metadata_store, SOURCE)

        assert excinfo.value.failed_step == "metadata"
        assert excinfo.value.completed_steps == ["copy", "delete"]
        # stale metadata: entry still under the old key
        assert list(metadata_store.get()) == [SOURCE]

        approve_song(object_store, metadata_store, SOURCE)
        assert_approved_state(object_store, metadata_store)


class TestConcurrentApprove:
    """Approvals racing each other converge; an approval racing a delete leaves nothing behind."""

    def test_other_approve_lands_before_our_metadata_write(self, object_store, metadata_store, backend):
        seed(object_store, metadata_store)
        results = []
        backend.before_next_write = lambda: results.append(approve_song(object_store, metadata_store, SOURCE))

        ours = approve_song(object_store, metadata_store, SOURCE)

        assert backend.conflicts == 1
        assert ours.song_key == results[0].song_key == DEST
        assert_approved_state(object_store, metadata_store)

    def test_other_approve_runs_between_our_copy_and_delete(self, object_store, metadata_store):
        seed(object_store, metadata_store)
        results = []
        object_store.before["delete"] = lambda key: results.append(
            approve_song(object_store, metadata_store, SOURCE)
        )

        ours = approve_song(object_store, metadata_store, SOURCE)

        assert ours.approved and results[0].approved
        assert_approved_state(object_store, metadata_store)
        assert len(copies(object_store)) == 1

    def test_delete_lands_during_approve(self, object_store, metadata_store, playlist_store, caplog):
        seed(object_store, metadata_store)
        object_store.before["delete"] = lambda key: delete_song(
            object_store, metadata_store, playlist_store, SOURCE
        )

        with caplog.at_level(logging.ERROR, logger="phxradio.core.admin"):
            with pytest.raises(PartialMoveError) as excinfo:
                approve_song(object_store, metadata_store, SOURCE)

        assert excinfo.value.failed_step == "metadata"
        assert excinfo.value.completed_steps == ["copy", "delete", "cleanup"]
        assert object_store.objects == {}
        assert metadata_store.get() == {}
        assert any("failed at metadata" in r.getMessage() for r in caplog.records)


class TestDelete:
    def test_delete_removes_objects_metadata_and_queue(self, object_store, metadata_store, playlist_store):
        seed(object_store, metadata_store, key="songs/a.mp3", cover="covers/a.jpg", approved=True)
        seed(object_store, metadata_store, key="songs/b.mp3", cover="covers/b.jpg", approved=True)
        player.add_to_playlist(playlist_store, metadata_store, "songs/a.mp3")
        player.add_to_playlist(playlist_store, metadata_store, "songs/b.mp3")
        player.set_current_song(playlist_store, metadata_store, "songs/a.mp3")

        delete_song(object_store, metadata_store, playlist_store, "songs/a.mp3")

        assert "songs/a.mp3" not in object_store.objects
        assert "covers/a.jpg" not in object_store.objects
        assert list(metadata_store.get()) == ["songs/b.mp3"]
        stored = playlist_store.get()
        assert stored.song_keys == ["songs/b.mp3"]
        assert stored.current_song is None

    def test_reject_submission(self, object_store, metadata_store, playlist_store):
        seed(object_store, metadata_store)

        removed = delete_song(object_store, metadata_store, playlist_store, SOURCE)

        assert removed.song_key == SOURCE
        assert metadata_store.get() == {}
        assert SOURCE not in object_store.objects and COVER not in object_store.objects

    def test_unknown_song(self, object_store, metadata_store, playlist_store):
        with pytest.raises(NotFoundError):
            delete_song(object_store, metadata_store, playlist_store, SOURCE)

    def test_missing_objects_are_tolerated(self, object_store, metadata_store, playlist_store):
        seed(object_store, metadata_store)
        object_store.objects.clear()

        delete_song(object_store, metadata_store, playlist_store, SOURCE)
        assert metadata_store.get() == {}

    def test_failed_object_delete_keeps_metadata_for_retry(self, object_store, metadata_store, playlist_store):
        seed(object_store, metadata_store)
        object_store.fail_next("delete", COVER)

        with pytest.raises(UpstreamError):
            delete_song(object_store, metadata_store, playlist_store, SOURCE)
        assert metadata_store.get_entry(SOURCE) is not None

        delete_song(object_store, metadata_store, playlist_store, SOURCE)
        assert metadata_store.get() == {}


class TestBootstrap:
    def test_seeds_placeholders_for_uploaded_audio(self, object_store, metadata_store):
        object_store.put("submissions/")
        object_store.put("submissions/orphan-1.mp3")
        object_store.put("submissions/notes.txt")

        songs = bootstrap_metadata(object_store, metadata_store)

        assert list(songs) == ["submissions/orphan-1.mp3"]
        entry = songs["submissions/orphan-1.mp3"]
        assert entry.artist_name == "Unknown"
        assert entry.song_name == "orphan-1"
        assert entry.approved is False
        assert metadata_store.get() == songs

    def test_existing_metadata_is_left_alone(self, object_store, metadata_store):
        seed(object_store, metadata_store)
        object_store.put("submissions/orphan-1.mp3")

        assert list(bootstrap_metadata(object_store, metadata_store)) == [SOURCE]

    def test_list_submissions(self, object_store):
        object_store.put("submissions/")
        object_store.put("submissions/a.mp3")
        object_store.put("songs/b.mp3")
        assert list_submissions(object_store) == ["submissions/a.mp3"]
