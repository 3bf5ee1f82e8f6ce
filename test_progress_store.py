import json

from conftest import FailingStorage
from video_funnel.player.progress_store import MemoryStorage, ProgressStore, SqlStorage


def test_set_then_get_survives_reload(scheduler):
    storage = MemoryStorage()
    ProgressStore(storage, clock=scheduler.now).set("abc123", 42)

    reloaded = ProgressStore(storage, clock=scheduler.now)
    assert reloaded.get("abc123") == 42


def test_clear_resets_to_zero(store):
    store.set("abc123", 42)
    store.clear("abc123")
    assert store.get("abc123") == 0


def test_identities_are_namespaced(store, storage):
    store.set("video-a", 10)
    assert store.get("video-b") == 0
    assert set(storage.items) == {"video_progress_video-a"}


def test_record_layout_matches_local_storage_format(store, storage, scheduler):
    store.set("1142286537", 12.5)
    raw = json.loads(storage.items["video_progress_1142286537"])
    assert raw == {"time": 12.5, "timestamp": int(scheduler.now() * 1000)}

    record = store.get_record("1142286537")
    assert record.identity == "1142286537"
    assert record.time == 12.5


def test_corrupt_entries_degrade_to_zero(scheduler):
    storage = MemoryStorage({
        "video_progress_bad-json": "{not json",
        "video_progress_not-object": "42",
        "video_progress_text-time": json.dumps({"time": "abc"}),
        "video_progress_negative": json.dumps({"time": -5}),
        "video_progress_nan": '{"time": NaN}',
        "video_progress_inf-timestamp": '{"time": 5, "timestamp": Infinity}',
        "video_progress_huge": '{"time": 1' + "0" * 400 + "}",
    })
    store = ProgressStore(storage, clock=scheduler.now)

    for identity in ("bad-json", "not-object", "text-time", "negative", "nan", "inf-timestamp", "huge", "missing"):
        assert store.get(identity) == 0


def test_storage_errors_are_swallowed(scheduler):
    storage = FailingStorage(fail_reads=True)
    store = ProgressStore(storage, clock=scheduler.now)

    assert store.set("abc", 5) is False
    assert store.get("abc") == 0
    store.clear("abc")
    assert storage.write_attempts == 1


def test_empty_identity_is_ignored(store, storage):
    assert store.set("", 5) is False
    assert store.get("") == 0
    assert storage.items == {}


def test_sql_storage_round_trip(db_session_factory, scheduler):
    store = ProgressStore(SqlStorage(db_session_factory), clock=scheduler.now)

    store.set("/videos/video_1.mp4", 33.3)
    store.set("/videos/video_1.mp4", 40.0)
    assert store.get("/videos/video_1.mp4") == 40.0

    store.clear("/videos/video_1.mp4")
    assert store.get("/videos/video_1.mp4") == 0
