"""
Fixtures compartidas: reloj simulado, drivers falsos y base de datos SQLite en memoria.
"""
import json
from typing import Callable, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from video_funnel.player.environment import PlaybackBlockedError, PlayerEnvironment
from video_funnel.player.events import EventTarget
from video_funnel.player.progress_store import MemoryStorage, ProgressStore


class FakeTimer:
    def __init__(self, seq: int, due: float, callback: Callable[[], None], interval: Optional[float]):
        self.seq = seq
        self.due = due
        self.callback = callback
        self.interval = interval
        self.active = True

    def cancel(self) -> None:
        self.active = False


class FakeScheduler:
    """Reloj manual: ``advance`` ejecuta en orden los temporizadores vencidos."""

    def __init__(self, start: float = 1_700_000_000.0):
        self._now = start
        self._seq = 0
        self.timers: List[FakeTimer] = []

    def now(self) -> float:
        return self._now

    def _add(self, delay: float, callback, interval: Optional[float]) -> FakeTimer:
        self._seq += 1
        timer = FakeTimer(self._seq, self._now + delay, callback, interval)
        self.timers.append(timer)
        return timer

    def call_later(self, delay: float, callback) -> FakeTimer:
        return self._add(delay, callback, None)

    def call_every(self, interval: float, callback) -> FakeTimer:
        return self._add(interval, callback, interval)

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while True:
            due = [t for t in self.timers if t.active and t.due <= target + 1e-6]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self._now = max(self._now, timer.due)
            if timer.interval is None:
                timer.active = False
            else:
                timer.due += timer.interval
            timer.callback()
        self._now = target
        self.timers = [t for t in self.timers if t.active]

    @property
    def active_timers(self) -> int:
        return sum(1 for t in self.timers if t.active)


class FakeMediaElement(EventTarget):
    """Elemento <video> simulado; el tiempo se fija a mano en las pruebas."""

    def __init__(self, src: str):
        super().__init__("video")
        self.src = src
        self.current_time = 0.0
        self.muted = False
        self.volume = 1.0
        self.paused = True
        self.blocked = False
        self.play_calls = 0

    def play(self) -> None:
        self.play_calls += 1
        if self.blocked:
            raise PlaybackBlockedError("NotAllowedError")
        self.paused = False
        self.dispatch_event("play")

    def pause(self) -> None:
        self.paused = True
        self.dispatch_event("pause")

    def finish(self) -> None:
        self.paused = True
        self.dispatch_event("ended")


class FakeYouTubePlayer:
    def __init__(self, video_id: str, player_vars: dict, events: dict):
        self.video_id = video_id
        self.player_vars = player_vars
        self.events = events
        self.current_time = 0.0
        self.muted = bool(player_vars.get("mute"))
        self.volume = 100
        self.blocked = False
        self.destroyed = False
        self.calls: List[tuple] = []

    def ready(self) -> None:
        self.events["on_ready"](None)

    def set_state(self, state: int) -> None:
        self.events["on_state_change"](state)

    def play_video(self) -> None:
        self.calls.append(("play",))
        if self.blocked:
            raise PlaybackBlockedError("autoplay")

    def pause_video(self) -> None:
        self.calls.append(("pause",))

    def seek_to(self, seconds: float, allow_seek_ahead: bool = True) -> None:
        self.calls.append(("seek", seconds))
        self.current_time = seconds

    def get_current_time(self) -> float:
        return self.current_time

    def mute(self) -> None:
        self.muted = True

    def un_mute(self) -> None:
        self.muted = False

    def set_volume(self, volume: int) -> None:
        self.volume = volume

    def destroy(self) -> None:
        self.destroyed = True


class FakeVimeoChannel(EventTarget):
    def __init__(self, embed_url: str):
        super().__init__("vimeo-iframe")
        self.embed_url = embed_url
        self.sent: List[dict] = []

    def post_message(self, data: str) -> None:
        self.sent.append(json.loads(data))

    def receive(self, event_name: str) -> None:
        self.dispatch_event("message", json.dumps({"event": event_name}))

    def methods(self) -> List[str]:
        return [m["method"] for m in self.sent]


class FailingStorage(MemoryStorage):
    """Almacenamiento que rechaza escrituras (cuota excedida, modo privado)."""

    def __init__(self, initial=None, fail_reads: bool = False):
        super().__init__(initial)
        self.fail_reads = fail_reads
        self.write_attempts = 0

    def get_item(self, key):
        if self.fail_reads:
            raise RuntimeError("SecurityError")
        return super().get_item(key)

    def set_item(self, key, value):
        self.write_attempts += 1
        raise RuntimeError("QuotaExceededError")

    def remove_item(self, key):
        raise RuntimeError("SecurityError")


class CountingStorage(MemoryStorage):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = 0

    def set_item(self, key, value):
        self.writes += 1
        super().set_item(key, value)


class Drivers:
    """Registro de los drivers creados por el entorno de prueba."""

    def __init__(self):
        self.media: List[FakeMediaElement] = []
        self.youtube: List[FakeYouTubePlayer] = []
        self.vimeo: List[FakeVimeoChannel] = []

    def media_element(self, src: str) -> FakeMediaElement:
        element = FakeMediaElement(src)
        self.media.append(element)
        return element

    def youtube_player(self, video_id: str, player_vars: dict, events: dict) -> FakeYouTubePlayer:
        player = FakeYouTubePlayer(video_id, player_vars, events)
        self.youtube.append(player)
        return player

    def vimeo_channel(self, embed_url: str) -> FakeVimeoChannel:
        channel = FakeVimeoChannel(embed_url)
        self.vimeo.append(channel)
        return channel


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def drivers():
    return Drivers()


@pytest.fixture
def environment(scheduler, drivers):
    return PlayerEnvironment(
        scheduler=scheduler,
        media_element_factory=drivers.media_element,
        youtube_player_factory=drivers.youtube_player,
        vimeo_channel_factory=drivers.vimeo_channel,
    )


@pytest.fixture
def storage():
    return CountingStorage()


@pytest.fixture
def store(storage, scheduler):
    return ProgressStore(storage, clock=scheduler.now)


@pytest.fixture
def db_session_factory():
    from video_funnel.db.base import Base
    from video_funnel.models import video_config, engagement_event, browser_storage  # noqa: F401

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()
