"""
Temporizadores cooperativos del reproductor.

Todo el reproductor corre en un único hilo: los callbacks de temporizador y
de eventos nunca se ejecutan en paralelo. ``AsyncioScheduler`` es la
implementación de producción sobre el loop de asyncio.
"""
import asyncio
import logging
import time
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...

    @property
    def active(self) -> bool: ...


class Scheduler(Protocol):
    def now(self) -> float:
        """Segundos desde epoch (reloj de pared)."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle: ...


class _AsyncioTimer:
    """setTimeout / setInterval sobre ``loop.call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop, delay: float,
                 callback: Callable[[], None], repeat: bool):
        self._loop = loop
        self._delay = delay
        self._callback = callback
        self._repeat = repeat
        self._handle: Optional[asyncio.TimerHandle] = None
        self._active = True
        self._schedule()

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        if not self._active:
            return
        if not self._repeat:
            self._active = False
        try:
            self._callback()
        except Exception:
            logger.exception("Error en callback de temporizador")
        if self._repeat and self._active:
            self._schedule()

    def cancel(self) -> None:
        self._active = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def active(self) -> bool:
        return self._active


class AsyncioScheduler:
    def __init__(self, loop: asyncio.AbstractEventLoop = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _AsyncioTimer:
        return _AsyncioTimer(self.loop, delay, callback, repeat=False)

    def call_every(self, interval: float, callback: Callable[[], None]) -> _AsyncioTimer:
        return _AsyncioTimer(self.loop, interval, callback, repeat=True)


class TimerGroup:
    """
    Conjunto de temporizadores de una sesión. ``cancel_all`` los detiene
    todos; después de cerrado el grupo no acepta temporizadores nuevos.
    """

    def __init__(self, scheduler: Scheduler):
        self._scheduler = scheduler
        self._timers: List[TimerHandle] = []
        self._closed = False

    def later(self, delay: float, callback: Callable[[], None]) -> Optional[TimerHandle]:
        if self._closed:
            return None
        timer = self._scheduler.call_later(delay, callback)
        self._timers.append(timer)
        return timer

    def every(self, interval: float, callback: Callable[[], None]) -> Optional[TimerHandle]:
        if self._closed:
            return None
        timer = self._scheduler.call_every(interval, callback)
        self._timers.append(timer)
        return timer

    def cancel(self, timer: Optional[TimerHandle]) -> None:
        if timer is None:
            return
        timer.cancel()
        if timer in self._timers:
            self._timers.remove(timer)

    def cancel_all(self) -> None:
        self._closed = True
        timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()

    @property
    def active_count(self) -> int:
        return sum(1 for timer in self._timers if timer.active)

    def __enter__(self) -> "TimerGroup":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel_all()
