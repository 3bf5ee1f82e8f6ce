"""
Seguimiento del tiempo de reproducción y desbloqueo del botón.
"""
import logging
from typing import Callable, Optional

from video_funnel.player.backends import PlaybackBackend
from video_funnel.player.progress_store import ProgressStore
from video_funnel.player.scheduler import TimerGroup, TimerHandle

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.3
SAVE_INTERVAL_SECONDS = 3.0


class TrackingSession:
    """
    Cerrojos de una sesión de reproducción. Ambos pasan de False a True
    una sola vez y nunca vuelven atrás.
    """

    def __init__(self, threshold: float):
        self.threshold = threshold
        self._started = False
        self._unlocked = False
        self.unlocked_at: Optional[float] = None

    @property
    def started(self) -> bool:
        return self._started

    @property
    def unlocked(self) -> bool:
        return self._unlocked

    def arm(self) -> bool:
        """True solo la primera vez."""
        if self._started:
            return False
        self._started = True
        return True

    def try_unlock(self, elapsed: Optional[float]) -> bool:
        """True solo en la primera lectura con elapsed >= threshold."""
        if self._unlocked or not self._started or elapsed is None:
            return False
        if elapsed < self.threshold:
            return False
        self._unlocked = True
        self.unlocked_at = elapsed
        return True


class ProgressTracker:
    """
    Consulta ``current_time()`` del adaptador cada 300 ms para el desbloqueo
    y guarda el progreso cada 3 s en un temporizador independiente.
    """

    def __init__(
        self,
        backend: PlaybackBackend,
        store: ProgressStore,
        timers: TimerGroup,
        threshold: float,
        on_threshold_reached: Callable[[], None],
        poll_interval: float = POLL_INTERVAL_SECONDS,
        save_interval: float = SAVE_INTERVAL_SECONDS,
    ):
        self.backend = backend
        self.store = store
        self.session = TrackingSession(threshold)
        self._timers = timers
        self._on_threshold_reached = on_threshold_reached
        self._poll_interval = poll_interval
        self._save_interval = save_interval
        self._poll_timer: Optional[TimerHandle] = None
        self._save_timer: Optional[TimerHandle] = None
        self._stopped = False

    @property
    def persists_progress(self) -> bool:
        return self.backend.reports_position

    def start(self) -> bool:
        """Arma el seguimiento; las llamadas posteriores no hacen nada."""
        if self._stopped or not self.session.arm():
            return False
        self._poll_timer = self._timers.every(self._poll_interval, self.poll)
        if self.persists_progress:
            self._save_timer = self._timers.every(self._save_interval, self.save_progress)
        logger.info(
            f"Seguimiento iniciado: video={self.backend.identity}, "
            f"umbral={self.session.threshold}s"
        )
        return True

    def poll(self) -> None:
        if self._stopped:
            return
        elapsed = self.backend.current_time()
        if self.session.try_unlock(elapsed):
            logger.info(f"Umbral alcanzado: video={self.backend.identity}, t={elapsed:.1f}s")
            self._on_threshold_reached()

    def save_progress(self) -> bool:
        if self._stopped or not self.persists_progress:
            return False
        elapsed = self.backend.current_time()
        if not elapsed or elapsed <= 0:
            return False
        return self.store.set(self.backend.identity, elapsed)

    def save_now(self) -> bool:
        """Escritura final síncrona (cierre de página o desmontaje)."""
        if not self.session.started:
            return False
        return self.save_progress()

    def stop(self) -> None:
        self._timers.cancel(self._poll_timer)
        self._timers.cancel(self._save_timer)
        self._poll_timer = None
        self._save_timer = None
        self._stopped = True
