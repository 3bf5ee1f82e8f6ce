"""
Controlador del reproductor de la landing page.

Carga la configuración, elige el adaptador, aplica la política de
interacción, arranca el seguimiento y avisa a la página una única vez
cuando se alcanza el tiempo mínimo de reproducción.
"""
import enum
from typing import Callable, Dict, FrozenSet, Optional

from video_funnel.core.config import settings
from video_funnel.core.logging_config import get_player_logger
from video_funnel.player.backends import AdapterInitError, PlaybackBackend, create_backend
from video_funnel.player.environment import PlayerEnvironment
from video_funnel.player.events import ListenerTable
from video_funnel.player.policy import InteractionGate, PlaybackMode, gate_for_mode
from video_funnel.player.progress_store import ProgressStore
from video_funnel.player.scheduler import TimerGroup, TimerHandle
from video_funnel.player.tracker import ProgressTracker
from video_funnel.schemas.video import VideoConfig
from video_funnel.services.video_api_client import (
    VideoConfigSource,
    default_video_config,
    load_video_config,
)


class ControllerState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    CONFIG_LOADING = "config_loading"
    BACKEND_SELECTING = "backend_selecting"
    AWAITING_INTERACTION = "awaiting_interaction"
    PLAYING = "playing"
    PAUSED = "paused"
    UNLOCKED = "unlocked"
    FAILED = "failed"
    TORN_DOWN = "torn_down"


S = ControllerState

TRANSITIONS: Dict[ControllerState, FrozenSet[ControllerState]] = {
    S.UNINITIALIZED: frozenset({S.CONFIG_LOADING, S.BACKEND_SELECTING, S.TORN_DOWN}),
    S.CONFIG_LOADING: frozenset({S.BACKEND_SELECTING, S.TORN_DOWN}),
    S.BACKEND_SELECTING: frozenset({S.AWAITING_INTERACTION, S.PLAYING, S.FAILED, S.TORN_DOWN}),
    S.AWAITING_INTERACTION: frozenset({S.PLAYING, S.UNLOCKED, S.TORN_DOWN}),
    S.PLAYING: frozenset({S.PAUSED, S.AWAITING_INTERACTION, S.UNLOCKED, S.TORN_DOWN}),
    S.PAUSED: frozenset({S.PLAYING, S.AWAITING_INTERACTION, S.UNLOCKED, S.TORN_DOWN}),
    S.UNLOCKED: frozenset({S.TORN_DOWN}),
    S.FAILED: frozenset({S.TORN_DOWN}),
    S.TORN_DOWN: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    def __init__(self, current: ControllerState, target: ControllerState):
        super().__init__(f"Transición inválida: {current.value} -> {target.value}")
        self.current = current
        self.target = target


class VideoController:
    """
    Máquina de estados de una sesión de reproducción (un montaje del
    reproductor en la página).

    ``unlocked`` es terminal solo para el botón: el video sigue en loop y
    el progreso se sigue guardando después del desbloqueo.
    """

    def __init__(
        self,
        environment: PlayerEnvironment,
        store: ProgressStore,
        config_source: Optional[VideoConfigSource] = None,
        mode: Optional[PlaybackMode] = None,
        on_threshold_reached: Optional[Callable[[], None]] = None,
        on_playback_started: Optional[Callable[[], None]] = None,
        poll_interval: float = settings.PROGRESS_POLL_INTERVAL_MS / 1000.0,
        save_interval: float = settings.PROGRESS_SAVE_INTERVAL_MS / 1000.0,
        hud_timeout: float = settings.HUD_OVERLAY_TIMEOUT_MS / 1000.0,
    ):
        self.environment = environment
        self.store = store
        self.mode = PlaybackMode(mode or settings.PLAYBACK_MODE)
        self._config_source = config_source
        self._on_threshold_reached = on_threshold_reached
        self._on_playback_started = on_playback_started
        self._poll_interval = poll_interval
        self._save_interval = save_interval
        self._hud_timeout = hud_timeout

        self.state = ControllerState.UNINITIALIZED
        self.config: Optional[VideoConfig] = None
        self.backend: Optional[PlaybackBackend] = None
        self.tracker: Optional[ProgressTracker] = None
        self.error: Optional[str] = None
        self.hud_visible = False

        self._timers = TimerGroup(environment.scheduler)
        self._listeners = ListenerTable()
        self._gate: Optional[InteractionGate] = None
        self._hud_timer: Optional[TimerHandle] = None
        self._playback_started_notified = False
        self._log = get_player_logger()

    # --- estado ---

    def _transition(self, target: ControllerState) -> None:
        if target == self.state:
            return
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state, target)
        self._log.info(
            f"Estado del reproductor: {self.state.value} -> {target.value}",
            extra={"state": target.value}
        )
        self.state = target

    @property
    def unlocked(self) -> bool:
        return self.tracker is not None and self.tracker.session.unlocked

    @property
    def playable(self) -> bool:
        return self.backend is not None and self.state not in (S.FAILED, S.TORN_DOWN)

    @property
    def show_play_overlay(self) -> bool:
        """El botón de reproducir está visible y esperando el clic."""
        return self.mode == PlaybackMode.CLICK_TO_PLAY and self._gate is not None and self._gate.armed

    @property
    def awaiting_interaction(self) -> bool:
        return self._gate is not None and self._gate.armed

    # --- montaje ---

    async def mount(self) -> ControllerState:
        """Carga la configuración (con fallback) y prepara el reproductor."""
        self._transition(S.CONFIG_LOADING)
        if self._config_source is None:
            config = default_video_config()
        else:
            config = await load_video_config(self._config_source)
        if self.state == S.TORN_DOWN:
            return self.state
        return self.mount_with_config(config)

    def mount_with_config(self, config: VideoConfig) -> ControllerState:
        self.config = config
        self._transition(S.BACKEND_SELECTING)

        try:
            backend = create_backend(config, self.environment)
        except AdapterInitError as e:
            self.error = str(e)
            self._log.error(f"No hay video reproducible: {str(e)}")
            self._transition(S.FAILED)
            return self.state

        self.backend = backend
        self._log = get_player_logger(backend.identity, backend.kind.value)
        backend.auto_resume_on_pause = self.mode == PlaybackMode.AMBIENT
        backend.on_playback_started(self._handle_started)
        backend.on_playback_ended(self._handle_ended)
        backend.on_playback_paused(self._handle_paused)
        backend.on_playback_blocked(self._handle_blocked)

        self.tracker = ProgressTracker(
            backend,
            self.store,
            self._timers,
            threshold=config.button_delay_seconds,
            on_threshold_reached=self._handle_threshold_reached,
            poll_interval=self._poll_interval,
            save_interval=self._save_interval,
        )
        self._listeners.register(self.environment.window, "beforeunload", self._handle_before_unload)
        self._gate = gate_for_mode(
            self.mode, self.environment.document, self.environment.play_button, self._listeners
        )

        self._log.info(
            f"Video seleccionado: type={backend.kind.value}, id={backend.identity}, "
            f"umbral={config.button_delay_seconds}s, modo={self.mode.value}"
        )

        if self.mode == PlaybackMode.AMBIENT and backend.supports_muted_autoplay:
            self._start_backend(muted=True)
        else:
            self._await_interaction()
        return self.state

    # --- reproducción ---

    def _start_backend(self, muted: bool) -> None:
        resume_from = 0.0
        if self.backend.reports_position:
            resume_from = self.store.get(self.backend.identity)
            if resume_from > 0:
                self._log.info(f"Reanudando desde {resume_from:.1f}s")
        self.backend.start(resume_from, muted=muted)

    def _await_interaction(self) -> None:
        if not self.unlocked:
            self._transition(S.AWAITING_INTERACTION)
        self._gate.arm(self._handle_interaction)

    def _handle_interaction(self) -> None:
        if self.state in (S.TORN_DOWN, S.FAILED):
            return
        self._log.info("Interacción del usuario: reproducción con sonido")
        self._start_backend(muted=False)
        self._notify_playback_started()

    def _notify_playback_started(self) -> None:
        if self._playback_started_notified:
            return
        self._playback_started_notified = True
        self._call_outward(self._on_playback_started, "on_playback_started")

    def _handle_started(self) -> None:
        if self.state == S.TORN_DOWN:
            return
        if self._gate.armed:
            self._gate.disarm()
        self._notify_playback_started()
        if self.tracker.start():
            self.hud_visible = True
            self._hud_timer = self._timers.later(self._hud_timeout, self._hide_hud)
        if self.state in (S.BACKEND_SELECTING, S.AWAITING_INTERACTION, S.PAUSED):
            self._transition(S.PLAYING)

    def _handle_paused(self) -> None:
        if self.state == S.TORN_DOWN:
            return
        self.tracker.save_now()
        if self.state == S.PLAYING:
            self._transition(S.PAUSED)

    def _handle_ended(self) -> None:
        # El adaptador vuelve a 0 y reproduce; no se reanuda en el último segundo
        self.store.clear(self.backend.identity)
        self._log.info("Fin del video: progreso borrado, reiniciando loop")

    def _handle_blocked(self) -> None:
        if self.state in (S.TORN_DOWN, S.FAILED):
            return
        self._await_interaction()

    def _handle_threshold_reached(self) -> None:
        if self.state == S.TORN_DOWN:
            return
        self._transition(S.UNLOCKED)
        self._call_outward(self._on_threshold_reached, "on_threshold_reached")

    def _call_outward(self, callback: Optional[Callable[[], None]], name: str) -> None:
        # Los errores de la página se registran y no se propagan
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            self._log.error(f"Error en callback {name}: {str(e)}")

    def _hide_hud(self) -> None:
        self.hud_visible = False
        self._hud_timer = None

    def _handle_before_unload(self, event=None) -> None:
        if self.tracker is not None:
            self.tracker.save_now()

    # --- desmontaje ---

    def teardown(self) -> None:
        """Guarda el progreso y libera temporizadores, listeners y adaptador."""
        if self.state == S.TORN_DOWN:
            return
        if self.tracker is not None:
            self.tracker.save_now()
            self.tracker.stop()
        self._timers.cancel_all()
        if self._gate is not None:
            self._gate.disarm()
        self._listeners.close()
        if self.backend is not None:
            self.backend.teardown()
        self._transition(S.TORN_DOWN)

    async def __aenter__(self) -> "VideoController":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.teardown()
