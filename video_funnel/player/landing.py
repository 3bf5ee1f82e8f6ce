"""
Armado del reproductor de la landing page con el registro de eventos.
"""
import asyncio
import logging
from typing import Callable, Optional, Set

from video_funnel.player.controller import VideoController
from video_funnel.player.environment import PlayerEnvironment
from video_funnel.player.policy import PlaybackMode
from video_funnel.player.progress_store import ProgressStore
from video_funnel.services.video_api_client import FunnelApiClient

logger = logging.getLogger(__name__)

EVENT_PLAY_START = "video_play_start"
EVENT_CTA_UNLOCKED = "cta_unlocked"


def create_landing_controller(
    environment: PlayerEnvironment,
    store: ProgressStore,
    client: FunnelApiClient,
    mode: Optional[PlaybackMode] = None,
    on_threshold_reached: Optional[Callable[[], None]] = None,
    visitor_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> VideoController:
    """
    Crea el controlador usando la API como fuente de configuración y
    registra ``video_play_start`` y ``cta_unlocked`` como eventos.

    Los envíos corren como tareas en el loop actual; un fallo de red no
    afecta al reproductor.
    """
    pending: Set[asyncio.Task] = set()
    controller: Optional[VideoController] = None

    def _send(event_type: str) -> None:
        data = {}
        if controller is not None and controller.backend is not None:
            data = {
                "video_id": controller.backend.identity,
                "video_type": controller.backend.kind.value,
            }
        task = asyncio.ensure_future(
            client.track_event(event_type, data, visitor_id=visitor_id, session_id=session_id)
        )
        pending.add(task)
        task.add_done_callback(pending.discard)

    def _playback_started() -> None:
        _send(EVENT_PLAY_START)

    def _threshold_reached() -> None:
        logger.info("Botón de la landing desbloqueado")
        _send(EVENT_CTA_UNLOCKED)
        if on_threshold_reached:
            on_threshold_reached()

    controller = VideoController(
        environment,
        store,
        config_source=client,
        mode=mode,
        on_threshold_reached=_threshold_reached,
        on_playback_started=_playback_started,
    )
    return controller
