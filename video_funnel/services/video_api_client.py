import httpx
import logging
from typing import Any, Dict, Optional, Protocol

from video_funnel.core.config import settings
from video_funnel.schemas.video import CurrentVideoResponse, VideoConfig

logger = logging.getLogger(__name__)


class VideoConfigSource(Protocol):
    async def fetch_current_video(self) -> Optional[VideoConfig]: ...


def default_video_config() -> VideoConfig:
    """Video usado cuando la API no responde o no hay video activo."""
    return VideoConfig(
        id=0,
        video_url=settings.DEFAULT_VIDEO_URL,
        video_type=settings.DEFAULT_VIDEO_TYPE,
        button_delay_seconds=settings.DEFAULT_BUTTON_DELAY,
    )


async def load_video_config(source: VideoConfigSource) -> VideoConfig:
    """
    Obtiene la configuración activa. Nunca falla: ante cualquier error o si
    no hay video configurado devuelve la configuración por defecto.
    """
    try:
        video = await source.fetch_current_video()
    except Exception as e:
        logger.warning(f"Error al cargar configuración de video, usando la de defecto: {str(e)}")
        return default_video_config()

    if video is None:
        logger.info("No hay video activo configurado, usando el de defecto")
        return default_video_config()
    return video


class FunnelApiClient:
    """
    Cliente HTTP de la landing page hacia la API del funnel.
    """

    def __init__(self, base_url: str = None, timeout: float = None,
                 transport: httpx.AsyncBaseTransport = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def fetch_current_video(self) -> Optional[VideoConfig]:
        """
        GET /api/video/current

        Raises:
            httpx.HTTPError: error de red o respuesta no exitosa
            pydantic.ValidationError: respuesta con formato inválido
        """
        async with self._client() as client:
            response = await client.get("/api/video/current")
            response.raise_for_status()
        return CurrentVideoResponse.model_validate(response.json()).video

    async def track_event(
        self,
        event_type: str,
        event_data: Optional[Dict[str, Any]] = None,
        visitor_id: Optional[str] = None,
        session_id: Optional[str] = None,
        page_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Envía un evento de interacción a /api/analytics/event
        """
        payload = {"eventType": event_type, "eventData": event_data or {}}
        if visitor_id:
            payload["visitorId"] = visitor_id
        if session_id:
            payload["sessionId"] = session_id
        if page_url:
            payload["pageUrl"] = page_url

        try:
            async with self._client() as client:
                response = await client.post("/api/analytics/event", json=payload)

            return {
                'success': response.is_success,
                'status_code': response.status_code,
                'event_type': event_type
            }

        except Exception as e:
            logger.error(f"Error tracking event: {str(e)}")
            return {
                'success': False,
                'error': str(e),
                'event_type': event_type
            }
