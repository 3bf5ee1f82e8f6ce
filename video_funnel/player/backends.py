"""
Adaptadores de reproducción: una interfaz común sobre archivo local,
YouTube, Vimeo y Google Drive.

Reglas compartidas por todos los adaptadores:

- Al terminar el video se vuelve a 0 y se reproduce de nuevo (ended ->
  seek(0) -> play()); la landing nunca muestra un estado "terminado".
- Con ``auto_resume_on_pause`` activo, una pausa se trata como anomalía y
  se reanuda inmediatamente (variantes ambientales).
- Vimeo y Google Drive no exponen la posición real: ``current_time()``
  devuelve los segundos de reloj transcurridos desde el inicio.
"""
import enum
import json
import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Type

from video_funnel.player.environment import (
    MediaElement,
    MessageChannel,
    PlaybackBlockedError,
    PlayerEnvironment,
    YouTubePlayer,
)
from video_funnel.schemas.video import VideoConfig, VideoType

logger = logging.getLogger(__name__)

YOUTUBE_ID_RE = re.compile(r"^.*((youtu.be/)|(v/)|(/u/\w/)|(embed/)|(watch\?))\??v?=?([^#&?]*).*")
VIMEO_ID_RE = re.compile(r"vimeo\.com/(?:video/)?(\d+)")
GOOGLE_DRIVE_ID_RE = re.compile(r"/d/([a-zA-Z0-9_-]+)")

VIMEO_EMBED_PARAMS = (
    "muted=1&loop=1&autopause=0&controls=0&title=0&byline=0"
    "&portrait=0&playsinline=1&api=1"
)


class AdapterInitError(ValueError):
    """La configuración no permite construir un reproductor (URL inválida, driver ausente)."""


def youtube_video_id(url: str) -> Optional[str]:
    match = YOUTUBE_ID_RE.match(url or "")
    if match and len(match.group(7)) == 11:
        return match.group(7)
    return None


def vimeo_video_id(url: str) -> Optional[str]:
    match = VIMEO_ID_RE.search(url or "")
    return match.group(1) if match else None


def google_drive_file_id(url: str) -> Optional[str]:
    match = GOOGLE_DRIVE_ID_RE.search(url or "")
    return match.group(1) if match else None


class PlaybackBackend(ABC):
    kind: VideoType
    # True si current_time() es la posición real del medio
    reports_position: bool = True
    supports_muted_autoplay: bool = True

    def __init__(self, config: VideoConfig, environment: PlayerEnvironment):
        self.config = config
        self.environment = environment
        self.identity = self.resolve_identity(config)
        self.auto_resume_on_pause = False
        self._callbacks: Dict[str, Callable[[], None]] = {}
        self._started_at: Optional[float] = None
        self._torn_down = False

    @classmethod
    @abstractmethod
    def resolve_identity(cls, config: VideoConfig) -> str:
        """Identidad estable del video; lanza AdapterInitError si no se puede derivar."""

    # --- suscripciones (un único callback por evento) ---

    def _subscribe(self, event: str, callback: Callable[[], None]) -> None:
        if event in self._callbacks:
            raise RuntimeError(f"Ya hay un callback registrado para '{event}'")
        self._callbacks[event] = callback

    def on_playback_started(self, callback: Callable[[], None]) -> None:
        self._subscribe("started", callback)

    def on_playback_ended(self, callback: Callable[[], None]) -> None:
        self._subscribe("ended", callback)

    def on_playback_paused(self, callback: Callable[[], None]) -> None:
        self._subscribe("paused", callback)

    def on_playback_blocked(self, callback: Callable[[], None]) -> None:
        self._subscribe("blocked", callback)

    def _emit(self, event: str) -> None:
        if self._torn_down:
            return
        callback = self._callbacks.get(event)
        if callback:
            callback()

    # --- transiciones comunes ---

    def _handle_started(self) -> None:
        if self._started_at is None:
            self._started_at = self.environment.scheduler.now()
        self._emit("started")

    def _handle_ended(self) -> None:
        if self._torn_down:
            return
        self._emit("ended")
        self.seek(0)
        self.play()

    def _handle_paused(self) -> None:
        if self._torn_down:
            return
        self._emit("paused")
        if self.auto_resume_on_pause:
            logger.info(f"Pausa inesperada en {self.kind.value}, reanudando")
            self.play()

    def _handle_blocked(self) -> None:
        logger.info(f"Reproducción bloqueada por el navegador ({self.kind.value})")
        self._emit("blocked")

    def elapsed_since_start(self) -> Optional[float]:
        if self._started_at is None:
            return None
        return max(0.0, self.environment.scheduler.now() - self._started_at)

    # --- capacidades ---

    @abstractmethod
    def start(self, resume_from: float = 0.0, muted: bool = False) -> None:
        """Inicia la reproducción; un bloqueo se notifica por on_playback_blocked."""

    @abstractmethod
    def current_time(self) -> Optional[float]:
        ...

    def seek(self, seconds: float) -> None:
        pass

    def play(self) -> None:
        pass

    def set_muted(self, muted: bool) -> None:
        pass

    def set_volume(self, volume: int) -> None:
        pass

    def teardown(self) -> None:
        self._torn_down = True
        self._callbacks.clear()

    def __repr__(self):
        return f"<{type(self).__name__}(identity='{self.identity}')>"


class LocalFileBackend(PlaybackBackend):
    """Archivo de video servido por la propia landing (<video> HTML5)."""
    kind = VideoType.LOCAL

    def __init__(self, config: VideoConfig, environment: PlayerEnvironment):
        super().__init__(config, environment)
        if environment.media_element_factory is None:
            raise AdapterInitError("No hay fábrica de elementos <video> disponible")
        self.element: MediaElement = environment.media_element_factory(self.identity)
        self.element.add_event_listener("play", self._on_play)
        self.element.add_event_listener("pause", self._on_pause)
        self.element.add_event_listener("ended", self._on_ended)

    @classmethod
    def resolve_identity(cls, config: VideoConfig) -> str:
        identity = (config.video_path or config.video_url or "").strip()
        if not identity:
            raise AdapterInitError("El video local no tiene ruta")
        return identity

    def _on_play(self, event: Any = None) -> None:
        self._handle_started()

    def _on_pause(self, event: Any = None) -> None:
        self._handle_paused()

    def _on_ended(self, event: Any = None) -> None:
        self._handle_ended()

    def start(self, resume_from: float = 0.0, muted: bool = False) -> None:
        if resume_from > 0:
            self.element.current_time = resume_from
        self.element.muted = muted
        self.play()

    def current_time(self) -> Optional[float]:
        return self.element.current_time

    def seek(self, seconds: float) -> None:
        self.element.current_time = seconds

    def play(self) -> None:
        if self._torn_down:
            return
        try:
            self.element.play()
        except PlaybackBlockedError:
            self._handle_blocked()

    def set_muted(self, muted: bool) -> None:
        self.element.muted = muted

    def set_volume(self, volume: int) -> None:
        self.element.volume = max(0, min(100, volume)) / 100.0

    def teardown(self) -> None:
        super().teardown()
        self.element.remove_event_listener("play", self._on_play)
        self.element.remove_event_listener("pause", self._on_pause)
        self.element.remove_event_listener("ended", self._on_ended)
        self.element.pause()


class YouTubeState(enum.IntEnum):
    UNSTARTED = -1
    ENDED = 0
    PLAYING = 1
    PAUSED = 2
    BUFFERING = 3
    CUED = 5


class YouTubeBackend(PlaybackBackend):
    """Reproductor IFrame de YouTube."""
    kind = VideoType.YOUTUBE

    def __init__(self, config: VideoConfig, environment: PlayerEnvironment):
        super().__init__(config, environment)
        if environment.youtube_player_factory is None:
            raise AdapterInitError("La IFrame API de YouTube no está disponible")
        self.player: Optional[YouTubePlayer] = None
        self._muted = False

    @classmethod
    def resolve_identity(cls, config: VideoConfig) -> str:
        video_id = youtube_video_id(config.video_url)
        if not video_id:
            raise AdapterInitError(f"URL de YouTube inválida: {config.video_url}")
        return video_id

    def player_vars(self, resume_from: float, muted: bool) -> Dict[str, Any]:
        return {
            "autoplay": 1,
            "mute": 1 if muted else 0,
            "controls": 0,
            "disablekb": 1,
            "fs": 0,
            "modestbranding": 1,
            "playsinline": 1,
            "rel": 0,
            "iv_load_policy": 3,
            "cc_load_policy": 0,
            "enablejsapi": 1,
            "loop": 1,
            "playlist": self.identity,
            "start": int(math.floor(max(0.0, resume_from))),
        }

    def start(self, resume_from: float = 0.0, muted: bool = False) -> None:
        self._muted = muted
        if self.player is not None:
            self.set_muted(muted)
            self.play()
            return
        self.player = self.environment.youtube_player_factory(
            self.identity,
            self.player_vars(resume_from, muted),
            {
                "on_ready": self._on_ready,
                "on_state_change": self._on_state_change,
                "on_error": self._on_error,
            },
        )

    def _on_ready(self, event: Any = None) -> None:
        self.play()
        if self._muted:
            self.player.mute()
        else:
            self.player.un_mute()
        self.player.set_volume(100)

    def _on_state_change(self, state: int) -> None:
        if state == YouTubeState.PLAYING:
            self._handle_started()
        elif state == YouTubeState.ENDED:
            self._handle_ended()
        elif state == YouTubeState.PAUSED:
            self._handle_paused()

    def _on_error(self, code: Any = None) -> None:
        logger.warning(f"Error del reproductor de YouTube: {code}")

    def current_time(self) -> Optional[float]:
        if self.player is None:
            return None
        return self.player.get_current_time()

    def seek(self, seconds: float) -> None:
        if self.player is not None:
            self.player.seek_to(seconds, True)

    def play(self) -> None:
        if self.player is None or self._torn_down:
            return
        try:
            self.player.play_video()
        except PlaybackBlockedError:
            self._handle_blocked()

    def set_muted(self, muted: bool) -> None:
        self._muted = muted
        if self.player is None:
            return
        if muted:
            self.player.mute()
        else:
            self.player.un_mute()

    def set_volume(self, volume: int) -> None:
        if self.player is not None:
            self.player.set_volume(max(0, min(100, volume)))

    def teardown(self) -> None:
        super().teardown()
        if self.player is not None:
            self.player.destroy()
            self.player = None


class VimeoBackend(PlaybackBackend):
    """
    Iframe de Vimeo controlado por postMessage. El embed arranca silenciado
    y en loop; los comandos no tienen respuesta, por eso el tiempo es de reloj.
    """
    kind = VideoType.VIMEO
    reports_position = False

    SUBSCRIBED_EVENTS = ("play", "pause", "finish")

    def __init__(self, config: VideoConfig, environment: PlayerEnvironment):
        super().__init__(config, environment)
        if environment.vimeo_channel_factory is None:
            raise AdapterInitError("No hay canal postMessage para Vimeo")
        self.channel: MessageChannel = environment.vimeo_channel_factory(self.embed_url)
        self.channel.add_event_listener("message", self._on_message)
        self._subscribed = False

    @classmethod
    def resolve_identity(cls, config: VideoConfig) -> str:
        video_id = vimeo_video_id(config.video_url)
        if not video_id:
            raise AdapterInitError(f"URL de Vimeo inválida: {config.video_url}")
        return video_id

    @property
    def embed_url(self) -> str:
        return f"https://player.vimeo.com/video/{self.identity}?{VIMEO_EMBED_PARAMS}"

    def _post(self, method: str, value: Any = None) -> None:
        message = {"method": method}
        if value is not None:
            message["value"] = value
        self.channel.post_message(json.dumps(message))

    def start(self, resume_from: float = 0.0, muted: bool = False) -> None:
        if not self._subscribed:
            for event in self.SUBSCRIBED_EVENTS:
                self._post("addEventListener", event)
            self._subscribed = True
        if resume_from > 0:
            self.seek(resume_from)
        self._post("play")
        if muted:
            self._post("setMuted", True)
        else:
            self._post("setVolume", 1)
            self._post("setMuted", False)
        self._handle_started()

    def _on_message(self, event: Any = None) -> None:
        if self._torn_down:
            return
        payload = event
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError:
                return
        if not isinstance(payload, dict):
            return

        name = payload.get("event")
        if name == "play":
            self._handle_started()
        elif name == "pause":
            self._handle_paused()
        elif name == "finish":
            self._handle_ended()

    def current_time(self) -> Optional[float]:
        return self.elapsed_since_start()

    def seek(self, seconds: float) -> None:
        self._post("setCurrentTime", seconds)

    def play(self) -> None:
        if not self._torn_down:
            self._post("play")

    def set_muted(self, muted: bool) -> None:
        self._post("setMuted", muted)

    def set_volume(self, volume: int) -> None:
        self._post("setVolume", max(0, min(100, volume)) / 100.0)

    def teardown(self) -> None:
        super().teardown()
        self.channel.remove_event_listener("message", self._on_message)


class GoogleDriveBackend(PlaybackBackend):
    """
    Vista previa embebida de Google Drive. No hay API de control ni de
    progreso: solo se puede mostrar el iframe y medir el tiempo de reloj.
    """
    kind = VideoType.GOOGLE_DRIVE
    reports_position = False
    supports_muted_autoplay = False

    @classmethod
    def resolve_identity(cls, config: VideoConfig) -> str:
        file_id = google_drive_file_id(config.video_url)
        if not file_id:
            raise AdapterInitError(f"URL de Google Drive inválida: {config.video_url}")
        return file_id

    @property
    def embed_url(self) -> str:
        return f"https://drive.google.com/file/d/{self.identity}/preview"

    def start(self, resume_from: float = 0.0, muted: bool = False) -> None:
        self._handle_started()

    def current_time(self) -> Optional[float]:
        return self.elapsed_since_start()


BACKENDS: Dict[VideoType, Type[PlaybackBackend]] = {
    backend.kind: backend
    for backend in (LocalFileBackend, YouTubeBackend, VimeoBackend, GoogleDriveBackend)
}


def create_backend(config: VideoConfig, environment: PlayerEnvironment) -> PlaybackBackend:
    """
    Construye el adaptador para el tipo de video configurado.

    Raises:
        AdapterInitError: si el tipo no está soportado o la URL no es válida
    """
    backend_cls = BACKENDS.get(config.video_type)
    if backend_cls is None:
        raise AdapterInitError(f"Tipo de video no soportado: {config.video_type}")
    return backend_cls(config, environment)
