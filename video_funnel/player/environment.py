"""
Contratos con el entorno de ejecución de la página: temporizadores,
destinos de eventos y los drivers de cada tecnología de reproducción.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol

from video_funnel.player.events import EventTarget, Listener
from video_funnel.player.scheduler import Scheduler


class PlaybackBlockedError(Exception):
    """El navegador rechazó iniciar la reproducción (política de autoplay)."""


class MediaElement(Protocol):
    """Elemento <video> HTML5. ``play()`` lanza PlaybackBlockedError si se rechaza."""
    current_time: float
    muted: bool
    volume: float  # 0..1

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def add_event_listener(self, event_type: str, listener: Listener, capture: bool = False) -> None: ...

    def remove_event_listener(self, event_type: str, listener: Listener, capture: bool = False) -> None: ...


class YouTubePlayer(Protocol):
    """Subconjunto de la IFrame Player API de YouTube que usa el adaptador."""

    def play_video(self) -> None: ...

    def pause_video(self) -> None: ...

    def seek_to(self, seconds: float, allow_seek_ahead: bool = True) -> None: ...

    def get_current_time(self) -> float: ...

    def mute(self) -> None: ...

    def un_mute(self) -> None: ...

    def set_volume(self, volume: int) -> None: ...

    def destroy(self) -> None: ...


class MessageChannel(Protocol):
    """Canal postMessage hacia el iframe de Vimeo; entrega eventos 'message'."""

    def post_message(self, data: str) -> None: ...

    def add_event_listener(self, event_type: str, listener: Listener, capture: bool = False) -> None: ...

    def remove_event_listener(self, event_type: str, listener: Listener, capture: bool = False) -> None: ...


# (video_id, player_vars, events) -> YouTubePlayer
YouTubePlayerFactory = Callable[[str, Dict[str, Any], Dict[str, Callable[..., None]]], YouTubePlayer]
MediaElementFactory = Callable[[str], MediaElement]
MessageChannelFactory = Callable[[str], MessageChannel]


@dataclass
class PlayerEnvironment:
    """
    Todo lo que el reproductor necesita de la página. Los drivers que un
    tipo de video no usa pueden quedar en None.
    """
    scheduler: Scheduler
    document: EventTarget = field(default_factory=lambda: EventTarget("document"))
    window: EventTarget = field(default_factory=lambda: EventTarget("window"))
    play_button: EventTarget = field(default_factory=lambda: EventTarget("play-button"))
    media_element_factory: Optional[MediaElementFactory] = None
    youtube_player_factory: Optional[YouTubePlayerFactory] = None
    vimeo_channel_factory: Optional[MessageChannelFactory] = None
