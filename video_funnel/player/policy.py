"""
Política de autoplay e interacción.

Los navegadores pueden rechazar la reproducción automática con sonido. Hay
dos modos excluyentes por configuración:

- ``click_to_play``: un botón visible; su clic habilita el sonido e inicia
  la reproducción.
- ``ambient``: se intenta autoplay silenciado y, si incluso eso se rechaza,
  cualquier interacción con el documento (pointerdown, touchstart, keydown,
  scroll) inicia la reproducción.
"""
import enum
import logging
from typing import Any, Callable, Optional, Tuple

from video_funnel.player.events import EventTarget, ListenerTable

logger = logging.getLogger(__name__)

DOCUMENT_INTERACTION_EVENTS = ("pointerdown", "touchstart", "keydown", "scroll")


class PlaybackMode(str, enum.Enum):
    CLICK_TO_PLAY = "click_to_play"
    AMBIENT = "ambient"


class InteractionGate:
    """
    Listener de un solo uso sobre uno o varios eventos de un destino.

    Al primer evento se quitan todos los listeners y después se llama al
    callback, así que nunca se dispara dos veces.
    """

    def __init__(self, target: EventTarget, event_types: Tuple[str, ...],
                 listeners: ListenerTable, capture: bool = True):
        self.target = target
        self.event_types = event_types
        self.capture = capture
        self._listeners = listeners
        self._callback: Optional[Callable[[], None]] = None

    @property
    def armed(self) -> bool:
        return self._callback is not None

    def arm(self, callback: Callable[[], None]) -> bool:
        if self.armed:
            return False
        self._callback = callback
        for event_type in self.event_types:
            self._listeners.register(self.target, event_type, self._handle, capture=self.capture)
        logger.info(f"Esperando interacción en {self.target.name}: {', '.join(self.event_types)}")
        return True

    def disarm(self) -> None:
        for event_type in self.event_types:
            self._listeners.unregister(self.target, event_type, capture=self.capture)
        self._callback = None

    def _handle(self, event: Any = None) -> None:
        callback = self._callback
        if callback is None:
            return
        self.disarm()
        callback()


def document_interaction_gate(document: EventTarget, listeners: ListenerTable) -> InteractionGate:
    return InteractionGate(document, DOCUMENT_INTERACTION_EVENTS, listeners, capture=True)


def play_button_gate(button: EventTarget, listeners: ListenerTable) -> InteractionGate:
    return InteractionGate(button, ("click",), listeners, capture=False)


def gate_for_mode(mode: PlaybackMode, document: EventTarget, button: EventTarget,
                  listeners: ListenerTable) -> InteractionGate:
    """Solo se crea la compuerta del modo configurado; nunca ambas."""
    if mode == PlaybackMode.AMBIENT:
        return document_interaction_gate(document, listeners)
    return play_button_gate(button, listeners)
