"""
Destinos de eventos al estilo DOM (document, window, botón, elemento <video>)
y la tabla de listeners que posee el controlador.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class EventTarget:
    """
    Versión mínima de ``EventTarget``: los listeners de captura se ejecutan
    antes que los de burbuja y un mismo listener no se registra dos veces.
    """

    def __init__(self, name: str = "target"):
        self.name = name
        self._listeners: Dict[Tuple[str, bool], List[Listener]] = {}

    def add_event_listener(self, event_type: str, listener: Listener, capture: bool = False) -> None:
        listeners = self._listeners.setdefault((event_type, capture), [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener, capture: bool = False) -> None:
        listeners = self._listeners.get((event_type, capture))
        if listeners and listener in listeners:
            listeners.remove(listener)

    def dispatch_event(self, event_type: str, event: Any = None) -> int:
        """Entrega el evento y devuelve cuántos listeners lo recibieron."""
        delivered = 0
        for capture in (True, False):
            # Copia: un listener puede quitarse a sí mismo durante la entrega
            for listener in list(self._listeners.get((event_type, capture), [])):
                if listener not in self._listeners.get((event_type, capture), []):
                    continue
                listener(event)
                delivered += 1
        return delivered

    def listener_count(self, event_type: Optional[str] = None) -> int:
        return sum(
            len(listeners)
            for (name, _), listeners in self._listeners.items()
            if event_type is None or name == event_type
        )

    def __repr__(self):
        return f"<EventTarget(name='{self.name}', listeners={self.listener_count()})>"


class ListenerTable:
    """
    Registro de un único suscriptor por (destino, evento, captura).

    Todo lo que se registra aquí se quita en ``close()``; usada como
    context manager garantiza la limpieza incluso si hay retornos tempranos.
    """

    def __init__(self):
        self._entries: Dict[Tuple[int, str, bool], Tuple[EventTarget, Listener]] = {}

    def register(self, target: EventTarget, event_type: str, listener: Listener,
                 capture: bool = False) -> None:
        key = (id(target), event_type, capture)
        if key in self._entries:
            raise ValueError(f"Ya existe un listener para '{event_type}' en {target.name}")
        target.add_event_listener(event_type, listener, capture)
        self._entries[key] = (target, listener)

    def unregister(self, target: EventTarget, event_type: str, capture: bool = False) -> bool:
        entry = self._entries.pop((id(target), event_type, capture), None)
        if entry is None:
            return False
        entry[0].remove_event_listener(event_type, entry[1], capture)
        return True

    def is_registered(self, target: EventTarget, event_type: str, capture: bool = False) -> bool:
        return (id(target), event_type, capture) in self._entries

    def close(self) -> None:
        entries, self._entries = self._entries, {}
        for (_, event_type, capture), (target, listener) in entries.items():
            target.remove_event_listener(event_type, listener, capture)
        if entries:
            logger.debug(f"{len(entries)} listeners eliminados")

    def __len__(self) -> int:
        return len(self._entries)

    def __enter__(self) -> "ListenerTable":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
