"""
Persistencia local del punto de reproducción, con el mismo formato que
localStorage: ``video_progress_<identidad> -> {"time": s, "timestamp": ms}``.
"""
import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

STORAGE_KEY = "video_progress"


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Almacenamiento en memoria, útil para pruebas y sesiones efímeras."""

    def __init__(self, initial: Dict[str, str] = None):
        self.items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class SqlStorage:
    """
    Almacenamiento clave/valor persistente sobre la tabla ``browser_storage``.
    Los errores de SQLAlchemy se propagan; ProgressStore decide qué hacer.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        from video_funnel.models.browser_storage import StorageEntry
        db: Session = self._session_factory()
        try:
            entry = db.get(StorageEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def set_item(self, key: str, value: str) -> None:
        from video_funnel.models.browser_storage import StorageEntry
        db: Session = self._session_factory()
        try:
            entry = db.get(StorageEntry, key)
            if entry:
                entry.value = value
            else:
                db.add(StorageEntry(key=key, value=value))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def remove_item(self, key: str) -> None:
        from video_funnel.models.browser_storage import StorageEntry
        db: Session = self._session_factory()
        try:
            entry = db.get(StorageEntry, key)
            if entry:
                db.delete(entry)
                db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


@dataclass(frozen=True)
class ProgressRecord:
    identity: str
    time: float
    timestamp: int  # epoch en milisegundos


class ProgressStore:
    """
    Guarda y recupera el último segundo reproducido por identidad de video.

    Ninguna operación lanza excepciones: si el almacenamiento falla o el
    valor guardado está corrupto, se comporta como si no hubiera progreso.
    """

    def __init__(self, storage: KeyValueStorage, clock: Callable[[], float] = time.time):
        self._storage = storage
        self._clock = clock

    @staticmethod
    def key_for(identity: str) -> str:
        return f"{STORAGE_KEY}_{identity}"

    def get_record(self, identity: str) -> Optional[ProgressRecord]:
        if not identity:
            return None
        try:
            raw = self._storage.get_item(self.key_for(identity))
        except Exception as e:
            logger.warning(f"No se pudo leer el progreso de {identity}: {str(e)}")
            return None
        if not raw:
            return None

        try:
            data = json.loads(raw)
            seconds = float(data.get("time") or 0)
            timestamp = int(data.get("timestamp") or 0)
        except (ValueError, TypeError, AttributeError, OverflowError):
            logger.warning(f"Progreso corrupto ignorado para {identity}")
            return None

        if not math.isfinite(seconds) or seconds < 0:
            return None
        return ProgressRecord(identity=identity, time=seconds, timestamp=timestamp)

    def get(self, identity: str) -> float:
        record = self.get_record(identity)
        return record.time if record else 0.0

    def set(self, identity: str, seconds: float) -> bool:
        if not identity:
            return False
        payload = json.dumps({"time": seconds, "timestamp": int(self._clock() * 1000)})
        try:
            self._storage.set_item(self.key_for(identity), payload)
        except Exception as e:
            logger.warning(f"No se pudo guardar el progreso de {identity}: {str(e)}")
            return False
        return True

    def clear(self, identity: str) -> None:
        if not identity:
            return
        try:
            self._storage.remove_item(self.key_for(identity))
        except Exception as e:
            logger.warning(f"No se pudo borrar el progreso de {identity}: {str(e)}")
