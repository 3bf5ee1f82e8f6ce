import logging
import logging.config
import json
from datetime import datetime
from typing import Dict, Any
from pathlib import Path

from video_funnel.core.config import settings


# Campos extra que se copian al JSON cuando el registro los trae
EXTRA_FIELDS = (
    "service",
    "video_id",
    "backend",
    "state",
    "endpoint",
    "method",
    "status_code",
    "response_time_ms",
    "request_id",
    "event_type",
)


class StructuredFormatter(logging.Formatter):
    """
    Formatter que genera logs en formato JSON estructurado
    para facilitar la integración con sistemas de monitoreo
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def build_logging_config(log_dir: Path) -> Dict[str, Any]:
    """
    Construye el diccionario para dictConfig: consola legible y
    archivos rotativos en formato JSON.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
            },
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "level": "INFO",
                "stream": "ext://sys.stdout"
            },
            "file_all": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "structured",
                "filename": str(log_dir / "app.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 10,
                "level": "INFO"
            },
            "file_errors": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "structured",
                "filename": str(log_dir / "errors.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 10,
                "level": "ERROR"
            },
            "file_player": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "structured",
                "filename": str(log_dir / "player.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5,
                "level": "INFO"
            }
        },
        "loggers": {
            "video_funnel": {
                "level": "INFO",
                "handlers": ["console", "file_all", "file_errors"],
                "propagate": False
            },
            "video_funnel.player": {
                "level": "INFO",
                "handlers": ["console", "file_player", "file_errors"],
                "propagate": False
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console", "file_all"],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["file_all"],
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console", "file_all"]
        }
    }


def setup_logging(log_dir: str = None) -> None:
    """
    Configura el sistema de logging con rotación y formato estructurado
    """
    path = Path(log_dir or settings.LOG_DIR)
    path.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(path))

    logger = logging.getLogger("video_funnel")
    logger.info("Logging system initialized successfully")
    logger.info(f"Log files will be stored in: {path.absolute()}")


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter personalizado para agregar contexto adicional a los logs
    """

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        if self.extra:
            kwargs.setdefault('extra', {}).update(self.extra)
        return msg, kwargs


def get_player_logger(video_id: str = None, backend: str = None) -> LoggerAdapter:
    """
    Obtiene un logger del reproductor con la identidad del video como contexto
    """
    base_logger = logging.getLogger("video_funnel.player")
    extra = {"service": "player"}
    if video_id:
        extra["video_id"] = video_id
    if backend:
        extra["backend"] = backend
    return LoggerAdapter(base_logger, extra)


def get_api_logger() -> LoggerAdapter:
    """
    Obtiene un logger específico para operaciones de API
    """
    base_logger = logging.getLogger("video_funnel.api")
    return LoggerAdapter(base_logger, {"service": "api"})
