# video_funnel/db/init_db.py
import logging

from sqlalchemy.engine import Engine

from video_funnel.db.base import Base
from video_funnel.db.session import engine as default_engine

logger = logging.getLogger(__name__)


def init_db(engine: Engine = None) -> None:
    """
    Crea las tablas registradas en Base si todavía no existen.
    """
    # Importar los modelos registra sus tablas en Base.metadata
    from video_funnel.models import video_config, engagement_event, browser_storage  # noqa: F401

    target = engine or default_engine
    Base.metadata.create_all(bind=target)
    logger.info("Tablas de base de datos verificadas")
