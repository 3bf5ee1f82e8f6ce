# video_funnel/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from video_funnel.core.config import settings


def build_engine(uri: str):
    """
    Crea el motor de SQLAlchemy. SQLite necesita check_same_thread=False
    porque FastAPI atiende las peticiones síncronas en un threadpool.
    """
    connect_args = {"check_same_thread": False} if uri.startswith("sqlite") else {}
    return create_engine(uri, connect_args=connect_args)


# Se crea el motor (engine) de SQLAlchemy usando la URI de la configuración.
engine = build_engine(settings.DATABASE_URI)

# Se crea una fábrica de sesiones que se usará para crear sesiones individuales.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Función generadora para obtener instancias de base de datos."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
