# video_funnel/models/browser_storage.py
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from video_funnel.db.base import Base


class StorageEntry(Base):
    """
    Par clave/valor persistente equivalente a localStorage.
    Lo usa SqlStorage para guardar el progreso de reproducción.
    """
    __tablename__ = "browser_storage"

    key = Column(String(512), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<StorageEntry(key='{self.key}')>"
