# video_funnel/models/video_config.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.sql import func
from video_funnel.db.base import Base


class VideoConfigRecord(Base):
    """
    Configuración del video de la landing page.
    Solo un registro está activo a la vez; el resto queda como historial.
    """
    __tablename__ = "video_config"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    video_url = Column(Text, nullable=False)
    video_type = Column(String(20), nullable=False, default="youtube")
    video_path = Column(Text, nullable=True)
    button_delay_seconds = Column(Integer, nullable=False, default=90)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<VideoConfigRecord(id={self.id}, type='{self.video_type}', active={self.is_active})>"
