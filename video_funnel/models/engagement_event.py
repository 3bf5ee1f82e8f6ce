# video_funnel/models/engagement_event.py
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from video_funnel.db.base import Base


class EngagementEvent(Base):
    """
    Evento de interacción enviado por la landing page
    (inicio de reproducción, desbloqueo del botón, etc.).
    """
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    visitor_id = Column(String(100), nullable=True, index=True)
    event_type = Column(String(100), nullable=False, index=True)
    event_data = Column(JSON, nullable=True)
    page_url = Column(Text, nullable=True)
    session_id = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<EngagementEvent(id={self.id}, type='{self.event_type}', visitor='{self.visitor_id}')>"
