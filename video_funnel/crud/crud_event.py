from typing import TYPE_CHECKING, List
from sqlalchemy import desc
from sqlalchemy.orm import Session

from video_funnel.schemas.event import EngagementEventCreate

if TYPE_CHECKING:
    from video_funnel.models.engagement_event import EngagementEvent


def create_event(db: Session, event: EngagementEventCreate) -> "EngagementEvent":
    """
    Registra un evento de interacción.
    """
    from video_funnel.models.engagement_event import EngagementEvent
    db_event = EngagementEvent(
        visitor_id=event.visitor_id,
        event_type=event.event_type,
        event_data=event.event_data,
        page_url=event.page_url,
        session_id=event.session_id,
    )
    db.add(db_event)
    db.commit()
    db.refresh(db_event)
    return db_event


def get_events(db: Session, event_type: str = None, limit: int = 100) -> List["EngagementEvent"]:
    from video_funnel.models.engagement_event import EngagementEvent
    query = db.query(EngagementEvent)
    if event_type:
        query = query.filter(EngagementEvent.event_type == event_type)
    return query.order_by(desc(EngagementEvent.id)).limit(limit).all()
