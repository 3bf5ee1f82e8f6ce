# video_funnel/api/v1/endpoints/analytics.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from prometheus_client import Counter
from sqlalchemy.orm import Session
import logging

from video_funnel.core.deps import validate_api_key
from video_funnel.crud import crud_event
from video_funnel.db.session import get_db
from video_funnel.schemas.event import EngagementEventCreate, EngagementEventResponse

router = APIRouter()
logger = logging.getLogger(__name__)

ENGAGEMENT_EVENTS_TOTAL = Counter(
    "engagement_events_total",
    "Eventos de interacción registrados por la landing page",
    ["event_type"],
)


def is_dnt_enabled(request: Request) -> bool:
    """Do Not Track o Global Privacy Control activos en la petición."""
    return (
        request.headers.get("DNT") == "1"
        or request.headers.get("Sec-GPC") == "1"
    )


@router.post(
    "/analytics/event",
    response_model=EngagementEventResponse,
    summary="Registrar evento de interacción"
)
def register_event(
    event: EngagementEventCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Registra un evento enviado por la landing (p. ej. video_play_start, cta_unlocked).
    Si el navegador envía DNT o GPC, responde éxito sin guardar nada.
    """
    if is_dnt_enabled(request):
        return EngagementEventResponse(success=True, message="DNT respetado")

    try:
        crud_event.create_event(db, event)
    except Exception as e:
        logger.error(f"Error registrando evento: {str(e)}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al registrar el evento"
        )

    ENGAGEMENT_EVENTS_TOTAL.labels(event_type=event.event_type).inc()
    logger.info(
        f"Evento registrado: type={event.event_type}, visitor={event.visitor_id}",
        extra={"event_type": event.event_type}
    )
    return EngagementEventResponse(success=True)


@router.get(
    "/admin/events",
    summary="Listar eventos recientes",
    dependencies=[Depends(validate_api_key)]
)
def list_events(event_type: str = None, limit: int = 100, db: Session = Depends(get_db)) -> List[dict]:
    events = crud_event.get_events(db, event_type=event_type, limit=min(limit, 1000))
    return [
        {
            "id": e.id,
            "visitor_id": e.visitor_id,
            "event_type": e.event_type,
            "event_data": e.event_data,
            "page_url": e.page_url,
            "session_id": e.session_id,
            "created_at": e.created_at.isoformat() if e.created_at else None,
        }
        for e in events
    ]
