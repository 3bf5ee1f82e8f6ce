from typing import TYPE_CHECKING, Optional
from sqlalchemy import desc
from sqlalchemy.orm import Session

from video_funnel.core.config import settings
from video_funnel.schemas.video import VideoConfigUpdate

if TYPE_CHECKING:
    from video_funnel.models.video_config import VideoConfigRecord


def get_active_video(db: Session) -> Optional["VideoConfigRecord"]:
    """
    Obtiene la configuración de video activa más reciente.
    """
    from video_funnel.models.video_config import VideoConfigRecord
    return (
        db.query(VideoConfigRecord)
        .filter(VideoConfigRecord.is_active.is_(True))
        .order_by(desc(VideoConfigRecord.created_at), desc(VideoConfigRecord.id))
        .first()
    )


def get_latest_video(db: Session) -> Optional["VideoConfigRecord"]:
    """
    Obtiene la última configuración guardada, activa o no.
    """
    from video_funnel.models.video_config import VideoConfigRecord
    return (
        db.query(VideoConfigRecord)
        .order_by(desc(VideoConfigRecord.created_at), desc(VideoConfigRecord.id))
        .first()
    )


def set_active_video(db: Session, video: VideoConfigUpdate) -> "VideoConfigRecord":
    """
    Desactiva las configuraciones anteriores y crea una nueva activa.
    """
    from video_funnel.models.video_config import VideoConfigRecord

    delay = video.button_delay_seconds
    if delay is None:
        delay = settings.ADMIN_DEFAULT_BUTTON_DELAY

    db.query(VideoConfigRecord).filter(
        VideoConfigRecord.is_active.is_(True)
    ).update({VideoConfigRecord.is_active: False}, synchronize_session=False)

    db_video = VideoConfigRecord(
        video_url=video.video_url,
        video_type=video.video_type.value,
        video_path=None,
        button_delay_seconds=delay,
        is_active=True,
    )
    db.add(db_video)
    db.commit()
    db.refresh(db_video)
    return db_video


def delete_video(db: Session, video_id: int) -> bool:
    """
    Elimina una configuración por su ID. Devuelve False si no existe.
    """
    from video_funnel.models.video_config import VideoConfigRecord
    db_video = db.query(VideoConfigRecord).filter(VideoConfigRecord.id == video_id).first()
    if not db_video:
        return False
    db.delete(db_video)
    db.commit()
    return True
