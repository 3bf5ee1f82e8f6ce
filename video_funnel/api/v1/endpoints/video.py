# video_funnel/api/v1/endpoints/video.py
"""
Endpoints de configuración del video de la landing page.
La landing consulta /video/current al montar el reproductor; el panel
de administración reemplaza el video activo.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from video_funnel.core.deps import validate_api_key
from video_funnel.core.logging_config import get_api_logger
from video_funnel.crud import crud_video
from video_funnel.db.session import get_db
from video_funnel.schemas.video import (
    CurrentVideoResponse,
    VideoConfigRead,
    VideoConfigSaved,
    VideoConfigUpdate,
)

router = APIRouter()
logger = get_api_logger()


@router.get(
    "/video/current",
    response_model=CurrentVideoResponse,
    summary="Obtener video activo",
    description="Devuelve la configuración del video activo o null si no hay ninguno."
)
def get_current_video(db: Session = Depends(get_db)):
    try:
        video = crud_video.get_active_video(db)
    except Exception as e:
        logger.error(f"Error consultando video activo: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al consultar el video activo"
        )
    if not video:
        return CurrentVideoResponse(video=None)
    return CurrentVideoResponse(video=VideoConfigRead.model_validate(video))


@router.get(
    "/admin/video",
    response_model=CurrentVideoResponse,
    summary="Consultar configuración de video",
    dependencies=[Depends(validate_api_key)]
)
def get_admin_video(db: Session = Depends(get_db)):
    """
    Devuelve la última configuración guardada (activa o no).
    """
    video = crud_video.get_latest_video(db)
    if not video:
        return CurrentVideoResponse(video=None)
    return CurrentVideoResponse(video=VideoConfigRead.model_validate(video))


@router.post(
    "/admin/video",
    response_model=VideoConfigSaved,
    summary="Reemplazar video activo",
    description="Desactiva el video anterior y activa el nuevo. La landing lo toma en la próxima carga.",
    dependencies=[Depends(validate_api_key)]
)
def save_video(request: VideoConfigUpdate, db: Session = Depends(get_db)):
    """
    - **video_url**: URL del video (obligatoria)
    - **video_type**: youtube, vimeo, google_drive o local
    - **button_delay_seconds**: segundos antes de habilitar el botón (90 por defecto)
    """
    if not request.video_url.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La URL del video es obligatoria"
        )
    try:
        video = crud_video.set_active_video(db, request)
    except Exception as e:
        logger.error(f"Error guardando video: {str(e)}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error al guardar el video: {str(e)}"
        )

    logger.info(
        f"Video activo actualizado: id={video.id}, type={video.video_type}, "
        f"delay={video.button_delay_seconds}s"
    )
    return VideoConfigSaved(success=True, video=VideoConfigRead.model_validate(video))


@router.delete(
    "/admin/video/{video_id}",
    summary="Eliminar configuración de video",
    dependencies=[Depends(validate_api_key)]
)
def delete_video(video_id: int, db: Session = Depends(get_db)):
    if not crud_video.delete_video(db, video_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No se encontró la configuración de video"
        )
    logger.info(f"Configuración de video eliminada: id={video_id}")
    return {"success": True, "video_id": video_id}
