import enum
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VideoType(str, enum.Enum):
    """Tipos de video soportados por la landing page."""
    LOCAL = "local"
    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    GOOGLE_DRIVE = "google_drive"


def coerce_video_type(value: Any) -> Any:
    # Cualquier tipo desconocido se reproduce como YouTube
    if isinstance(value, VideoType) or value is None:
        return value
    try:
        return VideoType(str(value).strip().lower())
    except ValueError:
        return VideoType.YOUTUBE


class VideoConfig(BaseModel):
    """
    Configuración del video activo. Inmutable durante una sesión de reproducción.
    """
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int = 0
    video_url: str = Field(..., description="URL o ruta del video")
    video_type: VideoType = VideoType.VIMEO
    video_path: Optional[str] = Field(None, description="Ruta del archivo para videos locales")
    button_delay_seconds: int = Field(..., ge=0, description="Segundos de reproducción antes de habilitar el botón")

    @field_validator("video_type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        return coerce_video_type(value)


class CurrentVideoResponse(BaseModel):
    """Respuesta de GET /api/video/current."""
    video: Optional[VideoConfig] = None


class VideoConfigUpdate(BaseModel):
    """Schema para crear o reemplazar el video activo desde el panel."""
    video_url: str = Field(..., min_length=1, description="URL del video")
    video_type: VideoType = VideoType.YOUTUBE
    button_delay_seconds: Optional[int] = Field(None, ge=0)

    @field_validator("video_type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        return coerce_video_type(value) or VideoType.YOUTUBE

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "video_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
                "video_type": "youtube",
                "button_delay_seconds": 90
            }
        }
    )


class VideoConfigRead(VideoConfig):
    """Configuración tal como se guarda, con metadatos de administración."""
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VideoConfigSaved(BaseModel):
    success: bool = True
    video: VideoConfigRead
