from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class EngagementEventCreate(BaseModel):
    """Schema para registrar un evento de interacción de la landing page."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "visitorId": "v_3f2a9c",
                "eventType": "video_play_start",
                "eventData": {"video_id": "1142286537"},
                "pageUrl": "https://example.com/",
                "sessionId": "s_81d0"
            }
        }
    )

    visitor_id: Optional[str] = Field(None, alias="visitorId", max_length=100)
    event_type: str = Field(..., alias="eventType", min_length=1, max_length=100)
    event_data: Optional[Dict[str, Any]] = Field(None, alias="eventData")
    page_url: Optional[str] = Field(None, alias="pageUrl")
    session_id: Optional[str] = Field(None, alias="sessionId", max_length=100)


class EngagementEventResponse(BaseModel):
    success: bool
    message: Optional[str] = None
