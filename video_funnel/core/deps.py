import logging

from fastapi import Header, HTTPException, status

from video_funnel.core.config import settings

logger = logging.getLogger(__name__)


def validate_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Valida la API key del panel de administración

    Args:
        x_api_key: API key proporcionada en el header

    Returns:
        API key validada

    Raises:
        HTTPException: Si la API key es inválida
    """
    if x_api_key != settings.MIDDLEWARE_API_KEY:
        logger.warning(f"Invalid API key attempted: {x_api_key[:10]}...")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key"
        )
    return x_api_key
