# video_funnel/core/config.py
from typing import List, Optional

from pydantic import PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Gestiona la configuración de la aplicación cargando variables de entorno.
    Utiliza Pydantic para la validación de tipos.
    """
    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_case=True, extra="ignore"
    )

    # --- Base de datos (PostgreSQL opcional, SQLite por defecto) ---
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    POSTGRES_PORT: int = 5432
    SQLITE_PATH: str = "./video_funnel.db"

    # --- Seguridad del panel de administración ---
    MIDDLEWARE_API_KEY: str = "change-me"

    # --- Cliente de la API (lado de la landing page) ---
    API_BASE_URL: str = "http://localhost:8000"
    API_TIMEOUT_SECONDS: float = 10.0

    # --- Video por defecto cuando no hay configuración disponible ---
    DEFAULT_VIDEO_URL: str = "https://vimeo.com/1142286537"
    DEFAULT_VIDEO_TYPE: str = "vimeo"
    DEFAULT_BUTTON_DELAY: int = 180
    ADMIN_DEFAULT_BUTTON_DELAY: int = 90

    # --- Cadencias del reproductor (milisegundos) ---
    PROGRESS_POLL_INTERVAL_MS: int = 300
    PROGRESS_SAVE_INTERVAL_MS: int = 3000
    HUD_OVERLAY_TIMEOUT_MS: int = 5000
    PLAYBACK_MODE: str = "click_to_play"

    # --- Logging y CORS ---
    LOG_DIR: str = "logs"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    @computed_field
    @property
    def DATABASE_URI(self) -> str:
        """
        Genera la URI de conexión a la base de datos en formato SQLAlchemy.
        Si no hay servidor PostgreSQL configurado se usa SQLite local.
        """
        if not self.POSTGRES_SERVER:
            return f"sqlite:///{self.SQLITE_PATH}"
        dsn = PostgresDsn.build(
            scheme="postgresql+psycopg2",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )
        return str(dsn)


# Instancia única de la configuración que será usada en toda la aplicación.
settings = Settings()
