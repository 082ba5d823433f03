from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Database
    database_url: str

    # JWT
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Environment
    environment: str = "development"
    debug: bool = False
    port: int = 8000
    frontend_url: str = "http://localhost:5173"

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    # Reglas académicas
    calificacion_aprobatoria: float = 70.0
    niveles_ingles: int = 6
    cupo_maximo_periodo_examen: int = 100

    # Logging
    log_level: str = "INFO"
    log_format: Optional[str] = None

    @property
    def database_url_sync(self) -> str:
        """Convert async database URL to sync"""
        if self.database_url.startswith("postgresql+asyncpg://"):
            return self.database_url.replace(
                "postgresql+asyncpg://", "postgresql+psycopg2://"
            )
        elif self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+psycopg2://")
        else:
            return self.database_url

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
