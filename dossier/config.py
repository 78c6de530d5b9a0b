"""Dossier configuration, loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "DOSSIER_", "env_file": ".env"}

    # Database
    database_path: str = "dossier.db"

    # Report rendering
    report_template: str = ""

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173"]

    log_level: str = "INFO"


settings = Settings()
