"""
Application Settings.

Centraliza toda configuração via .env / variáveis de ambiente.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configurações carregadas de variáveis de ambiente."""

    # --- App ---
    env: str = "development"
    debug: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    # --- Backend ---
    backend_base_url: str = "http://localhost:3000"
    backend_token: str = ""
    backend_timeout_seconds: float = 30.0
    locale: str = "en"

    # --- Upload budget ---
    max_file_size_mb: float = 5.0
    compress_threshold_ratio: float = 0.8

    # --- Camera ---
    camera_ideal_width: int = 1920
    camera_ideal_height: int = 1080
    camera_jpeg_quality: float = 0.92
    camera_rear_index: int = 0
    camera_front_index: int = 0

    # --- QR ---
    qr_fps: int = 10
    qr_box_size: int = 250

    # --- PDF ---
    pdf_scale: float = 2.0
    pdf_quality: float = 0.8
    pdf_format: str = "jpeg"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


@lru_cache
def get_settings() -> Settings:
    """Singleton de settings."""
    return Settings()
