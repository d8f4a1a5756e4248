"""Configuracion de la aplicacion usando Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuracion principal de FinFlux Console."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Backend REST
    api_base_url: str = ""
    api_login_url: str = ""
    request_timeout: float = 15.0
    long_timeout: float = 20.0
    upload_timeout: float = 60.0
    download_url_timeout: float = 10.0

    # Cloudinary (documentos)
    cloudinary_upload_url: str = ""
    cloudinary_upload_preset: str = ""

    # Sesion
    session_inactivity_minutes: int = 30
    session_reap_interval_seconds: int = 60

    # Inventario / alertas
    low_stock_threshold_percent: float = 20.0
    poll_interval_seconds: int = 30
    alert_channel: str = "sms"  # sms | telegram
    alert_phone_numbers: list[str] = []

    # Twilio (SMS)
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""

    # Telegram
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    # Timezone
    tz: str = "Asia/Kolkata"

    @property
    def login_url(self) -> str:
        """URL del endpoint de autenticacion."""
        if self.api_login_url:
            return self.api_login_url
        return f"{self.api_base_url.rstrip('/')}/api/auth/login"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuracion cacheada."""
    return Settings()
