# barbershop/config.py

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./barbershop.db"
    sql_echo: bool = False

    # Env / logging
    env: str = "development"
    log_level: str = "INFO"

    # Notification texts
    default_country_code: str = "+506"
    currency_symbol: str = "₡"

    # WhatsApp Business API (texts are generated only, nothing is sent)
    whatsapp_api_url: str = ""
    whatsapp_api_key: str = ""

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.whatsapp_api_url and self.whatsapp_api_key)


settings = Settings()
