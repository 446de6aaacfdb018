import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

SEARCH_MODES = ("live", "mock")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # DeepSeek (product search)
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com"
    deepseek_model: str = "deepseek-chat"
    search_timeout_seconds: float = 15.0
    search_mode: str = "live"  # "live" calls DeepSeek, "mock" returns fixed sample products

    # OpenAI (shopping assistant chat)
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4-turbo"
    chat_timeout_seconds: float = 30.0

    # Per-client rate limiting (fixed window)
    rate_limit_points: int = 10
    rate_limit_duration_seconds: float = 1.0

    # App
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8080

    # CORS
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = ""  # empty → DEBUG in development, INFO elsewhere
    log_json: bool = False

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate settings on startup.

    Missing provider keys only disable the matching route, so they are
    reported as warnings. Values that cannot work at all abort startup.
    """
    errors: list[str] = []

    if settings.search_mode not in SEARCH_MODES:
        errors.append(f"SEARCH_MODE must be one of {', '.join(SEARCH_MODES)} (got {settings.search_mode!r})")
    if settings.rate_limit_points < 1:
        errors.append("RATE_LIMIT_POINTS must be at least 1")
    if settings.rate_limit_duration_seconds <= 0:
        errors.append("RATE_LIMIT_DURATION_SECONDS must be positive")
    if settings.search_timeout_seconds <= 0 or settings.chat_timeout_seconds <= 0:
        errors.append("Upstream timeouts must be positive")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))

    if not settings.deepseek_api_key and settings.search_mode == "live":
        logger.warning("DEEPSEEK_API_KEY is not set, /api/search will return a configuration error")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set, /api/chat will return a configuration error")
    if settings.app_env == "production" and settings.allowed_origins == "*":
        logger.warning("ALLOWED_ORIGINS is '*' in production")
