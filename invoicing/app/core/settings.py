import os

from dotenv import load_dotenv


def env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    def __init__(self):
        self.app_name = os.getenv("APP_NAME", "Invoicing")
        self.api_version = "1.0.0"
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.secret_key = os.getenv("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        # Seven days, matching the lifetime of tokens issued by the web client.
        self.access_token_expire_minutes = env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7, minimum=1)
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./invoicing.db")
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001").split(",")
            if origin.strip()
        ]
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        self.smtp_host = os.getenv("SMTP_HOST") or None
        self.smtp_port = env_int("SMTP_PORT", 587, minimum=1)
        self.smtp_user = os.getenv("SMTP_USER") or None
        self.smtp_password = os.getenv("SMTP_PASSWORD") or None
        self.smtp_from = os.getenv("SMTP_FROM", "Invoice App <noreply@invoiceapp.com>")
        self.smtp_use_tls = env_bool("SMTP_USE_TLS", True)

        self.currency_symbol = os.getenv("CURRENCY_SYMBOL", "$")


_settings_instance = None


def load_env_file(path: str | None = None) -> bool:
    """Load KEY=VALUE pairs from a .env file. Variables already set in the environment win."""
    return load_dotenv(path or os.getenv("ENV_FILE", ".env"), override=False)


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        load_env_file()
        _settings_instance = Settings()
    return _settings_instance
