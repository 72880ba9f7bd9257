import os
from dotenv import load_dotenv


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    def __init__(self) -> None:
        # Load variables from .env into environment
        load_dotenv()
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "changeme")
        self.MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
        self.MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "latms")
        # Legacy relational store kept in sync by dual writes
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./latms.db")
        self.DUAL_WRITE_ENABLED: bool = _as_bool(os.getenv("DUAL_WRITE_ENABLED"), False)
        # Frontend base URL (used in CORS)
        self.FRONTEND_BASE_URL: str = os.getenv("FRONTEND_BASE_URL", "http://localhost:3000")
        # Optional comma-separated list of additional allowed origins for CORS
        self.ALLOWED_ORIGINS: list[str] = [
            o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()
        ]
        self.SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "latms_session")
        self.TOKEN_TTL_HOURS: int = int(os.getenv("TOKEN_TTL_HOURS", "12"))
        # Mail-to recipients
        self.TRAVEL_AGENT_EMAIL: str = os.getenv("TRAVEL_AGENT_EMAIL", "travel-agent@example.com")
        self.ACCOUNTS_EMAIL: str = os.getenv("ACCOUNTS_EMAIL", "accounts@example.com")
        self.HR_SIGNATURE: str = os.getenv("HR_SIGNATURE", "HR Department")
        # Outbound SMTP for the optional mail send endpoint
        self.SMTP_HOST: str = os.getenv("SMTP_HOST", "localhost")
        self.SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
        self.SMTP_USER: str = os.getenv("SMTP_USER", "")
        self.SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
        self.SMTP_TIMEOUT: float = float(os.getenv("SMTP_TIMEOUT", "10"))
        self.SMTP_USE_SSL: bool = _as_bool(os.getenv("SMTP_USE_SSL"), False)
        self.SMTP_USE_TLS: bool = _as_bool(os.getenv("SMTP_USE_TLS"), True)
        self.MAIL_FROM: str = os.getenv("MAIL_FROM", "hr@example.com")
        self.MAIL_FROM_NAME: str = os.getenv("MAIL_FROM_NAME", "HR Department")
        # Employee import defaults
        self.EMAIL_DOMAIN: str = os.getenv("EMAIL_DOMAIN", "example.com")
        self.DEFAULT_LEAVE_BALANCE: int = int(os.getenv("DEFAULT_LEAVE_BALANCE", "30"))
        self.DEFAULT_IMPORT_PASSWORD: str = os.getenv("DEFAULT_IMPORT_PASSWORD", "user123")


settings = Settings()
