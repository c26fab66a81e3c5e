import logging
import sys
from pathlib import Path

from pydantic import EmailStr, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_DIR = Path(__file__).parent


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class MailSettings(BaseSettings):
    MAIL_USERNAME: str = Field(
        default="",
        description="SMTP username. Some providers require it separately, others just use MAIL_FROM.",
    )
    MAIL_PASSWORD: str = Field(
        default="",
        description="Password or app-specific key for authenticating to the SMTP server.",
    )
    MAIL_FROM: EmailStr = Field(
        default="noreply@example.com",
        description=(
            "Envelope sender used by the transport when a form does not resolve its own "
            "from-address. Form mails normally override it per message."
        ),
    )
    MAIL_FROM_NAME: str | None = Field(
        default=None,
        description="Friendly name for the sender (appears alongside MAIL_FROM).",
    )
    MAIL_PORT: int = Field(
        default=25,
        description="Port for SMTP server. Usually 587 for STARTTLS, 465 for SSL/TLS, 25 as legacy.",
    )
    MAIL_SERVER: str = Field(
        default="localhost",
        description="SMTP server hostname or IP address (e.g., smtp.gmail.com).",
    )
    MAIL_STARTTLS: bool = Field(
        default=False,
        description="Use STARTTLS (opportunistic TLS upgrade). Set false if server doesn’t support it.",
    )
    MAIL_SSL_TLS: bool = Field(
        default=False,
        description="Use direct SSL/TLS connection (usually on port 465).",
    )
    MAIL_USE_CREDENTIALS: bool = Field(
        default=False,
        description="Whether to authenticate with username/password. Local relays usually don't.",
    )
    MAIL_VALIDATE_CERTS: bool = Field(
        default=True,
        description="Validate SMTP server's TLS/SSL certificate. Set False only for self-signed certs.",
    )

    MAIL_SUPPRESS_SEND: bool = Field(
        default=False,
        description="If True, suppresses actual sending (emails are 'mocked'). Useful in testing.",
    )
    MAIL_DEBUG: int = Field(
        default=0,
        description="Debug output level for SMTP interactions. 0 = silent, 1+ = verbose.",
    )

    MAIL_SEND_TIMEOUT: int | None = Field(
        default=60,
        ge=20,
        description=(
            "Max seconds to wait for the SMTP send to complete. If omitted, defaults to 60s. "
            "Set to None to disable the timeout entirely. Values below 20s are rejected."
        ),
    )

    MAIL_TEMPLATES_PARENT_DIR: Path | None = Field(
        default=None,
        description=(
            "Parent directory holding an 'email/' subfolder with page part templates "
            "(email.txt, email_plain.txt, email_html.html). Empty, 'none' or 'null' disables "
            "file based parts; the '<parent>/email' directory must exist when set."
        )
    )

    MAIL_LEGACY_BODY_ENCODING: str | None = Field(
        default="iso-8859-15",
        description=(
            "Encoding that byte bodies produced by legacy page parts are decoded from in "
            "production. Empty, 'none' or 'null' disables the transcoding step."
        ),
    )

    # ---- Derived convenience properties ----

    @property
    def templates_enabled(self) -> bool:
        return self.MAIL_TEMPLATES_PARENT_DIR is not None

    @property
    def templates_dir(self) -> Path | None:

        if not self.templates_enabled:
            return None

        return (self.MAIL_TEMPLATES_PARENT_DIR / "email").expanduser().resolve()

    # ---- Normalizers & validation ----

    @field_validator("MAIL_SEND_TIMEOUT", "MAIL_TEMPLATES_PARENT_DIR", "MAIL_LEGACY_BODY_ENCODING", mode="before")
    @classmethod
    def _noneify(cls, v: Any) -> Any:
        # Allow '', 'none', 'null' (case-insensitive) to disable the option via env
        if v is None:
            return None
        if isinstance(v, str):
            s = v.strip()
            if not s or s.lower() in {"none", "null"}:
                return None
        return v

    @field_validator("MAIL_TEMPLATES_PARENT_DIR", mode="after")
    @classmethod
    def _normalize_parent(cls, v: Path | None) -> Path | None:
        return v.expanduser().resolve() if isinstance(v, Path) else v

    @model_validator(mode="after")
    def _validate(self) -> "MailSettings":
        # TLS mode sanity
        if self.MAIL_STARTTLS and self.MAIL_SSL_TLS:
            raise ValueError("Set only one of MAIL_STARTTLS or MAIL_SSL_TLS, not both.")

        if self.templates_enabled:
            td = self.templates_dir
            if not (td and td.is_dir()):
                raise ValueError(f"Templates directory does not exist: {td}")
        return self

    model_config = SettingsConfigDict(
        env_file=CONFIG_DIR.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class Settings(BaseSettings):
    # Application
    app_name: str = "Form Mail Bridge"
    Environment: str = "development"
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    IS_PRODUCTION: bool = Field(
        default=False, description="Whether the application is running in production"
    )
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO, description="Root log level")

    VERSION: str = "0.3.0"

    # Recipient lookup database (optional recipients check)
    LOOKUP_DB_URL: str = Field(
        default="sqlite://:memory:",
        description="Tortoise connection URL of the database holding recipient allow-list tables",
    )
    LOOKUP_MODELS: List[str] = Field(
        default_factory=list,
        description="Modules declaring the Tortoise models a form may name as recipients_check_class",
    )

    mail: MailSettings = Field(default_factory=MailSettings)

    @field_validator("LOOKUP_MODELS", mode="before")
    @classmethod
    def parse_lookup_models(cls, v):
        if isinstance(v, str):
            return [m.strip() for m in v.split(",") if m.strip()]
        return v

    @property
    def legacy_body_encoding(self) -> Optional[str]:
        """Source encoding for byte bodies; only honoured in production."""
        if not self.IS_PRODUCTION:
            return None
        return self.mail.MAIL_LEGACY_BODY_ENCODING

    model_config = SettingsConfigDict(
        env_file=CONFIG_DIR.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


def get_tortoise_config(settings_instance: Optional[Settings] = None) -> Dict[str, Any]:
    """Get Tortoise ORM configuration for the recipient lookup database"""
    settings_instance = settings_instance or settings

    return {
        "connections": {"default": settings_instance.LOOKUP_DB_URL},
        "apps": {
            "models": {
                "models": list(settings_instance.LOOKUP_MODELS),
                "default_connection": "default",
            }
        },
        "use_tz": False,
        "timezone": "UTC",
    }


# Global settings instance
settings = Settings()


def configure_logging(settings_instance: Optional[Settings] = None) -> None:
    """Root logging for processes that host the bridge; a no-op when handlers already exist."""
    settings_instance = settings_instance or settings
    logging.basicConfig(
        stream=sys.stderr,
        level=settings_instance.LOG_LEVEL.value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
