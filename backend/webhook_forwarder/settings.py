from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from webhook_forwarder.errors import ConfigurationError

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_log = logging.getLogger(__name__)

RESEND_EMAILS_URL = "https://api.resend.com/emails"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_BACKEND_DIR / ".env"), ".env", "backend/.env"),
        extra="ignore",
        env_parse_none_str="",
    )

    # Required; checked by load_forwarder_config rather than at import so a
    # half-configured deployment still answers with a 500 instead of crashing.
    resend_api_key: str | None = None
    webhook_signing_secret: str | None = None
    from_email: str | None = None
    forward_to_email: str | None = None

    resend_api_url: str = RESEND_EMAILS_URL
    resend_timeout_seconds: float | None = None
    webhook_tolerance_seconds: int = 300
    forward_subject_prefix: str | None = "[Forward]"

    forwarder_host: str = "127.0.0.1"
    forwarder_port: int = 8000
    forwarder_log_level: str = "info"


@dataclass(frozen=True)
class ForwarderConfig:
    api_key: str
    signing_secret: str
    from_address: str
    forward_to: str
    api_url: str = RESEND_EMAILS_URL
    timeout_seconds: float | None = None
    tolerance_seconds: int = 300
    subject_prefix: str = "[Forward]"


_REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (
    ("RESEND_API_KEY", "resend_api_key"),
    ("WEBHOOK_SIGNING_SECRET", "webhook_signing_secret"),
    ("FROM_EMAIL", "from_email"),
    ("FORWARD_TO_EMAIL", "forward_to_email"),
)


def load_forwarder_config(source: Settings | None = None) -> ForwarderConfig:
    if source is None:
        source = settings
    values: dict[str, str] = {}
    missing: list[str] = []
    for env_name, field in _REQUIRED_FIELDS:
        value = (getattr(source, field) or "").strip()
        if not value:
            missing.append(env_name)
        values[field] = value
    if missing:
        raise ConfigurationError(f"missing environment variables: {', '.join(missing)}")

    return ForwarderConfig(
        api_key=values["resend_api_key"],
        signing_secret=values["webhook_signing_secret"],
        from_address=values["from_email"],
        forward_to=values["forward_to_email"],
        api_url=source.resend_api_url,
        timeout_seconds=source.resend_timeout_seconds,
        tolerance_seconds=source.webhook_tolerance_seconds,
        subject_prefix=source.forward_subject_prefix or "",
    )


def load_forwarder_config_or_none(source: Settings | None = None) -> ForwarderConfig | None:
    try:
        return load_forwarder_config(source)
    except ConfigurationError as exc:
        _log.error("Forwarder is not configured: %s", exc.detail)
        return None


def load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        # Keep the process alive; with no required values every webhook gets a 500.
        _log.error("Invalid forwarder settings, using defaults: %s", exc)
        return Settings.model_construct()


settings = load_settings()
