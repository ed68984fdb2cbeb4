from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class InboundEmail:
    sender: str
    recipients: tuple[str, ...] = ()
    subject: str | None = None
    html: str | None = None
    text: str | None = None


@dataclass(frozen=True)
class ForwardRequest:
    api_key: str = field(repr=False)
    from_address: str
    to_address: str
    subject: str
    html: str


@dataclass(frozen=True)
class WebhookResult:
    status_code: int
    body: str
    media_type: str = "text/plain"
