from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from webhook_forwarder.settings import RESEND_EMAILS_URL

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sent:
    email_id: str | None = None


@dataclass(frozen=True)
class ProviderRejected:
    status_code: int
    details: str


@dataclass(frozen=True)
class TransportFailed:
    details: str


ForwardOutcome = Sent | ProviderRejected | TransportFailed


def _email_id(resp: httpx.Response) -> str | None:
    try:
        data: Any = resp.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("id"), str):
        return data["id"]
    return None


class ResendForwarder:
    """Send one email through the Resend API.

    ``forward`` issues exactly one request and never raises: every failure
    comes back as ProviderRejected or TransportFailed for the caller to map.
    """

    def __init__(
        self,
        *,
        api_url: str = RESEND_EMAILS_URL,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_url = api_url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def forward(
        self,
        api_key: str,
        from_address: str,
        to_address: str,
        subject: str,
        html: str,
    ) -> ForwardOutcome:
        headers = {"Authorization": f"Bearer {api_key}"}
        payload = {"from": from_address, "to": to_address, "subject": subject, "html": html}

        try:
            with httpx.Client(timeout=self._timeout_seconds, transport=self._transport) as client:
                resp = client.post(self._api_url, headers=headers, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            details = str(exc) or exc.__class__.__name__
            _log.error("Resend request failed: %s", details)
            return TransportFailed(details=details)

        if not resp.is_success:
            _log.error("Resend API error %s: %s", resp.status_code, resp.text)
            return ProviderRejected(status_code=resp.status_code, details=resp.text)

        email_id = _email_id(resp)
        _log.info("Resend accepted forward to %s (id=%s)", to_address, email_id)
        return Sent(email_id=email_id)


def forward(
    api_key: str,
    from_address: str,
    to_address: str,
    subject: str,
    html: str,
    *,
    transport: httpx.BaseTransport | None = None,
) -> ForwardOutcome:
    return ResendForwarder(transport=transport).forward(api_key, from_address, to_address, subject, html)
