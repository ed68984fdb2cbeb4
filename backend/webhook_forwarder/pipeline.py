"""Request handling shared by every hosting adapter.

Adapters translate their platform's request into (method, headers, raw body),
call process_webhook, and translate the WebhookResult back. Nothing in here
knows about FastAPI or Lambda.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from webhook_forwarder.errors import (
    AuthenticationFailure,
    ConfigurationError,
    ForwarderError,
    MalformedInput,
    ProviderFailure,
)
from webhook_forwarder.schemas import WebhookResult
from webhook_forwarder.services.rendering import build_forward_request, extract_inbound_email
from webhook_forwarder.services.resend import ProviderRejected, ResendForwarder, Sent, TransportFailed
from webhook_forwarder.services.signature import SignatureVerifier
from webhook_forwarder.settings import ForwarderConfig

_log = logging.getLogger(__name__)

SIGNATURE_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")

_OK_BODY = json.dumps({"status": "ok", "message": "Email forwarded"})


def _signature_headers(headers: Mapping[str, str]) -> tuple[str, str, str]:
    lowered = {str(key).lower(): value for key, value in headers.items()}
    message_id, timestamp, signature = (lowered.get(name) or "" for name in SIGNATURE_HEADERS)
    if not (message_id and timestamp and signature):
        raise AuthenticationFailure("missing svix signature headers", reason="Missing Signature Headers")
    return message_id, timestamp, signature


def _parse_payload(body: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedInput(f"body is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedInput("body is not a JSON object")
    return payload


def _describe_failure(outcome: ProviderRejected | TransportFailed) -> str:
    if isinstance(outcome, ProviderRejected):
        return f"Resend rejected the forward ({outcome.status_code}): {outcome.details}"
    return f"Resend unreachable: {outcome.details}"


def _handle(
    headers: Mapping[str, str],
    body: bytes,
    config: ForwarderConfig | None,
    verifier: SignatureVerifier | None,
    forwarder: ResendForwarder | None,
) -> WebhookResult:
    if config is None:
        raise ConfigurationError("forwarder configuration is incomplete")

    message_id, timestamp, signature = _signature_headers(headers)

    verifier = verifier or SignatureVerifier(tolerance_seconds=config.tolerance_seconds)
    try:
        authentic = verifier.verify(body, message_id, timestamp, signature, config.signing_secret)
    except ConfigurationError as exc:
        raise ConfigurationError(exc.detail, reason="Verification Error") from exc
    if not authentic:
        raise AuthenticationFailure(f"signature verification failed for {message_id}")

    email = extract_inbound_email(_parse_payload(body))
    request = build_forward_request(email, config)

    forwarder = forwarder or ResendForwarder(api_url=config.api_url, timeout_seconds=config.timeout_seconds)
    outcome = forwarder.forward(
        request.api_key,
        request.from_address,
        request.to_address,
        request.subject,
        request.html,
    )
    if not isinstance(outcome, Sent):
        raise ProviderFailure(_describe_failure(outcome))

    _log.info("Forwarded webhook %s from %s to %s", message_id, email.sender or "(unknown)", request.to_address)
    return WebhookResult(status_code=200, body=_OK_BODY, media_type="application/json")


def process_webhook(
    method: str,
    headers: Mapping[str, str],
    body: bytes,
    config: ForwarderConfig | None,
    *,
    verifier: SignatureVerifier | None = None,
    forwarder: ResendForwarder | None = None,
) -> WebhookResult:
    if method.upper() != "POST":
        return WebhookResult(status_code=405, body="Method Not Allowed")
    try:
        return _handle(headers, body, config, verifier, forwarder)
    except ForwarderError as exc:
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        _log.log(level, "Webhook rejected with %s: %s", exc.status_code, exc.detail)
        return WebhookResult(status_code=exc.status_code, body=exc.reason)
