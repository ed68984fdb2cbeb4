"""AWS Lambda entry point for API Gateway proxy events (REST v1 and HTTP API v2)."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable
from typing import Any

from webhook_forwarder.pipeline import process_webhook
from webhook_forwarder.schemas import WebhookResult
from webhook_forwarder.services.resend import ResendForwarder
from webhook_forwarder.services.signature import SignatureVerifier
from webhook_forwarder.settings import ForwarderConfig, load_forwarder_config_or_none

LambdaHandler = Callable[[dict[str, Any], Any], dict[str, Any]]


def _event_method(event: dict[str, Any]) -> str:
    method = event.get("httpMethod")
    if not method:
        http = (event.get("requestContext") or {}).get("http") or {}
        method = http.get("method")
    return str(method or "")


def _event_headers(event: dict[str, Any]) -> dict[str, str]:
    return {
        str(key).lower(): str(value)
        for key, value in (event.get("headers") or {}).items()
        if value is not None
    }


def _event_body(event: dict[str, Any]) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body, validate=True)
    return body.encode("utf-8")


def _to_response(result: WebhookResult) -> dict[str, Any]:
    return {
        "statusCode": result.status_code,
        "headers": {"Content-Type": result.media_type},
        "body": result.body,
    }


def make_lambda_handler(
    config: ForwarderConfig | None = None,
    *,
    verifier: SignatureVerifier | None = None,
    forwarder: ResendForwarder | None = None,
) -> LambdaHandler:
    # Resolved once per cold start.
    resolved = config or load_forwarder_config_or_none()

    def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
        try:
            body = _event_body(event)
        except (binascii.Error, ValueError):
            return _to_response(WebhookResult(status_code=400, body="Invalid Body"))
        result = process_webhook(
            _event_method(event),
            _event_headers(event),
            body,
            resolved,
            verifier=verifier,
            forwarder=forwarder,
        )
        return _to_response(result)

    return handler


lambda_handler = make_lambda_handler()
