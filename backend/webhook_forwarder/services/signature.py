"""Svix-style webhook signature verification for Resend deliveries.

A delivery carries three headers:

  svix-id         message id, unique per delivery attempt
  svix-timestamp  integer seconds since the epoch, as a string
  svix-signature  space separated ``<version>,<base64 digest>`` tokens

The signed content is ``{svix-id}.{svix-timestamp}.{raw body}`` and the digest
is base64(HMAC-SHA256(key, signed content)), where the key is the base64
decoded part of the ``whsec_...`` signing secret.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass

from webhook_forwarder.errors import ConfigurationError

_log = logging.getLogger(__name__)

SECRET_PREFIX = "whsec_"
SIGNATURE_VERSION = "v1"
DEFAULT_TOLERANCE_SECONDS = 300

# Bounded so int() never meets the interpreter's digit limit.
_TIMESTAMP_RE = re.compile(r"-?[0-9]{1,18}")


@dataclass(frozen=True)
class SignatureToken:
    version: str
    digest: str


def decode_secret(secret: str) -> bytes:
    """Return the raw HMAC key bytes for a signing secret.

    Raises ConfigurationError when the secret is not base64: that is a
    deployment problem, not something the sender of a webhook can cause.
    """
    encoded = secret.strip()
    if encoded.startswith(SECRET_PREFIX):
        encoded = encoded[len(SECRET_PREFIX):]
    # Secrets pasted without their trailing "=" still decode.
    encoded += "=" * (-len(encoded) % 4)
    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationError("webhook signing secret is not valid base64") from exc
    if not key:
        raise ConfigurationError("webhook signing secret is empty")
    return key


def parse_signature_header(header: str) -> list[SignatureToken]:
    tokens: list[SignatureToken] = []
    for part in header.split():
        version, sep, digest = part.partition(",")
        if not sep:
            continue
        tokens.append(SignatureToken(version=version, digest=digest))
    return tokens


def parse_timestamp(value: str) -> int | None:
    if not _TIMESTAMP_RE.fullmatch(value):
        return None
    return int(value)


def signed_content(message_id: str, timestamp: str, raw_body: bytes) -> bytes:
    # The body is signed exactly as received; never re-serialize it.
    return b".".join((message_id.encode("utf-8"), timestamp.encode("utf-8"), raw_body))


def compute_digest(key: bytes, content: bytes) -> str:
    mac = hmac.new(key, content, hashlib.sha256).digest()
    return base64.b64encode(mac).decode("ascii")


def sign(message_id: str, timestamp: str | int, raw_body: bytes | str, secret: str) -> str:
    """Build the ``v1,<digest>`` token a sender would put in svix-signature."""
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    key = decode_secret(secret)
    digest = compute_digest(key, signed_content(message_id, str(timestamp), raw_body))
    return f"{SIGNATURE_VERSION},{digest}"


class SignatureVerifier:
    def __init__(
        self,
        *,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._tolerance_seconds = max(0, tolerance_seconds)
        self._clock = clock

    def is_fresh(self, timestamp: str) -> bool:
        ts = parse_timestamp(timestamp)
        if ts is None:
            return False
        return abs(int(self._clock()) - ts) <= self._tolerance_seconds

    def verify(
        self,
        raw_body: bytes,
        message_id: str,
        timestamp: str,
        signature_header: str,
        secret: str,
    ) -> bool:
        """Return True when the delivery is authentic and inside the replay window.

        A mismatch is a plain False. Only a malformed secret raises
        (ConfigurationError), and it does so on every call.
        """
        key = decode_secret(secret)

        if not self.is_fresh(timestamp):
            _log.warning("Webhook %s rejected: timestamp %r outside tolerance", message_id, timestamp[:32])
            return False

        expected = compute_digest(key, signed_content(message_id, timestamp, raw_body)).encode("ascii")
        matched = False
        # Compare against every v1 candidate so timing does not reveal which one matched.
        for token in parse_signature_header(signature_header):
            if token.version != SIGNATURE_VERSION:
                continue
            if hmac.compare_digest(token.digest.encode("utf-8"), expected):
                matched = True
        if not matched:
            _log.warning("Webhook %s rejected: no matching %s signature", message_id, SIGNATURE_VERSION)
        return matched


def verify(
    raw_body: bytes,
    message_id: str,
    timestamp: str,
    signature_header: str,
    secret: str,
    *,
    now: float | None = None,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
) -> bool:
    clock = time.time if now is None else (lambda: now)
    return SignatureVerifier(tolerance_seconds=tolerance_seconds, clock=clock).verify(
        raw_body, message_id, timestamp, signature_header, secret
    )
