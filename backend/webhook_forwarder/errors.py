from __future__ import annotations


class ForwarderError(Exception):
    """Base for every rejection the webhook pipeline can map to an HTTP status.

    ``reason`` is the short text returned to the caller; ``detail`` is the
    operator-facing message that only goes to the log.
    """

    status_code = 500
    reason = "Internal Server Error"

    def __init__(self, detail: str = "", *, reason: str | None = None):
        if reason is not None:
            self.reason = reason
        self.detail = detail or self.reason
        super().__init__(self.detail)


class AuthenticationFailure(ForwarderError):
    """Bad, stale or missing signature."""

    status_code = 401
    reason = "Invalid Signature"


class ConfigurationError(ForwarderError):
    """Malformed signing secret or missing required configuration."""

    status_code = 500
    reason = "Server Configuration Error"


class MalformedInput(ForwarderError):
    status_code = 400
    reason = "Invalid Payload"


class ProviderFailure(ForwarderError):
    """Resend rejected the forward or could not be reached."""

    status_code = 502
    reason = "Failed to send email"
