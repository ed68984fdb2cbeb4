from __future__ import annotations

import re
from html import escape
from typing import Any

from webhook_forwarder.schemas import ForwardRequest, InboundEmail
from webhook_forwarder.settings import ForwarderConfig

NO_SUBJECT = "No Subject"
NO_CONTENT = "(No content)"

_FORWARD_TEMPLATE = """\
<div style="font-family: sans-serif; border: 1px solid #eaeaea; padding: 20px; border-radius: 5px;">
  <h2>New Email Received</h2>
  <p><strong>From:</strong> {sender}</p>
  <p><strong>To:</strong> {recipients}</p>
  <p><strong>Subject:</strong> {subject}</p>
  <hr style="border: 0; border-top: 1px solid #eaeaea; margin: 20px 0;" />
  <div style="background: #f9f9f9; padding: 15px; border-radius: 4px;">
    {content}
  </div>
  <br />
  <small style="color: #888;">Forwarded by webhook-forwarder</small>
</div>
"""


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _recipients(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(part.strip() for part in re.split(r"[,;]+", value) if part.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(item).strip() for item in value if str(item).strip())
    return ()


def extract_inbound_email(payload: dict[str, Any]) -> InboundEmail:
    """Pull the email fields out of a Resend webhook body.

    ``email.received`` style events nest the message under ``data``; anything
    else is read from the top level.
    """
    data = payload.get("data")
    email_data = data if isinstance(data, dict) else payload
    return InboundEmail(
        sender=_text(email_data.get("from")) or "",
        recipients=_recipients(email_data.get("to")),
        subject=_text(email_data.get("subject")),
        html=_text(email_data.get("html")),
        text=_text(email_data.get("text")),
    )


def forward_subject(email: InboundEmail, prefix: str = "[Forward]") -> str:
    subject = email.subject or NO_SUBJECT
    return f"{prefix} {subject}" if prefix else subject


def render_forward_html(email: InboundEmail) -> str:
    if email.html:
        content = email.html
    elif email.text:
        content = escape(email.text).replace("\n", "<br />\n")
    else:
        content = NO_CONTENT
    return _FORWARD_TEMPLATE.format(
        sender=escape(email.sender),
        recipients=escape(", ".join(email.recipients)),
        subject=escape(email.subject or ""),
        content=content,
    )


def build_forward_request(email: InboundEmail, config: ForwarderConfig) -> ForwardRequest:
    return ForwardRequest(
        api_key=config.api_key,
        from_address=config.from_address,
        to_address=config.forward_to,
        subject=forward_subject(email, config.subject_prefix),
        html=render_forward_html(email),
    )
