from __future__ import annotations

import logging

from fastapi import FastAPI

from webhook_forwarder.routers import webhook
from webhook_forwarder.services.resend import ResendForwarder
from webhook_forwarder.services.signature import SignatureVerifier
from webhook_forwarder.settings import ForwarderConfig, load_forwarder_config_or_none

_log = logging.getLogger(__name__)


def create_app(
    *,
    config: ForwarderConfig | None = None,
    verifier: SignatureVerifier | None = None,
    forwarder: ResendForwarder | None = None,
) -> FastAPI:
    app = FastAPI(title="Webhook Forwarder", version="0.1.0")

    # Built once; a missing value turns every webhook into a 500 until redeployed.
    app.state.forwarder_config = config or load_forwarder_config_or_none()
    app.state.signature_verifier = verifier
    app.state.email_forwarder = forwarder
    if app.state.forwarder_config is not None:
        _log.info("Forwarding webhooks to %s", app.state.forwarder_config.forward_to)

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    app.include_router(webhook.router)

    return app


app = create_app()
