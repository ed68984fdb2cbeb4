from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.concurrency import run_in_threadpool

from webhook_forwarder.pipeline import process_webhook

router = APIRouter(tags=["webhook"])


@router.post("/webhook")
async def receive_webhook(request: Request) -> Response:
    # Raw bytes: the signature covers the body exactly as sent.
    body = await request.body()
    state = request.app.state
    result = await run_in_threadpool(
        process_webhook,
        request.method,
        request.headers,
        body,
        state.forwarder_config,
        verifier=state.signature_verifier,
        forwarder=state.email_forwarder,
    )
    return Response(content=result.body, status_code=result.status_code, media_type=result.media_type)
