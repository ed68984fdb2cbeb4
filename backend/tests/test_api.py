from __future__ import annotations

import json

import httpx
from fastapi.testclient import TestClient

from webhook_forwarder.main import create_app
from webhook_forwarder.services.resend import ResendForwarder
from webhook_forwarder.services.signature import SignatureVerifier, sign
from webhook_forwarder.settings import ForwarderConfig, settings

_NOW = 1700000000
_CONFIG = ForwarderConfig(
    api_key="re_key",
    signing_secret="whsec_c2VjcmV0a2V5",
    from_address="catch@x.com",
    forward_to="me@y.com",
)


def _client(sent: list[httpx.Request], *, config: ForwarderConfig | None = _CONFIG, status: int = 200) -> TestClient:
    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(status, json={"id": "em_1"} if status == 200 else {"message": "nope"})

    app = create_app(
        config=config,
        verifier=SignatureVerifier(clock=lambda: _NOW),
        forwarder=ResendForwarder(transport=httpx.MockTransport(handler)),
    )
    return TestClient(app)


def test_webhook_round_trip_forwards_raw_body():
    sent: list[httpx.Request] = []
    client = _client(sent)
    # Non-canonical JSON on purpose: the signature covers these exact bytes.
    body = b'{ "data" : {"from":"a@x.com","to":["b@y.com"],"subject":"Hi","html":"<p>hello</p>"} }'
    headers = {
        "svix-id": "msg_1",
        "svix-timestamp": str(_NOW),
        "svix-signature": f"v2,garbage {sign('msg_1', _NOW, body, _CONFIG.signing_secret)}",
        "content-type": "application/json",
    }

    resp = client.post("/webhook", content=body, headers=headers)

    assert resp.status_code == 200, resp.text
    assert resp.json() == {"status": "ok", "message": "Email forwarded"}
    assert len(sent) == 1
    forwarded = json.loads(sent[0].content)
    assert forwarded["to"] == "me@y.com"
    assert forwarded["subject"] == "[Forward] Hi"
    assert "<p>hello</p>" in forwarded["html"]


def test_webhook_without_headers_is_unauthorized():
    sent: list[httpx.Request] = []
    resp = _client(sent).post("/webhook", content=b"{}")
    assert resp.status_code == 401
    assert resp.text == "Missing Signature Headers"
    assert sent == []


def test_webhook_with_stale_timestamp_is_unauthorized():
    sent: list[httpx.Request] = []
    stale = str(_NOW - 400)
    body = b"{}"
    headers = {
        "svix-id": "msg_1",
        "svix-timestamp": stale,
        "svix-signature": sign("msg_1", stale, body, _CONFIG.signing_secret),
    }
    resp = _client(sent).post("/webhook", content=body, headers=headers)
    assert resp.status_code == 401
    assert resp.text == "Invalid Signature"


def test_webhook_without_configuration_is_server_error(monkeypatch):
    monkeypatch.setattr(settings, "resend_api_key", None)
    monkeypatch.setattr(settings, "webhook_signing_secret", None)
    sent: list[httpx.Request] = []
    resp = _client(sent, config=None).post("/webhook", content=b"{}", headers={"svix-id": "x"})
    assert resp.status_code == 500
    assert resp.text == "Server Configuration Error"


def test_provider_failure_is_bad_gateway():
    sent: list[httpx.Request] = []
    body = b'{"from":"a@x.com","subject":"Hi"}'
    headers = {
        "svix-id": "msg_2",
        "svix-timestamp": str(_NOW),
        "svix-signature": sign("msg_2", _NOW, body, _CONFIG.signing_secret),
    }
    resp = _client(sent, status=422).post("/webhook", content=body, headers=headers)
    assert resp.status_code == 502
    assert resp.text == "Failed to send email"
    assert len(sent) == 1


def test_get_on_webhook_is_method_not_allowed():
    sent: list[httpx.Request] = []
    assert _client(sent).get("/webhook").status_code == 405


def test_healthz():
    sent: list[httpx.Request] = []
    resp = _client(sent).get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
