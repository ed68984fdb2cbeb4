from __future__ import annotations

import logging

import uvicorn
from webhook_forwarder.main import app as fastapi_app
from webhook_forwarder.settings import settings


def main() -> None:
    logging.basicConfig(
        level=settings.forwarder_log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(
        fastapi_app,
        host=settings.forwarder_host,
        port=settings.forwarder_port,
        log_level=settings.forwarder_log_level,
    )


if __name__ == "__main__":
    main()
