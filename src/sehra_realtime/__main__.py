"""Entrypoint: python -m sehra_realtime"""
from __future__ import annotations

import uvicorn

from sehra_realtime.config import settings


def main() -> None:
    uvicorn.run(
        "sehra_realtime.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
        ws_ping_interval=settings.WS_PING_INTERVAL,
        ws_ping_timeout=settings.WS_PING_TIMEOUT,
    )


if __name__ == "__main__":
    main()
