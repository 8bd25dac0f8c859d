# app/backend/server.py
"""
Process runner.

uvicorn already handles SIGINT/SIGTERM (stop accepting, drain in-flight requests).
On top of that: anything that escapes request handling (loop-level errors,
uncaught exceptions in other threads) is logged and asks the server to exit,
and a timer forces the exit once the grace period is over.
"""
from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
from typing import Optional

import uvicorn

from app.backend.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class FailFast:
    def __init__(self, server: uvicorn.Server, grace_seconds: float) -> None:
        self.server = server
        self.grace_seconds = grace_seconds
        self.exit_code = 0
        self._timer: Optional[threading.Timer] = None

    def trigger(self, reason: str, exc: Optional[BaseException] = None) -> None:
        if exc is not None:
            logger.critical("%s: %r", reason, exc, exc_info=(type(exc), exc, exc.__traceback__))
        else:
            logger.critical("%s", reason)
        self.exit_code = 1
        self.server.should_exit = True
        if self._timer is None:
            self._timer = threading.Timer(self.grace_seconds, self._force_exit)
            self._timer.daemon = True
            self._timer.start()

    def _force_exit(self) -> None:
        logger.error("Forcing server close after %.0fs", self.grace_seconds)
        os._exit(self.exit_code or 1)

    def loop_exception_handler(self, loop: asyncio.AbstractEventLoop, context: dict) -> None:
        exc = context.get("exception")
        self.trigger(f"Unhandled error in event loop: {context.get('message')}", exc)

    def thread_excepthook(self, args: threading.ExceptHookArgs) -> None:
        self.trigger(f"Uncaught exception in thread {getattr(args.thread, 'name', '?')}", args.exc_value)


class TaskServer(uvicorn.Server):
    def __init__(self, config: uvicorn.Config, grace_seconds: float) -> None:
        super().__init__(config)
        self.fail_fast = FailFast(self, grace_seconds)

    async def serve(self, sockets=None) -> None:
        asyncio.get_running_loop().set_exception_handler(self.fail_fast.loop_exception_handler)
        threading.excepthook = self.fail_fast.thread_excepthook
        await super().serve(sockets=sockets)


def build_server(settings: Optional[Settings] = None, app: str = "app.main:app") -> TaskServer:
    settings = settings or get_settings()
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
        forwarded_allow_ips="*",
        timeout_graceful_shutdown=int(settings.shutdown_grace_seconds),
        log_config=None,  # setup_logging() 사용
    )
    return TaskServer(config, grace_seconds=settings.shutdown_grace_seconds)


def run(settings: Optional[Settings] = None) -> int:
    settings = settings or get_settings()
    server = build_server(settings)
    logger.info("Server running on http://%s:%s (env=%s)", settings.host, settings.port, settings.environment)
    try:
        server.run()
    except Exception as exc:
        logger.critical("Server crashed: %r", exc, exc_info=True)
        return 1
    return server.fail_fast.exit_code


if __name__ == "__main__":
    sys.exit(run())
