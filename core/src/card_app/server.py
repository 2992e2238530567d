from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

logger = logging.getLogger(__name__)


class ServerStartError(RuntimeError):
    pass


class FrontServer:
    """Blocking uvicorn server with an explicit shutdown.

    `start()` occupies the calling thread until `shutdown()` is called (from
    another thread or a signal handler) or the listener fails.
    """

    def __init__(self, app: FastAPI, *, host: str = "0.0.0.0", port: int = 8080) -> None:
        self.host = host
        self.port = port
        self._server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, lifespan="on"))

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def started(self) -> bool:
        return self._server.started

    def start(self) -> None:
        logger.info("Starting front server on %s", self.address)
        try:
            self._server.run()
        except SystemExit as exc:
            # uvicorn exits the interpreter when the socket cannot be bound.
            raise ServerStartError(f"Could not listen on {self.address}") from exc

        if not self._server.started:
            raise ServerStartError(f"Front server on {self.address} failed to start")

    def shutdown(self) -> None:
        self._server.should_exit = True
