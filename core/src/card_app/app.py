from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from card_app import __version__
from card_app.config import AppConfig, load_app_config
from card_app.home import CardAppPaths, ensure_card_app_layout, resolve_card_app_home
from card_app.pocketbase import EmbeddedBackend, build_embedded_backend, start_in_background
from card_app.routes import ROUTES, Route, register_routes

logger = logging.getLogger(__name__)


def _launch_backend(
    paths: CardAppPaths, config: AppConfig, backend: EmbeddedBackend | None
) -> EmbeddedBackend | None:
    # PocketBase shares only the process with the front server; none of its
    # failures may reach the lifespan.
    if backend is not None:
        return backend
    try:
        return build_embedded_backend(paths, config)
    except Exception as exc:
        logger.error("PocketBase error: %s", exc)
        return None


def create_app(
    *,
    paths: CardAppPaths | None = None,
    config: AppConfig | None = None,
    backend: EmbeddedBackend | None = None,
    routes: tuple[Route, ...] = ROUTES,
) -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        layout = paths if paths is not None else ensure_card_app_layout(resolve_card_app_home())
        cfg = config if config is not None else load_app_config(layout)

        logger.info("Card App starting up (home: %s)", layout.home)

        app.state.card_app_paths = layout
        app.state.card_app_config = cfg

        managed = _launch_backend(layout, cfg, backend)
        app.state.backend = managed
        app.state.backend_thread = start_in_background(managed) if managed is not None else None

        try:
            yield
        finally:
            if managed is not None:
                managed.shutdown()
            logger.info("Card App shut down")

    app = FastAPI(
        title="Card App",
        version=__version__,
        lifespan=_lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
        # The server re-raises after this handler and logs the traceback itself.
        return PlainTextResponse("Internal Server Error", status_code=500)

    register_routes(app, routes)

    return app
