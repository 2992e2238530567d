from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI
from starlette.responses import Response

from card_app.handler import render
from card_app.views import base_layout


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    endpoint: Callable[..., Any]


async def index() -> Response:
    return render(200, base_layout())


ROUTES: tuple[Route, ...] = (Route("GET", "/", index),)


def register_route(app: FastAPI, method: str, path: str, endpoint: Callable[..., Any]) -> None:
    if not path.startswith("/"):
        raise ValueError(f"Route path must start with '/': {path!r}")
    app.add_api_route(path, endpoint, methods=[method.upper()], include_in_schema=False)


def register_routes(app: FastAPI, routes: Iterable[Route] = ROUTES) -> None:
    for route in routes:
        register_route(app, route.method, route.path, route.endpoint)
