from __future__ import annotations

import logging
import os

from card_app.app import create_app
from card_app.config import load_app_config
from card_app.home import ensure_card_app_layout, resolve_card_app_home
from card_app.logs import configure_logging
from card_app.server import FrontServer, ServerStartError

logger = logging.getLogger("card_app")


def _resolve_port(default: int) -> int:
    raw = (os.environ.get("CARD_APP_PORT") or "").strip()
    if not raw:
        return default
    try:
        port = int(raw)
    except ValueError:
        raise ServerStartError(f"Invalid CARD_APP_PORT: {raw!r}") from None
    if not 1 <= port <= 65535:
        raise ServerStartError(f"CARD_APP_PORT out of range: {port}")
    return port


def main() -> None:
    paths = ensure_card_app_layout(resolve_card_app_home())
    config = load_app_config(paths)

    configure_logging(paths, config)

    host = os.environ.get("CARD_APP_BIND") or config.network.bind_host

    try:
        port = _resolve_port(config.network.port)
        FrontServer(create_app(paths=paths, config=config), host=host, port=port).start()
    except ServerStartError as exc:
        logger.critical("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
