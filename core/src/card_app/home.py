from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

HOME_ENV: Final[str] = "CARD_APP_HOME"
DEFAULT_HOME_NAME: Final[str] = ".card_app"


@dataclass(frozen=True)
class CardAppPaths:
    """Runtime directories, all derived from one home directory."""

    home: Path

    @property
    def config_dir(self) -> Path:
        return self.home / "config"

    @property
    def logs_dir(self) -> Path:
        return self.home / "logs"

    @property
    def pb_data_dir(self) -> Path:
        return self.home / "pb_data"

    @property
    def tools_dir(self) -> Path:
        return self.home / "tools"

    @property
    def app_config_path(self) -> Path:
        return self.config_dir / "app.json"

    @property
    def log_path(self) -> Path:
        return self.logs_dir / "app.log"


def resolve_card_app_home(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    raw = (env.get(HOME_ENV) or "").strip()
    home = Path(raw).expanduser() if raw else Path.home() / DEFAULT_HOME_NAME
    return home.resolve()


def ensure_card_app_layout(home: Path) -> CardAppPaths:
    paths = CardAppPaths(home=home.resolve())
    for path in (paths.config_dir, paths.logs_dir, paths.pb_data_dir, paths.tools_dir):
        path.mkdir(parents=True, exist_ok=True)
    return paths
