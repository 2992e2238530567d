from card_app.config import AppConfig, load_app_config
from card_app.home import CardAppPaths, ensure_card_app_layout, resolve_card_app_home

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "CardAppPaths",
    "__version__",
    "ensure_card_app_layout",
    "load_app_config",
    "resolve_card_app_home",
]
