from __future__ import annotations

from pydantic import BaseModel, Field

from card_app.home import CardAppPaths


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)


class PocketBaseConfig(BaseModel):
    """Settings for the embedded PocketBase process.

    The binary is looked up under CARD_APP_HOME/tools and then on PATH unless
    an explicit executable is configured.
    """

    enabled: bool = Field(default=True)
    executable: str | None = Field(
        default=None,
        description=(
            "Optional path to the 'pocketbase' binary; if relative, resolved under "
            "CARD_APP_HOME/tools"
        ),
    )
    http_host: str = Field(default="127.0.0.1")
    http_port: int = Field(default=8090, ge=1, le=65535)
    data_dir: str | None = Field(
        default=None,
        description="Optional PocketBase data dir; if relative, resolved under CARD_APP_HOME",
    )
    extra_args: list[str] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class AppConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    pocketbase: PocketBaseConfig = Field(default_factory=PocketBaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_app_config(paths: CardAppPaths) -> AppConfig:
    """Read config/app.json; an absent file means all defaults."""

    if not paths.app_config_path.is_file():
        return AppConfig()
    return AppConfig.model_validate_json(paths.app_config_path.read_bytes())


def write_app_config(paths: CardAppPaths, config: AppConfig) -> None:
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.app_config_path.write_text(
        config.model_dump_json(indent=2, exclude_none=True) + "\n", encoding="utf-8"
    )
