"""Client configuration management."""
import json
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fsclient.core.exceptions import ConfigurationError

DEFAULT_BASE_URL = "http://127.0.0.1:8080"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_CHANNEL_TIMEOUT = 60.0
CONFIG_ENV_VAR = "FSCLIENT_CONFIG"


class DeploymentMode(str, Enum):
    """Layout of the file API on the server."""

    SERVER = "server"
    SINGLE = "single"


class ServerProfile(BaseModel):
    """A managed server reachable through the file API."""

    id: str = Field(..., description="Server identifier used in API paths")
    name: Optional[str] = Field(default=None, description="Display name")


class ClientConfig(BaseModel):
    """Connection-level configuration model."""
    model_config = {"extra": "ignore"}

    base_url: str = Field(DEFAULT_BASE_URL, description="Root URL of the panel")
    deployment_mode: DeploymentMode = Field(
        DeploymentMode.SERVER,
        description="Server-scoped API or the legacy single-server API",
    )
    request_timeout: float = Field(DEFAULT_REQUEST_TIMEOUT, description="Seconds before a request times out")
    channel_timeout: float = Field(
        DEFAULT_CHANNEL_TIMEOUT,
        description="Seconds of silence tolerated on a notification channel",
    )
    log_level: str = Field("INFO", description="Root logging level")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers sent with every request",
    )


class ConfigFile(BaseModel):
    """Root configuration file structure."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    servers: list[ServerProfile] = Field(default_factory=list)
    default_server_id: Optional[str] = None


class Settings(BaseSettings):
    """Resolved settings for one client instance."""

    model_config = SettingsConfigDict(env_prefix="FSCLIENT_", extra="ignore")

    base_url: str = Field(DEFAULT_BASE_URL, description="Root URL of the panel")
    server_id: Optional[str] = Field(default=None, description="Server whose files are managed")
    deployment_mode: DeploymentMode = Field(DeploymentMode.SERVER, description="API layout")
    request_timeout: float = Field(DEFAULT_REQUEST_TIMEOUT, description="Request timeout in seconds")
    channel_timeout: float = Field(DEFAULT_CHANNEL_TIMEOUT, description="Channel read timeout in seconds")
    log_level: str = Field("INFO", description="Root logging level")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")


def _get_config_file_path() -> Path:
    """Get the absolute path to the fsclient.json configuration file."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    project_root = Path(__file__).parent.parent.parent
    return project_root / "fsclient.json"


def _parse_config(content: str, config_path: Path) -> ConfigFile:
    try:
        return ConfigFile(**json.loads(content))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {config_path}: {e}") from e


def _load_config_from_json(path: Path | None = None) -> ConfigFile:
    """Load the configuration file, falling back to defaults when it is absent."""
    config_path = path or _get_config_file_path()
    if not config_path.exists():
        return ConfigFile()
    with open(config_path, "r", encoding="utf-8") as f:
        return _parse_config(f.read(), config_path)


async def _load_config_from_json_async(path: Path | None = None) -> ConfigFile:
    """Async variant of the loader for use inside a running event loop."""
    import aiofiles

    config_path = path or _get_config_file_path()
    if not config_path.exists():
        return ConfigFile()
    async with aiofiles.open(config_path, "r", encoding="utf-8") as f:
        content = await f.read()
    return _parse_config(content, config_path)


def _select_server(config: ConfigFile, server_id: str | None) -> Optional[str]:
    target = server_id or config.default_server_id
    if target is None:
        return config.servers[0].id if config.servers else None
    if config.servers and not any(server.id == target for server in config.servers):
        raise ConfigurationError(f"Server with id '{target}' not found in configuration")
    return target


def _create_settings_from_config(config: ConfigFile, *, server_id: str | None = None) -> Settings:
    """Create Settings from the configuration file; file values override the environment."""

    overrides = config.client.model_dump(exclude_unset=True)
    selected = _select_server(config, server_id)
    if selected is not None:
        overrides["server_id"] = selected
    return Settings(**overrides)


def list_servers(path: Path | None = None) -> list[ServerProfile]:
    """Return all server profiles from configuration."""

    return _load_config_from_json(path).servers


@lru_cache(maxsize=None)
def get_settings(server_id: str | None = None) -> Settings:
    """Return a cached Settings instance (blocking)."""

    config = _load_config_from_json()
    return _create_settings_from_config(config, server_id=server_id)


async def get_settings_async(server_id: str | None = None) -> Settings:
    """Async helper to resolve settings without blocking the loop."""

    config = await _load_config_from_json_async()
    return _create_settings_from_config(config, server_id=server_id)
