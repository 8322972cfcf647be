"""Client configuration: load and validate config.toml."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_BASE_URL = "https://ai4edu-api.jerryang.org/v1/prod"
DEFAULT_PROVIDER = "openai"
TOKEN_ENV_VAR = "CHAT_BLOCKS_TOKEN"


class ConfigError(Exception):
    """Raised when config.toml is malformed or missing required fields."""


@dataclass(frozen=True)
class ClientConfig:
    """Server connection settings from the [server] table of config.toml."""

    base_url: str = DEFAULT_BASE_URL
    access_token: str | None = None
    user_id: str = "-1"  # "-1" means anonymous to the server
    agent_id: str | None = None
    workspace_id: str | None = None
    provider: str = DEFAULT_PROVIDER

    def require_chat_target(self) -> tuple[str, str]:
        """Return (agent_id, workspace_id), raising ConfigError if either is unset."""
        if not self.agent_id:
            msg = "'agent_id' must be set in the [server] table of config.toml"
            raise ConfigError(msg)
        if not self.workspace_id:
            msg = "'workspace_id' must be set in the [server] table of config.toml"
            raise ConfigError(msg)
        return self.agent_id, self.workspace_id


def get_config_path() -> Path:
    """Return the path to config.toml, respecting XDG_CONFIG_HOME."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "chat-blocks" / "config.toml"


def load_config(path: Path) -> ClientConfig:
    """Load the client configuration from a TOML file.

    Returns defaults if the file does not exist. The CHAT_BLOCKS_TOKEN
    environment variable overrides the configured access token.
    Raises ConfigError on parse errors or wrongly typed fields.
    """
    config = ClientConfig()
    if path.exists():
        try:
            data = tomllib.loads(path.read_text())
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {path}: {e}"
            raise ConfigError(msg) from e

        server = data.get("server", {})
        if not isinstance(server, dict):
            msg = f"[server] in {path} must be a table"
            raise ConfigError(msg)
        for key, value in server.items():
            if key not in ClientConfig.__dataclass_fields__:
                msg = f"Unknown key '{key}' in [server] of {path}"
                raise ConfigError(msg)
            if not isinstance(value, str):
                msg = f"Key '{key}' in {path} must be a string"
                raise ConfigError(msg)
        config = replace(config, **server)

    token = os.environ.get(TOKEN_ENV_VAR)
    if token:
        config = replace(config, access_token=token)
    return config
