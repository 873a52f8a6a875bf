"""
Relay and client configuration.

Client settings persist in ~/.loglab/config.json; CLI options and
environment variables override what is stored there.
"""

import json
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

CONFIG_FILE = Path.home() / ".loglab" / "config.json"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_BASE_URL = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"
SOCKETIO_PATH = "socket.io"


class RelayConfig(BaseModel):
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    capacity: int = Field(default=100, ge=1)
    teardown: Literal["connection", "last"] = "connection"
    cors_origins: str = "*"
    socketio_path: str = SOCKETIO_PATH
    send_window: int = Field(default=8, ge=1)


class ClientConfig(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    socketio_path: str = SOCKETIO_PATH
    connect_timeout: float = Field(default=15.0, gt=0)
    send_timeout: float = Field(default=60.0, gt=0)


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    path = path or CONFIG_FILE
    try:
        return json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def save_config(cfg: dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))


def client_config(path: Optional[Path] = None, **overrides: Any) -> ClientConfig:
    """Stored settings with non-None overrides applied on top."""
    data = load_config(path)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return ClientConfig.model_validate(data)
