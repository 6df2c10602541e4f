"""
Server configuration.

Values resolve in order: defaults, ~/.codesearch/config.json, environment,
explicit overrides.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from code_search_mcp.transport.github import DEFAULT_API_URL

CONFIG_FILE = Path.home() / ".codesearch" / "config.json"

ENV_VARS = {
    "github_token": "GITHUB_TOKEN",
    "api_url": "CODESEARCH_API_URL",
    "host": "CODESEARCH_HOST",
    "port": "CODESEARCH_PORT",
    "json_response": "CODESEARCH_JSON_RESPONSE",
    "cors_origins": "CODESEARCH_CORS_ORIGINS",
    "log_level": "CODESEARCH_LOG_LEVEL",
}


def load_config_file(path: Optional[Path] = None) -> dict[str, Any]:
    path = path or CONFIG_FILE
    try:
        data = json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config_file(cfg: dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))


class ServerConfig(BaseModel):
    github_token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    host: str = "127.0.0.1"
    port: int = 3000
    json_response: bool = False
    cors_origins: list[str] = ["*"]
    log_level: str = "info"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _lower_level(cls, value: str) -> str:
        return value.lower()

    @classmethod
    def load(
        cls,
        path: Optional[Path] = None,
        environ: Optional[dict[str, str]] = None,
        **overrides: Any,
    ) -> "ServerConfig":
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {k: v for k, v in load_config_file(path).items() if k in cls.model_fields}
        for field, var in ENV_VARS.items():
            if env.get(var):
                values[field] = env[var]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
