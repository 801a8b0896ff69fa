"""Configuration model and loader."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, model_validator

from tallysheet.contracts.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path("tallysheet.json")


class TallysheetConfig(BaseModel):
    store: str = "memory"
    endpoint: str | None = None
    auth: Literal["env", "token", "none"] = "env"
    token: str | None = None
    debounce_ms: int = Field(default=700, ge=0)
    poll_interval: float = Field(default=2.0, gt=0)
    max_retries: int = Field(default=3, ge=0, le=10)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_store(self) -> TallysheetConfig:
        if self.store == "graphql" and not (self.endpoint or "").strip():
            raise ValueError("graphql store requires a non-empty endpoint")
        return self

    @model_validator(mode="after")
    def validate_auth_token(self) -> TallysheetConfig:
        token = (self.token or "").strip()
        if self.auth == "token":
            if not token:
                raise ValueError("token auth requires a non-empty token")
            return self
        if token:
            raise ValueError("token must be unset when auth is not 'token'")
        return self


def load_config(path: str | Path) -> TallysheetConfig:
    """Load and validate config from JSON."""
    config_path = Path(path).expanduser().resolve()
    try:
        raw_payload: Any = json.loads(config_path.read_text(encoding="utf-8"))
        return TallysheetConfig.model_validate(raw_payload)
    except OSError as exc:
        raise ConfigError(f"failed reading config file: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in config file: {config_path}") from exc
    except ValidationError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc
