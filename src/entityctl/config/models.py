"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, entityctl.toml only contains
overrides. A fresh project needs no config file at all. The sections are
composed into :class:`~entityctl.config.settings.EntitySettings`.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator

# --- entityctl.toml sections ---


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    # Relative paths resolve against the project root.
    path: Path = Path(".entityctl") / "entityctl.db"
    echo: bool = False  # log SQL statements via the sqlalchemy.engine logger


class QueryConfig(BaseModel):
    """[query] section."""

    model_config = {"frozen": True}

    default_limit: int = Field(default=50, ge=1)
    max_limit: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def _check_limits(self) -> QueryConfig:
        if self.default_limit > self.max_limit:
            msg = f"default_limit ({self.default_limit}) exceeds max_limit ({self.max_limit})"
            raise ValueError(msg)
        return self

