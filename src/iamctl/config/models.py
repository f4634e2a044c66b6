"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, iamctl.toml only contains
overrides. A fresh installation needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    """[database] section.

    ``url`` wins over ``path``; with neither set the SQLite file lives at
    ``{data_root}/.iamctl/iamctl.db``.
    """

    model_config = {"frozen": True}

    path: str | None = None
    url: str | None = None
    echo: bool = False


class CacheConfig(BaseModel):
    """[cache] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class SecurityConfig(BaseModel):
    """[security] section."""

    model_config = {"frozen": True}

    hash_iterations: int = Field(default=600_000, ge=1)
    min_password_length: int = 8
    max_password_length: int = 255
    max_new_password_length: int = 50


class IamConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
