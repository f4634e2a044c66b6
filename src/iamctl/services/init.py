"""InitService — set up a data root: config file plus an empty database."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from iamctl.config.discovery import CONFIG_FILENAME
from iamctl.config.models import SecurityConfig
from iamctl.domain.kinds import system_code
from iamctl.infrastructure.database.engine import DATA_DIRNAME, DB_FILENAME, init_database
from iamctl.services.result import Result, ServiceError

logger = logging.getLogger(__name__)

_CONFIG_TEMPLATE = """\
# iamctl configuration. Only overrides belong here; every key has a default.

[database]
echo = false

[cache]
enabled = {cache_enabled}

[security]
hash_iterations = {hash_iterations}
"""


class InitService:
    """Stateless: initialization happens before any Store exists."""

    @staticmethod
    def init_store(
        path: Path,
        *,
        cache_enabled: bool = True,
        hash_iterations: int | None = None,
        force: bool = False,
    ) -> Result[dict[str, Any]]:
        """Write ``iamctl.toml`` under *path* and create the database schema.

        An existing config file is left alone unless *force* is set.
        """
        op = "init"
        config_file = path / CONFIG_FILENAME
        if config_file.exists() and not force:
            return Result.reject(
                ServiceError.conflict(
                    system_code(3),
                    f"{config_file} already exists. Use --force to overwrite it.",
                    path=str(config_file),
                ),
                op=op,
            )

        iterations = hash_iterations or SecurityConfig().hash_iterations
        path.mkdir(parents=True, exist_ok=True)
        config_file.write_text(
            _CONFIG_TEMPLATE.format(
                cache_enabled="true" if cache_enabled else "false",
                hash_iterations=iterations,
            ),
            encoding="utf-8",
        )

        try:
            engine = init_database(path)
            engine.dispose()
        except SQLAlchemyError as exc:
            logger.exception("Database initialization failed under %s", path)
            return Result.reject(
                ServiceError.system_error(
                    system_code(2),
                    "An unexpected error occurred while accessing the data store.",
                    error=type(exc).__name__,
                ),
                op=op,
            )

        return Result.accept(
            {
                "data_root": str(path),
                "config": str(config_file),
                "database": str(path / DATA_DIRNAME / DB_FILENAME),
            },
            op=op,
        )
