"""Tests for InitService."""

from __future__ import annotations

import tomllib
from pathlib import Path

from sqlalchemy import inspect

from iamctl.infrastructure.database.engine import init_database
from iamctl.services.init import InitService


class TestInitStore:
    def test_writes_config_and_database(self, tmp_path: Path) -> None:
        result = InitService.init_store(tmp_path, hash_iterations=2_000)
        assert result.ok
        assert result.op == "init"

        payload = result.or_raise()
        config = Path(payload["config"])
        database = Path(payload["database"])
        assert config == tmp_path / "iamctl.toml"
        assert database == tmp_path / ".iamctl" / "iamctl.db"
        assert database.is_file()

        data = tomllib.loads(config.read_text(encoding="utf-8"))
        assert data["security"]["hash_iterations"] == 2_000
        assert data["cache"]["enabled"] is True

    def test_schema_is_created(self, tmp_path: Path) -> None:
        InitService.init_store(tmp_path)
        engine = init_database(tmp_path)
        try:
            tables = set(inspect(engine).get_table_names())
        finally:
            engine.dispose()
        assert {"audiences", "scopes", "grant_types", "authorities", "roles"} <= tables
        assert {"accounts", "clients"} <= tables

    def test_cache_can_be_disabled(self, tmp_path: Path) -> None:
        InitService.init_store(tmp_path, cache_enabled=False)
        data = tomllib.loads((tmp_path / "iamctl.toml").read_text(encoding="utf-8"))
        assert data["cache"]["enabled"] is False

    def test_existing_config_conflicts(self, tmp_path: Path) -> None:
        (tmp_path / "iamctl.toml").write_text("# keep me\n", encoding="utf-8")
        result = InitService.init_store(tmp_path)
        assert result.has_code("SYS-0003")
        assert result.status == 409
        assert (tmp_path / "iamctl.toml").read_text(encoding="utf-8") == "# keep me\n"

    def test_force_overwrites(self, tmp_path: Path) -> None:
        (tmp_path / "iamctl.toml").write_text("# old\n", encoding="utf-8")
        assert InitService.init_store(tmp_path, force=True).ok
        assert "[security]" in (tmp_path / "iamctl.toml").read_text(encoding="utf-8")

    def test_creates_missing_directory(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "root"
        assert InitService.init_store(target).ok
        assert (target / "iamctl.toml").is_file()
