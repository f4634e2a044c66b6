"""Tests for IamSettings — unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from iamctl.config.models import SecurityConfig
from iamctl.config.settings import IamSettings


class TestIamSettingsDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = IamSettings.from_cli(data_root=tmp_path)
        assert settings.data_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.cache.enabled is True
        assert settings.security.hash_iterations == 600_000
        assert settings.database_url() is None

    def test_frozen(self, tmp_path: Path) -> None:
        settings = IamSettings.from_cli(data_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "iamctl.toml").write_text(
            "[cache]\nenabled = false\n[security]\nmin_password_length = 12\n"
        )
        settings = IamSettings.from_cli(data_root=tmp_path)
        assert settings.cache.enabled is False
        assert settings.security.min_password_length == 12
        assert settings.security.max_password_length == 255  # default preserved
        assert settings.config_path == tmp_path / "iamctl.toml"

    def test_data_root_from_config_location(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "iamctl.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings = IamSettings.from_cli()
        assert settings.data_root == tmp_path.resolve()

    def test_invalid_toml_is_a_click_error(self, tmp_path: Path) -> None:
        (tmp_path / "iamctl.toml").write_text("[cache\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            IamSettings.from_cli(data_root=tmp_path)

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.toml"
        custom.write_text("[security]\nhash_iterations = 5\n")
        settings = IamSettings.from_cli(config_path=str(custom), data_root=tmp_path)
        assert settings.security.hash_iterations == 5


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "iamctl.toml").write_text("[cache]\nenabled = true\n")
        monkeypatch.setenv("IAMCTL_CACHE__ENABLED", "false")
        settings = IamSettings.from_cli(data_root=tmp_path)
        assert settings.cache.enabled is False

    def test_cli_overrides_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("IAMCTL_JSON_OUTPUT", "false")
        settings = IamSettings.from_cli(data_root=tmp_path, json_output=True)
        assert settings.json_output is True

    def test_none_flags_do_not_mask_lower_sources(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("IAMCTL_QUIET", "true")
        settings = IamSettings.from_cli(data_root=tmp_path, quiet=None)
        assert settings.quiet is True

    def test_section_override(self, tmp_path: Path) -> None:
        settings = IamSettings.from_cli(
            data_root=tmp_path, security=SecurityConfig(hash_iterations=10)
        )
        assert settings.security.hash_iterations == 10


class TestDatabaseUrl:
    def test_relative_path_resolved_against_data_root(self, tmp_path: Path) -> None:
        (tmp_path / "iamctl.toml").write_text('[database]\npath = "db/iam.db"\n')
        settings = IamSettings.from_cli(data_root=tmp_path)
        assert settings.database_url() == f"sqlite:///{tmp_path / 'db' / 'iam.db'}"

    def test_url_wins_over_path(self, tmp_path: Path) -> None:
        (tmp_path / "iamctl.toml").write_text(
            '[database]\npath = "x.db"\nurl = "sqlite:///:memory:"\n'
        )
        settings = IamSettings.from_cli(data_root=tmp_path)
        assert settings.database_url() == "sqlite:///:memory:"
