"""Tests for config file discovery and loading."""

from pathlib import Path

import pytest

from iamctl.config.discovery import find_config, load_config, read_config_data


class TestFindConfig:
    def test_finds_in_start_directory(self, tmp_path: Path) -> None:
        (tmp_path / "iamctl.toml").write_text("")
        assert find_config(tmp_path) == (tmp_path / "iamctl.toml").resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        (tmp_path / "iamctl.toml").write_text("")
        nested = tmp_path / "a" / "b" / "c"
        nested.mkdir(parents=True)
        assert find_config(nested) == (tmp_path / "iamctl.toml").resolve()

    def test_pyproject_tool_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.iamctl.cache]\nenabled = false\n")
        assert find_config(tmp_path) == (tmp_path / "pyproject.toml").resolve()

    def test_pyproject_without_table_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        found = find_config(tmp_path)
        assert found is None or found.parent != tmp_path.resolve()

    def test_iamctl_toml_preferred_in_same_directory(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.iamctl]\n")
        (tmp_path / "iamctl.toml").write_text("")
        assert find_config(tmp_path) == (tmp_path / "iamctl.toml").resolve()

    def test_env_var_bypasses_walk(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "elsewhere.toml"
        custom.write_text("")
        monkeypatch.setenv("IAMCTL_CONFIG", str(custom))
        assert find_config(tmp_path / "nowhere") == custom

    def test_env_var_pointing_nowhere(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("IAMCTL_CONFIG", str(tmp_path / "missing.toml"))
        assert find_config(tmp_path) is None


class TestReadConfig:
    def test_reads_tool_table_from_pyproject(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[project]\nname = "x"\n[tool.iamctl.security]\nhash_iterations = 9\n')
        assert read_config_data(pyproject) == {"security": {"hash_iterations": 9}}

    def test_load_config_defaults_without_file(self, tmp_path: Path) -> None:
        config = load_config(cwd=tmp_path)
        assert config.cache.enabled is True

    def test_load_config_ignores_unknown_sections(self, tmp_path: Path) -> None:
        path = tmp_path / "iamctl.toml"
        path.write_text("[cache]\nenabled = false\n[unrelated]\nx = 1\n")
        config = load_config(path)
        assert config.cache.enabled is False
