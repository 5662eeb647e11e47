"""
Tests for installer configuration — model validation, loading, and config check.
"""

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from powercli_install.core.config.loader import ConfigError, find_config_file, load_config
from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.use_cases.config_check import check_config, installer_warnings


def _write(tmp_path: Path, content: str, name: str = "powercli-install.yml") -> Path:
    path = tmp_path / name
    path.write_text(textwrap.dedent(content))
    return path


class TestInstallerConfig:
    def test_defaults(self):
        config = InstallerConfig()
        assert config.module == "VMware.PowerCLI"
        assert config.scope == "CurrentUser"
        assert config.strategies == ["psresourceget", "powershellget", "save-module"]
        assert not config.requires_elevation
        assert config.effective_state_dir() == Path.home() / ".powercli-install"

    def test_unknown_strategy(self):
        with pytest.raises(ValidationError, match="unknown strategies"):
            InstallerConfig(strategies=["chocolatey"])

    def test_empty_strategies(self):
        with pytest.raises(ValidationError):
            InstallerConfig(strategies=[])

    def test_repeated_strategy(self):
        with pytest.raises(ValidationError, match="repeat"):
            InstallerConfig(strategies=["powershellget", "powershellget"])

    def test_bad_scope(self):
        with pytest.raises(ValidationError):
            InstallerConfig(scope="Machine")

    def test_blank_module(self):
        with pytest.raises(ValidationError):
            InstallerConfig(module="  ")


class TestLoadConfig:
    def test_flat_file(self, tmp_path):
        path = _write(tmp_path, """\
            version: "13.3.0"
            scope: AllUsers
            trust_repository: true
            strategies: [powershellget, save-module]
        """)
        config = load_config(path)
        assert config.version == "13.3.0"
        assert config.scope == "AllUsers"
        assert config.trust_repository
        assert config.strategies == ["powershellget", "save-module"]

    def test_installer_section(self, tmp_path):
        path = _write(tmp_path, """\
            installer:
              disable_telemetry: true
              destination: /opt/Modules
        """)
        config = load_config(path)
        assert config.disable_telemetry
        assert config.destination == Path("/opt/Modules")

    def test_overrides_win_and_none_is_ignored(self, tmp_path):
        path = _write(tmp_path, "scope: AllUsers\nforce: true\n")
        config = load_config(path, {"scope": "CurrentUser", "force": None})
        assert config.scope == "CurrentUser"
        assert config.force

    def test_empty_file(self, tmp_path):
        assert load_config(_write(tmp_path, "")) == InstallerConfig()

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(_write(tmp_path, "scope: [unclosed\n"))

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "powercli-install.yml"
        path.write_bytes(b"scope: \xff\xfeAllUsers\n")
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    def test_invalid_values(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid installer configuration"):
            load_config(_write(tmp_path, "strategies: [winget]\n"))

    def test_auto_detect_walks_up(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "force: true\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == path

        monkeypatch.chdir(nested)
        assert load_config().force

    def test_dot_file_name(self, tmp_path):
        path = _write(tmp_path, "scope: AllUsers\n", name=".powercli-install.yml")
        assert find_config_file(tmp_path) == path
        assert load_config(path).scope == "AllUsers"

    def test_no_file_means_defaults(self, monkeypatch):
        monkeypatch.setattr("powercli_install.core.config.loader.find_config_file", lambda: None)
        assert load_config() == InstallerConfig()


class TestConfigCheck:
    def test_valid(self, tmp_path):
        result = check_config(_write(tmp_path, "scope: CurrentUser\n"))
        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_invalid(self, tmp_path):
        result = check_config(_write(tmp_path, "scope: Everyone\n"))
        assert not result.valid
        assert result.errors
        assert result.to_dict()["config"] is None

    def test_undecodable_file_is_an_error(self, tmp_path):
        path = tmp_path / "powercli-install.yml"
        path.write_bytes(b"\xff\xfe")
        result = check_config(path)
        assert not result.valid
        assert "Cannot read" in result.errors[0]

    def test_warnings(self, tmp_path):
        path = _write(tmp_path, """\
            scope: AllUsers
            destination: relative/Modules
            strategies: [psresourceget]
        """)
        result = check_config(path)
        assert result.valid
        text = " ".join(result.warnings)
        assert "save-module" in text
        assert "AllUsers" in text
        assert "relative" in text

    def test_no_file_warns(self, monkeypatch):
        monkeypatch.setattr(
            "powercli_install.core.use_cases.config_check.find_config_file", lambda: None,
        )
        monkeypatch.setattr(
            "powercli_install.core.config.loader.find_config_file", lambda: None,
        )
        result = check_config()
        assert result.valid
        assert any("No powercli-install.yml" in w for w in result.warnings)


class TestInstallerWarnings:
    def test_defaults_are_quiet(self):
        assert installer_warnings(InstallerConfig()) == []

    def test_save_module_not_last(self):
        config = InstallerConfig(strategies=["save-module", "psresourceget"])
        assert any("not last" in w for w in installer_warnings(config))

    def test_version_format(self):
        assert installer_warnings(InstallerConfig(version="13.3.0.24145081")) == []
        assert installer_warnings(InstallerConfig(version="1.0.0-preview1")) == []
        warnings = installer_warnings(InstallerConfig(version="latest"))
        assert any("'latest'" in w for w in warnings)

    def test_gallery_scheme(self):
        warnings = installer_warnings(InstallerConfig(gallery_url="ftp://gallery.local/"))
        assert any("not http(s)" in w for w in warnings)

    def test_staging_inside_destination(self, tmp_path):
        config = InstallerConfig(destination=tmp_path, staging_root=tmp_path / "stage")
        assert any("staging_root is inside destination" in w for w in installer_warnings(config))

        config = InstallerConfig(destination=tmp_path / "Modules", staging_root=tmp_path / "stage")
        assert installer_warnings(config) == []

    def test_short_timeout(self):
        warnings = installer_warnings(InstallerConfig(command_timeout=30))
        assert any("30s" in w for w in warnings)
