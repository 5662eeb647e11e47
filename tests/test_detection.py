"""
Tests for environment detection — probe parsing, validation, reachability.
"""

import json
import urllib.error
from pathlib import Path
from unittest.mock import MagicMock, patch

from powercli_install.core.detection.environment import (
    is_writable_dir,
    probe_environment,
    validate_environment,
)
from powercli_install.core.detection.network import check_gallery_reachable
from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import POWERSHELLGET, PSRESOURCEGET, EnvironmentProbe
from powercli_install.core.models.receipt import Receipt

_REACHABLE = "powercli_install.core.detection.environment.check_gallery_reachable"


class ProbeRunner:
    def __init__(self, receipt: Receipt | None, executable: str | None = "/usr/bin/pwsh"):
        self.executable = executable
        self._receipt = receipt
        self.calls = 0

    def is_available(self):
        return self.executable is not None

    def run(self, script, *, source="pwsh", operation="script", timeout=None):
        self.calls += 1
        return self._receipt


def _probe_output(tmp_path: Path, **overrides) -> Receipt:
    data = {
        "PSVersion": "7.4.1",
        "Clients": ["Microsoft.PowerShell.PSResourceGet", "PowerShellGet"],
        "ModulePaths": [str(tmp_path / "Modules"), "/nonexistent-root-only/Modules"],
        "IsAdmin": False,
        "Installed": "13.2.1",
    }
    data.update(overrides)
    return Receipt.success(source="probe", operation="environment", output=json.dumps(data))


class TestProbeEnvironment:
    def test_parses_probe(self, tmp_path):
        runner = ProbeRunner(_probe_output(tmp_path))
        with patch(_REACHABLE, return_value={"reachable": True}):
            env = probe_environment(InstallerConfig(), runner)

        assert env.powershell == "/usr/bin/pwsh"
        assert env.powershell_version == "7.4.1"
        assert env.package_managers == frozenset({PSRESOURCEGET, POWERSHELLGET})
        assert env.network_reachable
        assert not env.is_elevated
        # ConvertTo-Json collapses a single version to a scalar
        assert env.installed_versions == ("13.2.1",)
        assert env.module_paths[0].path == tmp_path / "Modules"
        assert env.module_paths[0].writable

    def test_single_client_scalar(self, tmp_path):
        runner = ProbeRunner(_probe_output(tmp_path, Clients="PowerShellGet", Installed=None))
        with patch(_REACHABLE, return_value={"reachable": False}):
            env = probe_environment(InstallerConfig(), runner)

        assert env.package_managers == frozenset({POWERSHELLGET})
        assert env.installed_versions == ()
        assert not env.network_reachable

    def test_no_powershell(self):
        runner = ProbeRunner(None, executable=None)
        with patch(_REACHABLE, return_value={"reachable": True}):
            env = probe_environment(InstallerConfig(), runner)

        assert not env.has_powershell
        assert env.package_managers == frozenset()
        assert runner.calls == 0

    def test_probe_script_failure(self):
        runner = ProbeRunner(Receipt.failure(source="probe", operation="environment", error="boom"))
        env = probe_environment(InstallerConfig(), runner, check_network=False)
        assert env.has_powershell
        assert env.powershell_version is None

    def test_invalid_json(self):
        runner = ProbeRunner(Receipt.success(source="probe", operation="environment", output="{not json"))
        env = probe_environment(InstallerConfig(), runner, check_network=False)
        assert env.module_paths == ()

    def test_skip_network_check(self, tmp_path):
        runner = ProbeRunner(_probe_output(tmp_path))
        with patch(_REACHABLE) as reach:
            env = probe_environment(InstallerConfig(), runner, check_network=False)
        reach.assert_not_called()
        assert not env.network_reachable


class TestEnvironmentProbe:
    def test_is_installed(self):
        env = EnvironmentProbe(installed_versions=("12.7.0", "13.3.0"))
        assert env.is_installed()
        assert env.is_installed("13.3.0")
        assert not env.is_installed("13.4.0")
        assert not EnvironmentProbe().is_installed()

    def test_to_dict_sorts_clients(self):
        env = EnvironmentProbe(package_managers=frozenset({PSRESOURCEGET, POWERSHELLGET}))
        assert env.to_dict()["package_managers"] == ["powershellget", "psresourceget"]


class TestValidateEnvironment:
    def test_ok(self):
        env = EnvironmentProbe(powershell="pwsh", powershell_version="7.4.1")
        assert validate_environment(env) == []

    def test_missing_powershell(self):
        problems = validate_environment(EnvironmentProbe())
        assert problems == ["PowerShell (pwsh) is not installed or not on PATH"]

    def test_too_old(self):
        env = EnvironmentProbe(powershell="powershell", powershell_version="5.0.10586")
        assert "too old" in validate_environment(env)[0]

    def test_windows_powershell_51_is_fine(self):
        env = EnvironmentProbe(powershell="powershell", powershell_version="5.1.19041.4170")
        assert validate_environment(env) == []


class TestWritableDir:
    def test_existing(self, tmp_path):
        assert is_writable_dir(tmp_path)

    def test_creatable(self, tmp_path):
        assert is_writable_dir(tmp_path / "a" / "b")

    def test_file_is_not_a_dir(self, tmp_path):
        f = tmp_path / "file"
        f.write_text("x")
        assert not is_writable_dir(f)


class TestGalleryReachable:
    def test_reachable(self):
        resp = MagicMock()
        resp.getcode.return_value = 200
        resp.__enter__.return_value = resp
        with patch("powercli_install.core.detection.network.urllib.request.urlopen", return_value=resp):
            result = check_gallery_reachable("https://example.test/api/v2/")
        assert result["reachable"]
        assert result["status"] == 200

    def test_unreachable(self):
        with patch(
            "powercli_install.core.detection.network.urllib.request.urlopen",
            side_effect=urllib.error.URLError("Name or service not known"),
        ):
            result = check_gallery_reachable("https://example.test/api/v2/", timeout=1)
        assert not result["reachable"]
        assert "Name or service not known" in result["error"]
