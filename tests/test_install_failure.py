"""
Tests for install failure classification.
"""

import pytest

from powercli_install.core.detection.install_failure import (
    classify_failure,
    failure_from_receipt,
)
from powercli_install.core.models.receipt import Receipt
from powercli_install.core.models.strategy import ErrorKind


class TestClassifyFailure:
    @pytest.mark.parametrize(
        "stderr",
        [
            "Install-Module: Administrator rights are required to install modules in "
            "'C:\\Program Files\\WindowsPowerShell\\Modules'.",
            "Access to the path '/usr/local/share/powershell/Modules/VMware.PowerCLI' is denied.",
            "mkdir: permission denied",
        ],
    )
    def test_permission(self, stderr):
        kind, reason = classify_failure(stderr)
        assert kind == ErrorKind.PERMISSION
        assert "elevation" in reason

    @pytest.mark.parametrize(
        "stderr",
        [
            "Unable to resolve package source 'https://www.powershellgallery.com/api/v2'.",
            "No connection could be made because the target machine actively refused it.",
            "The SSL connection could not be established, see inner exception.",
        ],
    )
    def test_network(self, stderr):
        assert classify_failure(stderr)[0] == ErrorKind.NETWORK

    @pytest.mark.parametrize(
        "stderr",
        [
            "No match was found for the specified search criteria and module name 'VMware.PowerCLI'.",
            "Package 'VMware.PowerCLI' with version '99.0' could not be found in any registered repositories.",
            "Install-PSResource: The term 'Install-PSResource' is not recognized as a name of a cmdlet",
        ],
    )
    def test_not_found(self, stderr):
        assert classify_failure(stderr)[0] == ErrorKind.NOT_FOUND

    def test_permission_wins_over_not_found(self):
        stderr = "Access to the path '/opt/Modules' is denied. Package could not be found."
        assert classify_failure(stderr)[0] == ErrorKind.PERMISSION

    def test_unknown_keeps_first_line(self):
        kind, reason = classify_failure("Something odd happened\nat line 3")
        assert kind == ErrorKind.UNKNOWN
        assert reason == "Something odd happened"

    def test_empty(self):
        assert classify_failure("") == (ErrorKind.UNKNOWN, "command failed without error output")


class TestFailureFromReceipt:
    def test_step_prefix_and_detail(self):
        receipt = Receipt.failure(
            source="powershellget",
            operation="install",
            error="Unable to access the repository 'PSGallery'",
        )
        result = failure_from_receipt(receipt, step="install VMware.PowerCLI")

        assert not result.ok
        assert result.error.kind == ErrorKind.NETWORK
        assert result.error.message == "install VMware.PowerCLI: package gallery could not be reached"
        assert "PSGallery" in result.error.detail
        assert str(result.error).startswith("network: install VMware.PowerCLI")

    def test_timeout_is_network(self):
        receipt = Receipt.failure(
            source="psresourceget",
            operation="install",
            error="Command timed out after 900s",
            timed_out=True,
        )
        result = failure_from_receipt(receipt, step="install VMware.PowerCLI")
        assert result.error.kind == ErrorKind.NETWORK
        assert result.error.message.endswith("timed out")

    def test_mutated_flag_passes_through(self):
        receipt = Receipt.failure(source="powershellget", operation="save", error="oops")
        assert failure_from_receipt(receipt, step="save", mutated=True).mutated

    def test_detail_is_trimmed(self):
        receipt = Receipt.failure(source="s", operation="o", error="x" * 5000)
        assert len(failure_from_receipt(receipt, step="s").error.detail) == 2000
