"""
PowerCLI module operations — post-install configuration and verification.

These act on the installed module itself, not on a package client.
"""

from __future__ import annotations

import json
import logging

from powercli_install.adapters.powershell.runner import PowerShellRunner, ps_quote
from powercli_install.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


def disable_ceip(runner: PowerShellRunner) -> Receipt:
    """Opt the current user out of the VMware Customer Experience Improvement Program."""
    receipt = runner.run(
        "Set-PowerCLIConfiguration -Scope User -ParticipateInCEIP $false "
        "-Confirm:$false | Out-Null",
        source="powercli",
        operation="disable-ceip",
    )
    if receipt.ok:
        logger.info("PowerCLI CEIP participation disabled")
    else:
        logger.warning("Could not disable PowerCLI CEIP: %s", receipt.error)
    return receipt


def installed_module(runner: PowerShellRunner, module: str, version: str | None = None) -> Receipt:
    """Report the newest visible version of ``module``, or exactly ``version`` when given.

    On success ``metadata`` holds ``version`` and ``location``; a module
    (or pinned version) that is not installed yields a failure receipt.
    """
    pinned = f"| Where-Object {{ $_.Version -eq {ps_quote(version)} }} " if version else ""
    script = (
        f"$m = Get-Module -ListAvailable -Name {ps_quote(module)} {pinned}"
        "| Sort-Object Version -Descending | Select-Object -First 1; "
        "if ($m) { [pscustomobject]@{ Version = $m.Version.ToString(); "
        "ModuleBase = $m.ModuleBase } | ConvertTo-Json -Compress }"
    )
    receipt = runner.run(script, source="powercli", operation="verify")
    if not receipt.ok:
        return receipt

    if not receipt.output:
        return Receipt.failure(
            source="powercli",
            operation="verify",
            error=f"{module} {version} is not installed" if version else f"{module} is not installed",
            duration_ms=receipt.duration_ms,
        )

    try:
        data = json.loads(receipt.output)
    except json.JSONDecodeError as e:
        return Receipt.failure(
            source="powercli",
            operation="verify",
            error=f"Unexpected Get-Module output: {e}",
            metadata={"stdout": receipt.output},
        )

    receipt.metadata["version"] = data.get("Version", "")
    receipt.metadata["location"] = data.get("ModuleBase", "")
    return receipt
