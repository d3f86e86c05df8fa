"""
Preflight checks: the external toolchain and the AWS credentials.

Checks for:
  - tar      (archiver)
  - openssl  (S/MIME envelope encryption)
  - aws      (S3 transport)

Each check returns a ToolCheck with:
  - Whether the tool is installed
  - Platform-specific install hint

The credential probe is deliberately conservative: it asks AWS who we
are, independent of the operation requested, and bails out if that
fails.
"""

from __future__ import annotations

import logging
import platform
import shutil
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import CredentialError, ToolMissing
from .runner import CommandRunner

logger = logging.getLogger("securesync.preflight")

IDENTITY_PROBE = ["aws", "iam", "get-user"]


class ToolStatus(str, Enum):
    """Status of a system tool."""
    INSTALLED = "installed"
    MISSING = "missing"


@dataclass
class ToolCheck:
    """Result of checking a single system tool."""

    name: str
    binary: str
    status: ToolStatus
    install_note: str = ""

    @property
    def installed(self) -> bool:
        """Whether the tool is installed."""
        return self.status == ToolStatus.INSTALLED


@dataclass
class PreflightResult:
    """Combined result of all tool checks."""

    tar: ToolCheck
    openssl: ToolCheck
    aws: ToolCheck

    @property
    def checks(self) -> list[ToolCheck]:
        return [self.tar, self.openssl, self.aws]

    @property
    def missing(self) -> list[ToolCheck]:
        """Tools that are not installed."""
        return [c for c in self.checks if not c.installed]


# name -> binary
TOOLS = {
    "tar": "tar",
    "openssl": "openssl",
    "aws": "aws",
}


def _system() -> str:
    """Canonical platform name."""
    return platform.system()


def _install_note(tool: str) -> str:
    """Platform-specific hint for installing ``tool``."""
    if tool == "aws":
        return "Please install the AWS CLI (https://aws.amazon.com/cli/)"
    if tool == "openssl":
        if _system() == "Darwin":
            return "Please install OpenSSL (brew install openssl)"
        return "Please install OpenSSL"
    if _system() == "Darwin":
        return "Please install tar (brew install gnu-tar)"
    return "Please install tar"


def check_tool(name: str) -> ToolCheck:
    """Check whether one of the required tools is on PATH.

    Args:
        name: Key in TOOLS.

    Returns:
        ToolCheck for the tool.
    """
    binary = TOOLS[name]
    if shutil.which(binary):
        return ToolCheck(
            name=name,
            binary=binary,
            status=ToolStatus.INSTALLED,
        )
    return ToolCheck(
        name=name,
        binary=binary,
        status=ToolStatus.MISSING,
        install_note=_install_note(name),
    )


def run_preflight() -> PreflightResult:
    """Check every required tool.

    Returns:
        PreflightResult with all tool checks.
    """
    result = PreflightResult(
        tar=check_tool("tar"),
        openssl=check_tool("openssl"),
        aws=check_tool("aws"),
    )
    for check in result.checks:
        logger.debug("%s: %s", check.name, check.status.value)
    return result


def require_tools(result: Optional[PreflightResult] = None) -> PreflightResult:
    """Fail fast when a required tool is missing.

    Args:
        result: Previously computed checks; runs them if omitted.

    Returns:
        The PreflightResult, all tools installed.

    Raises:
        ToolMissing: Naming the first missing tool.
    """
    result = result or run_preflight()
    if result.missing:
        raise ToolMissing(result.missing[0].install_note)
    return result


def check_credentials(runner: CommandRunner) -> None:
    """Confirm the AWS credentials can identify the caller.

    Runs even in dry-run so the operator sees an accurate diagnosis.

    Raises:
        CredentialError: The identity probe failed.
    """
    if not runner.inspect(IDENTITY_PROBE):
        raise CredentialError("Failed to fetch user information; check perms and creds")
