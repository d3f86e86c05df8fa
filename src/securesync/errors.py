"""Error taxonomy for secure-sync.

Every error is terminal: the CLI prints the message to stderr and exits
with ``exit_code``. Nothing is retried.
"""

from __future__ import annotations


class SecureSyncError(Exception):
    """Base class for all fatal secure-sync conditions."""

    exit_code = 1
    show_usage = False


class UsageError(SecureSyncError):
    """Bad or missing arguments. The CLI prints full usage first."""

    show_usage = True


class HelpRequested(SecureSyncError):
    """``-h``/``--help`` appeared among the positional arguments."""

    exit_code = 0


class ConfigError(SecureSyncError):
    """The YAML settings file could not be read."""


class ToolMissing(SecureSyncError):
    """A required external binary is not on PATH."""


class CredentialError(SecureSyncError):
    """The AWS identity probe failed."""


class Aborted(SecureSyncError):
    """The operator declined a prompt."""


class PathNotFound(SecureSyncError):
    """An upload path is neither a file nor a directory."""


class RelativePathRequired(SecureSyncError):
    """Several upload paths were given and at least one is absolute."""


class ExtraArgument(SecureSyncError):
    """More positional arguments than the direction allows."""


class DirectoryCreateFailed(SecureSyncError):
    """The sync directory could not be created."""


class CsrGenerationFailed(SecureSyncError):
    """``openssl req`` failed during credential bootstrap."""


class CertSigningFailed(SecureSyncError):
    """``openssl x509`` failed during credential bootstrap."""


class BucketCreateFailed(SecureSyncError):
    """The destination bucket did not exist and could not be created."""


class TransferFailed(SecureSyncError):
    """At least one pipeline stage exited non-zero."""
