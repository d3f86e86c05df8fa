"""
secure-sync data models.

Pydantic models for the parsed invocation and the settings struct that
is built once at startup and passed to every component.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, Field

from . import BUCKET_SCHEME
from .errors import ConfigError

logger = logging.getLogger("securesync.models")


class Direction(str, Enum):
    """Which way the data flows."""

    UPLOAD = "upload"
    DOWNLOAD = "download"


class Invocation(BaseModel):
    """One classified command line.

    Attributes:
        direction: Upload or download.
        bucket_path: Full ``s3://bucket/key`` destination (or source).
        local_paths: Items to archive, or the single extraction directory.
        tar_args: Pass-through arguments given after ``--``.
        sync_dir: Directory every pipeline stage runs in, when resolved.
        dry_run: Echo mutating commands instead of running them.
        verbose: Print remarks and echo commands before running them.
    """

    direction: Direction
    bucket_path: str
    local_paths: list[str] = Field(default_factory=list)
    tar_args: list[str] = Field(default_factory=list)
    sync_dir: Optional[Path] = None
    dry_run: bool = False
    verbose: bool = False

    @property
    def is_upload(self) -> bool:
        return self.direction == Direction.UPLOAD

    @property
    def bucket_name(self) -> str:
        """Bucket component of ``bucket_path``."""
        path = self.bucket_path
        if path.startswith(BUCKET_SCHEME):
            path = path[len(BUCKET_SCHEME):]
        return path.split("/", 1)[0]


# env var -> settings field
ENV_VARS = {
    "SECURE_SYNC_KEY": "key_file",
    "SECURE_SYNC_CRT": "cert_file",
    "SECURE_SYNC_IGNORE": "ignore_file",
}
CONFIG_ENV_VAR = "SECURE_SYNC_CONFIG"
CONFIG_KEYS = ("key_file", "cert_file", "ignore_file", "csr_file")


class SyncSettings(BaseModel):
    """Locations of the user-owned files secure-sync reads.

    Attributes:
        key_file: Private key used to decrypt downloads.
        cert_file: Certificate used to encrypt uploads.
        ignore_file: Glob patterns excluded from uploads, one per line.
        csr_file: Scratch signing request written during bootstrap.
        config_file: Optional YAML file overriding the defaults above.
    """

    key_file: Path = Field(default_factory=lambda: Path("~/.secure-sync.key").expanduser())
    cert_file: Path = Field(default_factory=lambda: Path("~/.secure-sync.pem").expanduser())
    ignore_file: Path = Field(default_factory=lambda: Path("~/.secure-sync.ignore").expanduser())
    csr_file: Path = Field(default_factory=lambda: Path("~/.secure-sync.csr").expanduser())
    config_file: Optional[Path] = None

    @classmethod
    def load(cls, environ: Optional[Mapping[str, str]] = None) -> "SyncSettings":
        """Build settings from the environment and the optional YAML file.

        Environment variables win over the YAML file, which wins over the
        defaults under the home directory.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            SyncSettings with every path expanded.

        Raises:
            ConfigError: The settings file exists but is not a YAML mapping.
        """
        env = os.environ if environ is None else environ
        config_file = Path(
            env.get(CONFIG_ENV_VAR) or "~/.secure-sync.yaml"
        ).expanduser()

        values: dict[str, Path] = {}
        for key, raw in _read_config_file(config_file).items():
            values[key] = Path(str(raw)).expanduser()
        for var, key in ENV_VARS.items():
            if env.get(var):
                values[key] = Path(env[var]).expanduser()

        settings = cls(config_file=config_file, **values)
        logger.debug(
            "Settings: key=%s cert=%s ignore=%s",
            settings.key_file, settings.cert_file, settings.ignore_file,
        )
        return settings


def _read_config_file(path: Path) -> dict[str, str]:
    """Read the known keys from a YAML settings file.

    Args:
        path: Settings file; a missing file yields no overrides.

    Returns:
        dict: Known keys present in the file.
    """
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read settings file '{path}': {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file '{path}' must contain a mapping")

    unknown = set(data) - set(CONFIG_KEYS)
    if unknown:
        logger.warning("Ignoring unknown settings in %s: %s", path, ", ".join(sorted(map(str, unknown))))
    return {k: data[k] for k in CONFIG_KEYS if data.get(k)}
