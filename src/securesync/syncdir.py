"""Sync-directory preparation: the directory every pipeline stage runs in."""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import Aborted, DirectoryCreateFailed
from .prompts import Prompter
from .runner import CommandRunner

logger = logging.getLogger("securesync.syncdir")


def prepare_sync_dir(
    sync_dir: Path,
    runner: CommandRunner,
    prompter: Prompter,
) -> Path:
    """Make sure ``sync_dir`` exists, creating it on consent.

    In dry-run the creation is only echoed.

    Args:
        sync_dir: Absolute directory to extract into or archive from.
        runner: Provides dry-run/verbose mode and remarks.
        prompter: Asks before creating the directory.

    Returns:
        Path: The directory to use as the pipeline's working directory.

    Raises:
        Aborted: The operator declined to create the directory.
        DirectoryCreateFailed: The directory could not be created.
    """
    if not sync_dir.is_dir():
        if not prompter.confirm(f"Create new directory '{sync_dir}'?"):
            raise Aborted("Cowardly refusing to go on")
        if runner.dry_run:
            runner.run(["mkdir", "-p", str(sync_dir)])
        else:
            runner.remark(f"Creating directory '{sync_dir}'")
            try:
                sync_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.debug("mkdir %s failed: %s", sync_dir, exc)
                raise DirectoryCreateFailed(f"Failed to create '{sync_dir}'") from exc

    if runner.dry_run:
        runner.remark("DRY RUN")
    logger.debug("Sync directory: %s", sync_dir)
    return sync_dir
