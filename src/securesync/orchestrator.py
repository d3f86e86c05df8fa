"""
Top-level orchestration of one secure-sync invocation.

Sequential by construction: tools, credentials, optional key bootstrap,
optional sync-directory preparation, then exactly one pipeline.
"""

from __future__ import annotations

import logging

from .credentials import bootstrap_credentials
from .models import Invocation, SyncSettings
from .preflight import check_credentials, require_tools
from .prompts import Prompter
from .runner import CommandRunner, PipelineResult
from .syncdir import prepare_sync_dir
from .transfer import download, upload

logger = logging.getLogger("securesync.orchestrator")


def execute(
    invocation: Invocation,
    settings: SyncSettings,
    runner: CommandRunner,
    prompter: Prompter,
) -> PipelineResult:
    """Run one upload or download end to end.

    Args:
        invocation: Classified command line.
        settings: Key, certificate and ignore-file locations.
        runner: Runs or echoes external commands.
        prompter: Asks the operator for consent.

    Returns:
        PipelineResult of the transfer.

    Raises:
        SecureSyncError: Any fatal condition; nothing is retried.
    """
    logger.debug("Executing %s: %s", invocation.direction.value, invocation.bucket_path)
    require_tools()
    check_credentials(runner)
    bootstrap_credentials(settings, runner, prompter)

    if invocation.sync_dir is not None:
        prepare_sync_dir(invocation.sync_dir, runner, prompter)

    if invocation.is_upload:
        return upload(invocation, settings, runner)
    return download(invocation, settings, runner)
