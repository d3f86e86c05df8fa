"""
External command execution.

Two kinds of command exist: inspections (bucket and identity probes)
always run, with their output discarded; mutations (archiver, cipher,
transport, bucket creation, key generation) are only echoed in dry-run.

Pipelines are spawned stage by stage with ``subprocess.Popen`` and every
stage's exit status is captured, so a failure anywhere in the pipe is
reported, not just a failure of the last stage.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from .output import echo_command, format_command, format_pipeline, remark

logger = logging.getLogger("securesync.runner")

# Exit status recorded for a stage that could not be spawned
SPAWN_FAILED = 127


@dataclass
class StageResult:
    """Exit status of one pipeline stage."""

    argv: list[str]
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class PipelineResult:
    """Combined result of a pipeline run."""

    stages: list[StageResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """True if every stage exited 0 (always true for dry-runs)."""
        return all(s.ok for s in self.stages)

    @property
    def failed(self) -> list[StageResult]:
        """Stages that exited non-zero."""
        return [s for s in self.stages if not s.ok]


class CommandRunner:
    """Runs or echoes external commands according to dry-run/verbose mode."""

    def __init__(
        self,
        dry_run: bool = False,
        verbose: bool = False,
        console: Optional[Console] = None,
    ):
        self.dry_run = dry_run
        self.verbose = verbose
        self.console = console

    def remark(self, message: str) -> None:
        """Print ``message`` in verbose mode only."""
        if self.verbose:
            remark(message, self.console)

    def _announce(self, text: str) -> None:
        if self.dry_run or self.verbose:
            echo_command(text, self.console)

    def inspect(self, argv: Sequence[str]) -> bool:
        """Run a read-only probe. Executes even in dry-run.

        Args:
            argv: Command and arguments.

        Returns:
            True if the command exited 0.
        """
        logger.debug("Inspecting: %s", format_command(argv))
        try:
            result = subprocess.run(
                list(argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.debug("Probe %s could not run: %s", argv[0], exc)
            return False
        return result.returncode == 0

    def run(
        self,
        argv: Sequence[str],
        cwd: Optional[Path] = None,
        quiet: bool = False,
    ) -> bool:
        """Run a mutating command, or echo it in dry-run.

        Args:
            argv: Command and arguments.
            cwd: Working directory for the command.
            quiet: Discard the command's stdout and stderr.

        Returns:
            True if the command exited 0 (or was only echoed).
        """
        self._announce(format_command(argv))
        if self.dry_run:
            return True

        sink = subprocess.DEVNULL if quiet else None
        try:
            result = subprocess.run(list(argv), cwd=cwd, stdout=sink, stderr=sink)
        except OSError as exc:
            logger.error("Failed to run %s: %s", argv[0], exc)
            return False
        logger.debug("%s exited %d", argv[0], result.returncode)
        return result.returncode == 0

    def pipeline(
        self,
        stages: Sequence[Sequence[str]],
        cwd: Optional[Path] = None,
    ) -> PipelineResult:
        """Run commands connected stdout-to-stdin, or echo them in dry-run.

        The first stage inherits stdin and the last inherits stdout; the
        stages run concurrently and backpressure comes from the OS pipes.

        Args:
            stages: Commands in pipe order.
            cwd: Working directory for every stage.

        Returns:
            PipelineResult with one StageResult per stage.
        """
        self._announce(format_pipeline(stages))
        if self.dry_run:
            return PipelineResult(dry_run=True)

        procs: list[subprocess.Popen] = []
        upstream = None
        for i, argv in enumerate(stages):
            last = i == len(stages) - 1
            try:
                proc = subprocess.Popen(
                    list(argv),
                    cwd=cwd,
                    stdin=upstream,
                    stdout=None if last else subprocess.PIPE,
                )
            except OSError as exc:
                logger.error("Failed to start %s: %s", argv[0], exc)
                proc = None
            if upstream is not None:
                # the downstream process owns the read end now
                upstream.close()
            if proc is None:
                # upstream stages see a broken pipe and exit
                break
            upstream = proc.stdout
            procs.append(proc)

        results = []
        for i, argv in enumerate(stages):
            code = procs[i].wait() if i < len(procs) else SPAWN_FAILED
            logger.debug("Stage %s exited %d", argv[0], code)
            results.append(StageResult(argv=list(argv), returncode=code))
        return PipelineResult(stages=results)
