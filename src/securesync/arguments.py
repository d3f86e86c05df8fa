"""
Argument classification: turn raw tokens into an Invocation.

Direction is decided by the first positional token. A token carrying
the ``s3://`` scheme means download (``DEST PATH``); anything else means
upload (``PATH... DEST``). Everything after ``--`` is passed to tar
verbatim, which is only allowed on uploads.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Sequence

from . import BUCKET_SCHEME
from .errors import (
    ExtraArgument,
    HelpRequested,
    PathNotFound,
    RelativePathRequired,
    UsageError,
)
from .models import Direction, Invocation

logger = logging.getLogger("securesync.arguments")

SEPARATOR = "--"
DRY_RUN_FLAGS = ("-d", "--dry-run")
VERBOSE_FLAGS = ("-v", "--verbose")
HELP_FLAGS = ("-h", "--help")


def is_bucket_path(arg: str) -> bool:
    """True if ``arg`` names an object-store location."""
    return arg.startswith(BUCKET_SCHEME)


def is_absolute(arg: str) -> bool:
    """True for ``/...`` and ``~...`` paths."""
    return arg.startswith(("/", "~"))


def classify(
    args: Sequence[str],
    dry_run: bool = False,
    verbose: bool = False,
    cwd: Optional[Path] = None,
) -> Invocation:
    """Classify a raw argument vector.

    Args:
        args: Tokens after the program name (flags may be mixed in).
        dry_run: Dry-run already requested by an earlier flag.
        verbose: Verbose already requested by an earlier flag.
        cwd: Directory relative paths are checked against. Defaults to
            the process working directory.

    Returns:
        Invocation: The parsed intent.

    Raises:
        UsageError: Missing direction, destination or local paths, or a
            misplaced ``--``.
        HelpRequested: ``-h``/``--help`` was given.
        PathNotFound: An upload path does not exist.
        RelativePathRequired: Several upload paths, one of them absolute.
        ExtraArgument: A second destination or a second download directory.
    """
    base = Path(cwd) if cwd is not None else Path.cwd()

    direction: Optional[Direction] = None
    bucket_path = ""
    paths: list[str] = []
    tar_args: list[str] = []
    sync_dir: Optional[Path] = None
    seen_split = False
    absolute_seen = False

    for arg in args:
        if seen_split:
            tar_args.append(arg)
            continue
        if arg in DRY_RUN_FLAGS:
            dry_run = True
            continue
        if arg in VERBOSE_FLAGS:
            verbose = True
            continue
        if arg in HELP_FLAGS:
            raise HelpRequested("help requested")
        if arg == SEPARATOR:
            if direction != Direction.UPLOAD:
                raise UsageError("Extra args to 'tar' only allowed on uploads")
            seen_split = True
            continue

        if direction is None:
            direction = Direction.DOWNLOAD if is_bucket_path(arg) else Direction.UPLOAD

        if direction == Direction.UPLOAD:
            if is_bucket_path(arg):
                if bucket_path:
                    raise ExtraArgument(f"The bucket path '{bucket_path}' was already given")
                bucket_path = arg
                continue

            local = base / Path(arg).expanduser()
            if not (local.is_file() or local.is_dir()):
                raise PathNotFound(f"The path '{arg}' is not a file or directory")

            if is_absolute(arg):
                absolute_seen = True
                resolved = Path(os.path.abspath(Path(arg).expanduser()))
                sync_dir = resolved.parent.resolve()
                # "/" has no base name; archive its contents instead
                paths.append(resolved.name or ".")
            else:
                paths.append(arg)

            if absolute_seen and len(paths) > 1:
                raise RelativePathRequired("Paths must be relative to upload multiple items")
        else:
            if not bucket_path:
                bucket_path = arg
            else:
                if paths:
                    raise ExtraArgument("Only one download path can be given")
                paths.append(arg)
                sync_dir = Path(os.path.abspath(base / Path(arg).expanduser()))

    if direction is None:
        raise UsageError("No arguments given")
    if not bucket_path:
        raise UsageError("A bucket name (+path) is required")
    if not paths:
        if direction == Direction.UPLOAD:
            raise UsageError("No files or folders listed for upload")
        raise UsageError("No folder given to download to")

    invocation = Invocation(
        direction=direction,
        bucket_path=bucket_path,
        local_paths=paths,
        tar_args=tar_args,
        sync_dir=sync_dir,
        dry_run=dry_run,
        verbose=verbose,
    )
    logger.debug(
        "Classified %s %s <-> %s (sync dir: %s)",
        invocation.direction.value, invocation.bucket_path, paths, sync_dir,
    )
    return invocation
