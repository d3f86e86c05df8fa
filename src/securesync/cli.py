"""
secure-sync command line.

Entry point: securesync.cli:main

Flags before the first positional argument are parsed by click. From
the first positional on, every token (``--`` included) reaches the
classifier untouched, which is how tar pass-through arguments survive.
click drops a ``--`` that precedes every positional, so UsageCommand
remembers it and main hands it back to the classifier.
"""

from __future__ import annotations

import logging
from typing import Optional

import click

from . import __version__
from .arguments import SEPARATOR, VERBOSE_FLAGS, classify
from .errors import HelpRequested, SecureSyncError
from .models import Direction, SyncSettings
from .orchestrator import execute
from .output import console, error, success
from .prompts import ClickPrompter, Prompter
from .runner import CommandRunner

PROG_NAME = "secure-sync"
LEADING_SEPARATOR = "securesync.leading_separator"

USAGE = f"""\
Usage: {PROG_NAME} [ARGUMENTS] PATH [PATH...] -- [...TAR_ARGS]

Uploads or downloads an encrypted gzipped tarball. When uploading, all paths
must be relative unless there is just one.

Uploads:    PATH [...PATH] s3://(PATH/)?NAME  # multiple local paths may be used
Downloads:  s3://(PATH/)?NAME PATH  # PATH = dir to download and extract files to

Passing '--' causes all remaining arguments to be passed to "tar" on uploads.

ARGUMENTS:

  -d|--dry-run          Run without making any changes
  -h|--help             This information
  -v|--verbose          Print debugging information to stderr
  --version             Show the version and exit
  --                    Remaining args are passed to "tar"

ENV VARS:

  SECURE_SYNC_KEY       Location of key file used to decrypt downloads
                        (default: $HOME/.secure-sync.key)
  SECURE_SYNC_CRT       Location of certificate file used to encrypt uploads
                        (default: $HOME/.secure-sync.pem)
  SECURE_SYNC_IGNORE    Location of file containing patterns (one-per-line) to
                        ignore on uploads (default: $HOME/.secure-sync.ignore)
  SECURE_SYNC_CONFIG    YAML file that may set key_file, cert_file,
                        ignore_file and csr_file
                        (default: $HOME/.secure-sync.yaml)

EXAMPLES:

# we'll need these to encrypt/decrypt data (paths shown are defaults)
# if they don't exist we'll be prompted to create them
$ export SECURE_SYNC_KEY=~/.secure-sync.key
$ export SECURE_SYNC_CRT=~/.secure-sync.pem

# upload just one dir
$ {PROG_NAME} ~/code s3://backups/code-apr-5-2020.ssdata

# upload a few files/directories
$ {PROG_NAME} pictures/ scripts/ s3://backups/data-apr-5-2020.ssdata -- --exclude '.*.sw?'

# download and extract saved data
$ {PROG_NAME} s3://backups/code-apr-5-2020.ssdata ~/code
"""


class UsageCommand(click.Command):
    """Click command whose help is the hand-formatted usage text."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        formatter.write(USAGE)

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        for arg in args:
            if arg == SEPARATOR:
                ctx.meta[LEADING_SEPARATOR] = True
                break
            if arg == "-" or not arg.startswith("-"):
                break
        return super().parse_args(ctx, args)


def _configure_logging(verbose: bool) -> None:
    """Set up logging once, before any module logs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


def run(
    args: tuple[str, ...],
    dry_run: bool = False,
    verbose: bool = False,
    prompter: Optional[Prompter] = None,
    settings: Optional[SyncSettings] = None,
) -> None:
    """Classify ``args`` and execute the transfer.

    Raises:
        SecureSyncError: Any fatal condition.
    """
    flags = args[:args.index(SEPARATOR)] if SEPARATOR in args else args
    _configure_logging(verbose or any(arg in VERBOSE_FLAGS for arg in flags))
    invocation = classify(args, dry_run=dry_run, verbose=verbose)

    runner = CommandRunner(
        dry_run=invocation.dry_run,
        verbose=invocation.verbose,
        console=console,
    )
    execute(
        invocation,
        settings or SyncSettings.load(),
        runner,
        prompter or ClickPrompter(),
    )

    if invocation.dry_run:
        success("Dry run complete; nothing was changed", console)
    elif invocation.direction == Direction.UPLOAD:
        success(f"Uploaded to {invocation.bucket_path}", console)
    else:
        success(f"Downloaded {invocation.bucket_path} to {invocation.sync_dir}", console)


@click.command(
    cls=UsageCommand,
    context_settings={
        "help_option_names": ["-h", "--help"],
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    },
)
@click.version_option(version=__version__, prog_name=PROG_NAME)
@click.option("--dry-run", "-d", is_flag=True, help="Run without making any changes.")
@click.option("--verbose", "-v", is_flag=True, help="Print debugging information.")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def main(ctx: click.Context, dry_run: bool, verbose: bool, args: tuple[str, ...]):
    """Upload or download an encrypted gzipped tarball."""
    if ctx.meta.get(LEADING_SEPARATOR):
        args = (SEPARATOR,) + args
    try:
        run(args, dry_run=dry_run, verbose=verbose)
    except HelpRequested:
        click.echo(ctx.get_help())
    except SecureSyncError as exc:
        if exc.show_usage:
            click.echo(ctx.get_help(), err=True)
        error(str(exc), console)
        raise SystemExit(exc.exit_code)
