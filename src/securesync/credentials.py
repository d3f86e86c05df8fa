"""
Credential bootstrap: a self-signed key/certificate pair for S/MIME.

secure-sync is not a CA. It only needs an asymmetric pair so uploads can
be sealed to the certificate and opened with the private key. When
either file is missing the operator is offered a fresh pair:

    openssl req -newkey rsa:2048 -keyout KEY -out CSR -subj ...
    openssl x509 -req -in CSR -signkey KEY -out CRT

The whole sequence runs under umask 077, so the key is created owner-only.
A failed bootstrap leaves nothing behind.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rich.markup import escape
from rich.panel import Panel

from .errors import Aborted, CertSigningFailed, CsrGenerationFailed
from .models import SyncSettings
from .output import console
from .prompts import Prompter
from .runner import CommandRunner

logger = logging.getLogger("securesync.credentials")

KEY_SPEC = "rsa:2048"
PLACEHOLDER_SUBJECT = "/C=../ST=./L=./O=./OU=./CN=."
SECURE_UMASK = 0o077


def credentials_present(settings: SyncSettings) -> bool:
    """True if both the key and the certificate exist."""
    return settings.key_file.is_file() and settings.cert_file.is_file()


@contextmanager
def restrictive_umask(mask: int = SECURE_UMASK) -> Iterator[None]:
    """Temporarily tighten the process file-creation mask."""
    previous = os.umask(mask)
    try:
        yield
    finally:
        os.umask(previous)


def csr_command(settings: SyncSettings, passphrase: bool) -> list[str]:
    """Build the ``openssl req`` command that creates the key and CSR."""
    argv = [
        "openssl", "req",
        "-newkey", KEY_SPEC,
        "-keyout", str(settings.key_file),
        "-out", str(settings.csr_file),
        "-subj", PLACEHOLDER_SUBJECT,
    ]
    if not passphrase:
        argv.append("-nodes")
    return argv


def sign_command(settings: SyncSettings) -> list[str]:
    """Build the ``openssl x509`` command that self-signs the CSR."""
    return [
        "openssl", "x509",
        "-req",
        "-in", str(settings.csr_file),
        "-signkey", str(settings.key_file),
        "-out", str(settings.cert_file),
    ]


def _remove(*paths: Path) -> None:
    for path in paths:
        try:
            path.unlink()
            logger.debug("Removed partial credential file %s", path)
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.warning("Could not remove %s: %s", path, exc)


def bootstrap_credentials(
    settings: SyncSettings,
    runner: CommandRunner,
    prompter: Prompter,
) -> bool:
    """Ensure a usable key/certificate pair exists, creating one on consent.

    Args:
        settings: Where the key, certificate and CSR live.
        runner: Executes (or, in dry-run, echoes) the openssl commands.
        prompter: Asks for consent and for the passphrase choice.

    Returns:
        bool: True if a new pair was generated, False if one already existed.

    Raises:
        Aborted: The operator declined to create the pair.
        CsrGenerationFailed: ``openssl req`` failed.
        CertSigningFailed: ``openssl x509`` failed.
    """
    if credentials_present(settings):
        return False

    with restrictive_umask():
        if not prompter.confirm(
            f"Key file {settings.cert_file} does not exist... create it?"
        ):
            raise Aborted("Aborting; no valid key file")

        cert_existed = settings.cert_file.exists()
        cleanup = [settings.csr_file, settings.key_file]
        if not cert_existed:
            cleanup.append(settings.cert_file)

        runner.remark(f"Creating new secure sync key file: '{settings.key_file}'")
        passphrase = prompter.confirm(
            "Do you want to require a passphrase to encrypt/decrypt data?"
        )
        if not runner.run(csr_command(settings, passphrase)):
            _remove(*cleanup)
            raise CsrGenerationFailed("Failed to generate OpenSSL CSR")

        runner.remark(f"Creating new secure sync certificate: '{settings.cert_file}'")
        if not runner.run(sign_command(settings)):
            _remove(*cleanup)
            raise CertSigningFailed("Failed to generate OpenSSL certificate")

        if runner.dry_run:
            return True
        _remove(settings.csr_file)

    logger.info("Generated key %s and certificate %s", settings.key_file, settings.cert_file)
    (runner.console or console).print(Panel(
        "[bold green]Success![/] [bold white]Please ensure you don't lose (or forget the "
        "location of) these files.\n"
        "You'll need the certificate to upload and the key to download. Nothing else\n"
        "can decrypt your data. If generated with a passphrase, you'll need that\n"
        "every time you sync files.[/]\n\n"
        f"Key File: [bold yellow]{escape(str(settings.key_file))}[/]\n"
        f"Certificate File: [bold yellow]{escape(str(settings.cert_file))}[/]",
        title="secure-sync credentials",
        border_style="green",
    ))
    return True
