"""
The encrypted transfer pipelines.

Upload:   tar -czf - ... | openssl smime -encrypt ... CRT | aws s3 cp - DEST
Download: aws s3 cp SRC - | openssl smime -decrypt ... -inkey KEY | tar -xzf -

The archive is sealed to the certificate with AES-256 in a binary DER
envelope; only the matching private key can open it.
"""

from __future__ import annotations

import logging
from typing import Optional

from . import BUCKET_SCHEME
from .errors import BucketCreateFailed, TransferFailed
from .ignore import exclude_args, load_patterns
from .models import Invocation, SyncSettings
from .runner import CommandRunner, PipelineResult

logger = logging.getLogger("securesync.transfer")

CREATE_ARGS = ["-czf", "-"]
EXTRACT_ARGS = ["-xzf", "-"]


def _verbose_args(invocation: Invocation) -> list[str]:
    # only meaningful once a sync directory anchors the archive
    if invocation.verbose and invocation.sync_dir is not None:
        return ["-v"]
    return []


def upload_stages(
    invocation: Invocation,
    settings: SyncSettings,
    excludes: Optional[list[str]] = None,
) -> list[list[str]]:
    """Build the archiver, cipher and transport commands for an upload.

    Ignore patterns go ahead of the pass-through tar arguments; the two
    are not deduplicated.

    Args:
        invocation: Classified upload.
        settings: Provides the certificate location.
        excludes: Ignore patterns to exclude from the archive.

    Returns:
        list: Three argv lists in pipe order.
    """
    tar = (
        ["tar"]
        + CREATE_ARGS
        + _verbose_args(invocation)
        + exclude_args(excludes or [])
        + invocation.tar_args
        + invocation.local_paths
    )
    seal = [
        "openssl", "smime", "-encrypt",
        "-aes256", "-binary", "-outform", "DER",
        str(settings.cert_file),
    ]
    put = ["aws", "s3", "cp", "-", invocation.bucket_path]
    return [tar, seal, put]


def download_stages(invocation: Invocation, settings: SyncSettings) -> list[list[str]]:
    """Build the transport, cipher and archiver commands for a download.

    Args:
        invocation: Classified download.
        settings: Provides the private key location.

    Returns:
        list: Three argv lists in pipe order.
    """
    get = ["aws", "s3", "cp", invocation.bucket_path, "-"]
    unseal = [
        "openssl", "smime", "-decrypt",
        "-inform", "DER",
        "-inkey", str(settings.key_file),
    ]
    tar = ["tar"] + EXTRACT_ARGS + _verbose_args(invocation)
    return [get, unseal, tar]


def ensure_bucket(invocation: Invocation, runner: CommandRunner) -> None:
    """Create the destination bucket if it cannot be found.

    The existence probe runs even in dry-run; the creation does not.

    Raises:
        BucketCreateFailed: The bucket was missing and creation failed.
    """
    bucket = invocation.bucket_name
    if runner.inspect(["aws", "s3api", "get-bucket-location", "--bucket", bucket]):
        return
    runner.remark(f"Creating new bucket '{bucket}'")
    if not runner.run(["aws", "s3", "mb", f"{BUCKET_SCHEME}{bucket}"], quiet=True):
        raise BucketCreateFailed(f"Failed to create bucket '{BUCKET_SCHEME}{bucket}'")


def _log_failures(result: PipelineResult) -> None:
    for stage in result.failed:
        logger.warning("Stage '%s' exited %d", stage.argv[0], stage.returncode)


def upload(
    invocation: Invocation,
    settings: SyncSettings,
    runner: CommandRunner,
) -> PipelineResult:
    """Stream the local paths, encrypted, to the bucket path.

    Raises:
        BucketCreateFailed: See ensure_bucket.
        TransferFailed: Any pipeline stage failed.
    """
    excludes = load_patterns(settings.ignore_file)
    ensure_bucket(invocation, runner)

    runner.remark(
        f"Uploading to '{invocation.bucket_path}': {' '.join(invocation.local_paths)}"
    )
    result = runner.pipeline(
        upload_stages(invocation, settings, excludes),
        cwd=invocation.sync_dir,
    )
    if not result.ok:
        _log_failures(result)
        raise TransferFailed(
            f"Failed to send encrypted upload to '{invocation.bucket_path}'"
        )
    return result


def download(
    invocation: Invocation,
    settings: SyncSettings,
    runner: CommandRunner,
) -> PipelineResult:
    """Stream the bucket path down, decrypt it and extract into the sync dir.

    Raises:
        TransferFailed: Any pipeline stage failed.
    """
    runner.remark(f"Downloading '{invocation.bucket_path}' into '{invocation.sync_dir}'")
    result = runner.pipeline(
        download_stages(invocation, settings),
        cwd=invocation.sync_dir,
    )
    if not result.ok:
        _log_failures(result)
        raise TransferFailed(
            f"Failed to fetch encrypted data from '{invocation.bucket_path}'"
        )
    return result
