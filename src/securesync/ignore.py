"""Ignore-file loading: glob patterns that become ``tar --exclude`` flags."""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger("securesync.ignore")


def load_patterns(path: Path) -> list[str]:
    """Read glob patterns, one per line.

    Blank lines and ``#`` comments are skipped. A missing file means no
    exclusions.

    Args:
        path: The ignore file.

    Returns:
        list[str]: Patterns in file order.

    Raises:
        ConfigError: The file exists but cannot be read as UTF-8 text.
    """
    if not path.is_file():
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read ignore file '{path}': {exc}") from exc

    patterns = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    logger.debug("Loaded %d ignore patterns from %s", len(patterns), path)
    return patterns


def exclude_args(patterns: list[str]) -> list[str]:
    """Translate patterns one-for-one into tar exclusion flags."""
    args: list[str] = []
    for pattern in patterns:
        args.extend(["--exclude", pattern])
    return args
