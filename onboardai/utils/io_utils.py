"""I/O utility functions for file and directory operations."""

# This module is part of onboardai.utils package

import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

WORK_SUBDIRS = ("audio", "frames", "segments")


def slugify(text: str) -> str:
    """
    Convert text to a filesystem-safe slug.

    Args:
        text: Input text to slugify.

    Returns:
        Filesystem-safe slug string.
    """
    # Convert to lowercase
    text = text.lower()
    # Replace spaces and special characters with hyphens
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s]+", "-", text)
    # Remove leading/trailing hyphens
    text = text.strip("-")
    # Limit length
    if len(text) > 100:
        text = text[:100].rstrip("-")
    return text


def create_run_work_dir(base_dir: str | Path) -> Path:
    """
    Create a run-unique working directory with audio/, frames/ and segments/.

    Args:
        base_dir: Parent directory for working directories (e.g., "tmp").

    Returns:
        Path to the created directory.
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    work_dir = Path(base_dir) / f"video_{timestamp}_{uuid.uuid4().hex[:8]}"
    for name in WORK_SUBDIRS:
        (work_dir / name).mkdir(parents=True, exist_ok=True)
    return work_dir


def remove_work_dir(work_dir: Path, logger: Any) -> int:
    """
    Delete a working directory file by file.

    Every deletion is attempted independently; failures are logged and
    never raised.

    Args:
        work_dir: Directory to remove.
        logger: Logger instance.

    Returns:
        Number of paths that could not be removed.
    """
    if not work_dir.exists():
        return 0

    failures = 0
    # Deepest paths first so directories are empty when we reach them
    for path in sorted(work_dir.rglob("*"), key=lambda p: len(p.parts), reverse=True):
        try:
            if path.is_dir():
                path.rmdir()
            else:
                path.unlink()
        except OSError as e:
            failures += 1
            logger.warning(f"Could not remove {path}: {e}")

    try:
        work_dir.rmdir()
    except OSError as e:
        failures += 1
        logger.warning(f"Could not remove working directory {work_dir}: {e}")

    return failures
