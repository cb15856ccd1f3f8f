"""Loguru configuration shared by the API, the CLI and the services.

Every record carries a ``run_id`` (the per-run working directory name, or
``-`` outside a render) so interleaved renders can be told apart in one log.
"""

import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

DEFAULT_CONTEXT = {"run_id": "-"}

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[run_id]}</magenta> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[run_id]} | {name}:{function}:{line} | {message} | {extra}"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str | Path] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Install the console sink and, if log_file is set, a rotating zipped file sink.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        log_file: Optional log file path
        rotation: Size at which the file sink rotates
        retention: How long rotated files are kept
    """
    logger.remove()
    logger.configure(extra=DEFAULT_CONTEXT)

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level.upper(), colorize=True)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            format=FILE_FORMAT,
            level=log_level.upper(),
            rotation=rotation,
            retention=retention,
            compression="zip",
            enqueue=True,
        )


def get_logger(name: str, **context: Any) -> Any:
    """
    Logger bound to a component name and optional context.

    Args:
        name: Component name (typically __name__)
        **context: Extra fields such as run_id, scene_id or provider

    Returns:
        Bound loguru logger
    """
    return logger.bind(name=name, **context)


setup_logging()
