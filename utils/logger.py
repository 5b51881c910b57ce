import os
import re
import sys
from pathlib import Path
from typing import Optional

import loguru

# Kept out of the working tree so a run never leaves an untracked file behind.
DEFAULT_LOG_FILE = Path.home() / ".aipr" / "logs" / "aipr.log"

SECRET_PATTERNS = re.compile(
    r"(sk-ant-[\w-]{8,}|sk-[\w-]{16,}|gh[pousr]_\w{20,}|github_pat_\w{20,}|AIza[\w-]{30,})"
)

CONSOLE_FORMAT = "<level>{level: <8}</level> | <level>{message}</level>"
DEBUG_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def redact_secrets(record) -> bool:
    """Masks anything shaped like a provider API key or GitHub token."""
    record["message"] = SECRET_PATTERNS.sub(lambda m: m.group(0)[:6] + "***", record["message"])
    return True


def setup_logger(log_level="INFO", log_file: Optional[str] = None):
    """
    Set up the console and file sinks.

    Args:
        log_level (str): The minimum level shown on the console.
        log_file (str): Overrides the log file, which otherwise comes from
            ``AIPR_LOG_FILE`` or DEFAULT_LOG_FILE.
    """
    loguru.logger.remove()

    loguru.logger.add(
        sys.stderr,
        level=log_level,
        format=DEBUG_CONSOLE_FORMAT if log_level == "DEBUG" else CONSOLE_FORMAT,
        filter=redact_secrets,
        colorize=True,
    )

    # Always DEBUG, prompts end up here.
    path = Path(log_file or os.getenv("AIPR_LOG_FILE") or DEFAULT_LOG_FILE)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        loguru.logger.warning(f"Cannot create log directory {path.parent}, file logging disabled.")
        return loguru.logger

    loguru.logger.add(
        path,
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        filter=redact_secrets,
        rotation="10 MB",
        retention="7 days",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )

    return loguru.logger

logger = setup_logger()
