"""Loguru logging configuration.

Log output is plain text by default; ``json_logs`` switches every sink to
Loguru's serialized JSON records for log shippers.
"""

import sys
from pathlib import Path

from loguru import logger

LOG_FILE_NAME = "ems-api.log"

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, *, json_logs: bool = False) -> None:
    """Replace Loguru's sinks with the application's.

    Args:
        log_level: Minimum level to emit, case-insensitive.
        log_dir: Optional directory for ``ems-api.log``, rotated daily and
            kept for two weeks.
        json_logs: Emit serialized JSON records instead of formatted text.
    """
    level = log_level.upper()
    logger.remove()
    # Tracebacks never render local variables; they can hold passwords and tokens.
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT, serialize=json_logs, diagnose=False)

    if not log_dir:
        return
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path / LOG_FILE_NAME,
        level=level,
        format=_LOG_FORMAT,
        serialize=json_logs,
        diagnose=False,
        rotation="00:00",
        retention="14 days",
        encoding="utf-8",
    )
