"""
Centralized Logging System for the Tushare client
This module provides a unified logging configuration that can be imported
and used across all modules in the project.
"""

import logging
import atexit
import sys
import os
from pathlib import Path
from typing import Optional, Dict
from datetime import datetime

from loguru import logger as _loguru_logger

# One identifier per process run so each utility gets at most one log file.
RUN_ID = f"{datetime.now().strftime('%Y%m%d_%H%M%S')}_{os.getpid()}"

LOG_LEVEL = os.getenv("TUSHARE_LOG_LEVEL", "INFO").upper()

# Opt-in file sinks; console logging is always on.
LOG_TO_FILE = os.getenv("TUSHARE_LOG_TO_FILE", "0").strip().lower() in {"1", "true", "yes"}

LOGS_BASE_DIR = Path(os.getenv("TUSHARE_LOG_DIR", str(Path.cwd() / "logs")))

UTILITIES = ("tushare", "data_collector", "general")

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {extra[utility]} | {message} | {function}:{line}"


class InterceptHandler(logging.Handler):
    """Intercepts stdlib logging (urllib3, requests) and routes it to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _loguru_logger.level(record.levelname).name
        except (ValueError, AttributeError):
            level = record.levelno

        # Find caller from where logging was called
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _loguru_logger.bind(utility="stdlib").opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _ensure_utility_dir(utility: str) -> Path:
    path = LOGS_BASE_DIR / utility
    path.mkdir(parents=True, exist_ok=True)
    return path


def _detect_utility(name: str) -> str:
    lower_name = name.lower()
    if "tushare" in lower_name:
        return "tushare"
    if "data_collector" in lower_name:
        return "data_collector"
    return "general"


def get_logger(name: str, utility: Optional[str] = None):
    """Return a Loguru logger bound to ``name`` and a utility tag.

    The utility is detected from the module name when not given. File sinks
    are only attached when ``TUSHARE_LOG_TO_FILE`` is enabled.
    """
    if utility is None:
        utility = _detect_utility(name)

    _initialize_sinks_once()
    if LOG_TO_FILE:
        _ensure_file_sink_for_utility(utility, _ensure_utility_dir(utility))

    return _loguru_logger.bind(name=name, utility=utility)


def init_logging_structure() -> None:
    """Create the per-utility log directories"""
    for u in UTILITIES:
        _ensure_utility_dir(u)


def _initialize_sinks_once() -> None:
    """Initialize console sink and stdlib intercept once per process."""
    global _sinks_initialized, _console_sink_id
    if _sinks_initialized:
        return

    _loguru_logger.remove()
    _loguru_logger.configure(extra={"utility": "general"})

    _console_sink_id = _loguru_logger.add(
        sys.stdout, level=LOG_LEVEL, enqueue=True, format=LOG_FORMAT
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0)

    _sinks_initialized = True


def _ensure_file_sink_for_utility(utility: str, util_dir: Path) -> None:
    """Add a rotating file sink for the utility once per process run."""
    if utility in _file_sink_ids:
        return
    log_file = util_dir / f"{utility}_{RUN_ID}.log"

    sink_id = _loguru_logger.add(
        str(log_file),
        level=LOG_LEVEL,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        encoding="utf-8",
        enqueue=True,
        format=LOG_FORMAT,
        filter=lambda record, u=utility: record["extra"].get("utility") == u,
    )

    _file_sink_ids[utility] = sink_id


def shutdown_logging() -> None:
    """Remove all Loguru sinks to flush queued messages. Safe to call multiple times."""
    global _sinks_initialized, _console_sink_id
    for sid in list(_file_sink_ids.values()):
        try:
            _loguru_logger.remove(sid)
        except ValueError as e:
            sys.stderr.write(f"Error removing file sink id={sid}: {e}\n")
    _file_sink_ids.clear()

    try:
        if _console_sink_id is not None:
            _loguru_logger.remove(_console_sink_id)
    except ValueError as e:
        sys.stderr.write(f"Error removing console sink id={_console_sink_id}: {e}\n")
    finally:
        _console_sink_id = None

    _sinks_initialized = False


_sinks_initialized = False
_console_sink_id: Optional[int] = None
_file_sink_ids: Dict[str, int] = {}

atexit.register(shutdown_logging)
