import logging
import os
from datetime import datetime
from pathlib import Path

DEFAULT_LOG_DIR = "logs"
DEFAULT_LEVEL = "DEBUG"

_LOGGERS = {}
_LOG_FILES = {}


def _log_dir() -> Path:
    path = Path(os.getenv("CAUSEWATCH_LOG_DIR", DEFAULT_LOG_DIR))
    path.mkdir(parents=True, exist_ok=True)
    return path


def _log_level() -> int:
    raw = os.getenv("CAUSEWATCH_LOG_LEVEL", DEFAULT_LEVEL).strip().upper()
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.DEBUG


def get_logger(
    name: str,
    *,
    runtime: str = "causewatch",
) -> logging.Logger:
    """
    Create or retrieve a named logger.

    Parameters:
    - name: logger namespace (e.g. core.watcher, twitch.helix)
    - runtime: log file prefix; all loggers of one runtime share a file

    The log directory defaults to ./logs and can be moved with
    CAUSEWATCH_LOG_DIR. The level comes from CAUSEWATCH_LOG_LEVEL.
    """
    cache_key = f"{runtime}:{name}"
    if cache_key in _LOGGERS:
        return _LOGGERS[cache_key]

    logger = logging.getLogger(cache_key)
    logger.setLevel(_log_level())

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # ------------------------------
    # Console handler
    # ------------------------------
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    # ------------------------------
    # File handler (one file per run)
    # ------------------------------
    logfile = _LOG_FILES.get(runtime)
    if logfile is None:
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        logfile = _log_dir() / f"{runtime}-{timestamp}.log"
        _LOG_FILES[runtime] = logfile

    file_handler = logging.FileHandler(logfile, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.propagate = False
    _LOGGERS[cache_key] = logger

    return logger
