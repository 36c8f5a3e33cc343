"""Centralized logging configuration using Loguru.

Usage:
    from xnr.utils.logging import logger
    logger.info("Message")
    logger.debug("Debug message")  # Only shows if XNR_LOG_LEVEL=DEBUG

Environment Variables:
    XNR_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: WARNING)
    XNR_LOG_JSON: 0|1 (default: 0, human-readable)
    XNR_LOG_FILE: path to an NDJSON log file (optional)

The default level is WARNING because `xnr run` shares the terminal with the
child process.
"""

import json
import os
import sys

from loguru import logger

from .constants import ENV_LOG_FILE, ENV_LOG_JSON, ENV_LOG_LEVEL

# Remove default handler
logger.remove()

# Pino-compatible numeric levels
PINO_LEVELS = {
    "TRACE": 10,
    "DEBUG": 20,
    "INFO": 30,
    "SUCCESS": 30,
    "WARNING": 40,
    "ERROR": 50,
    "CRITICAL": 60,
}

_log_level = os.environ.get(ENV_LOG_LEVEL, "WARNING").upper()
_json_mode = os.environ.get(ENV_LOG_JSON, "0") == "1"
_log_file = os.environ.get(ENV_LOG_FILE)


def _to_pino(record) -> str:
    """Serialize a loguru record as one NDJSON line."""
    pino_log = {
        "level": PINO_LEVELS.get(record["level"].name, 30),
        "time": int(record["time"].timestamp() * 1000),
        "msg": record["message"],
        "pid": record["process"].id,
        "name": "xnr",
    }
    for key, value in record["extra"].items():
        pino_log[key] = value if isinstance(value, (str, int, float, bool)) else str(value)

    if record["exception"]:
        pino_log["err"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else "Error",
            "message": str(record["exception"].value) if record["exception"].value else "",
        }
    return json.dumps(pino_log)


def pino_compatible_sink(message):
    """Write Pino-format NDJSON to stderr.

    Never call logger.* inside a sink, it recurses.
    """
    sys.stderr.write(_to_pino(message.record) + "\n")
    sys.stderr.flush()


_human_format = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> - "
    "<level>{message}</level>"
)

logger.level("DEBUG", color="<blue>")
logger.level("INFO", color="<white>")
logger.level("WARNING", color="<yellow>")
logger.level("ERROR", color="<red>")

if _json_mode:
    logger.add(pino_compatible_sink, level=_log_level, colorize=False)
else:
    logger.add(
        sys.stderr,
        level=_log_level,
        format=_human_format,
        colorize=None,  # Auto-detect: colors if TTY, plain if piped
    )

if _log_file:

    def _file_pino_sink(message):
        """Append Pino-format JSON to the configured log file."""
        with open(_log_file, "a", encoding="utf-8") as f:
            f.write(_to_pino(message.record) + "\n")

    logger.add(_file_pino_sink, level="DEBUG")


__all__ = ["logger", "pino_compatible_sink"]
