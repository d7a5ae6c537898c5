"""
ComfyImg Logging

Centralized logging configuration shared by the tools, the client and the CLI.

Usage:
    from backend.utils.logger import get_logger
    logger = get_logger(__name__)

    logger.info("Submitted prompt", prompt_id="abc", client_id="123")
    logger.exception("Request failed", url=url)
"""

import io
import logging
import logging.handlers
import os
import sys
from typing import Any, Dict, Optional


LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

ROOT_LOGGER_NAME = "comfyimg"


class ComfyImgFormatter(logging.Formatter):
    """
    Formatter that renders structured context as trailing key=value pairs
    and optionally colors the level name for terminals.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str, datefmt: Optional[str] = None, use_colors: bool = False):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        filename = os.path.basename(record.pathname) if record.pathname else "unknown"
        record.location = f"{filename}:{record.lineno}"

        context = getattr(record, "context", None) or {}
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        record.context_str = f" | {pairs}" if pairs else ""

        if self.use_colors and record.levelname in self.COLORS:
            record.levelname_colored = (
                f"{self.COLORS[record.levelname]}{record.levelname:8}{self.COLORS['RESET']}"
            )
        else:
            record.levelname_colored = f"{record.levelname:8}"

        return super().format(record)


class ComfyImgLogger(logging.LoggerAdapter):
    """
    Logger adapter that turns keyword arguments into structured context.

    Example:
        logger.info("Image fetched", filename="out_0001.png", size=2048)
        # 2025-01-04 12:00:00 | INFO     | comfy_client.py:88 | Image fetched | filename=out_0001.png size=2048
    """

    _STANDARD_KEYS = {"exc_info", "stack_info", "stacklevel", "extra"}

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        context = {
            key: kwargs.pop(key)
            for key in list(kwargs.keys())
            if key not in self._STANDARD_KEYS
        }
        context.update(self.extra)

        extra = kwargs.get("extra") or {}
        extra["context"] = context
        kwargs["extra"] = extra
        return msg, kwargs


_initialized = False


def configure_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    log_to_console: bool = True,
    use_colors: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 7,
    force: bool = False,
) -> None:
    """
    Configure the ``comfyimg`` logger hierarchy.

    Args:
        log_level: Minimum console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: When given, also write a rotating ``comfyimg.log`` there
        log_to_console: Whether to log to stderr
        use_colors: Whether to color level names on the console
        max_bytes: Size of each log file before rotation
        backup_count: Number of rotated files to keep
        force: Reconfigure even if logging was already set up
    """
    global _initialized

    if _initialized and not force:
        return

    level = LOG_LEVELS.get(log_level.upper(), logging.INFO)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console_format = "%(asctime)s | %(levelname_colored)s | %(location)s | %(message)s%(context_str)s"
    file_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(location)s | %(message)s%(context_str)s"

    if log_to_console:
        stream = sys.stderr
        if not hasattr(stream, "reconfigure") and hasattr(stream, "buffer"):
            encoding = getattr(stream, "encoding", None) or "utf-8"
            stream = io.TextIOWrapper(stream.buffer, encoding=encoding, errors="replace")

        console_handler = logging.StreamHandler(stream)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            ComfyImgFormatter(console_format, datefmt="%Y-%m-%d %H:%M:%S", use_colors=use_colors)
        )
        root.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, "comfyimg.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(ComfyImgFormatter(file_format, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    _initialized = True


def get_logger(name: Optional[str] = None) -> ComfyImgLogger:
    """
    Get a context-aware logger for a module.

    ``backend.comfyimg.workflow.resolver`` maps to ``comfyimg.workflow.resolver``.
    """
    if not _initialized:
        configure_logging(
            log_level=os.getenv("COMFYIMG_LOG_LEVEL", "INFO"),
            log_dir=os.getenv("COMFYIMG_LOG_DIR") or None,
        )

    if name:
        if name.startswith("backend."):
            name = name[len("backend."):]
        logger_name = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"
    else:
        logger_name = ROOT_LOGGER_NAME

    return ComfyImgLogger(logging.getLogger(logger_name))


__all__ = [
    "configure_logging",
    "get_logger",
    "ComfyImgLogger",
    "ComfyImgFormatter",
    "LOG_LEVELS",
    "ROOT_LOGGER_NAME",
]
