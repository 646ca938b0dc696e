"""
Unified logging system
Console output plus rotating ideatrium.log / error.log files, configured
from the [logging] section
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from ideatrium.config.loader import get_config

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

# Marks handlers installed here so reconfiguring leaves pytest/uvicorn handlers alone
_OWNED_ATTR = "_ideatrium_handler"


def parse_size(size: object) -> int:
    """Parse a size such as 512KB, 10MB or 1GB into bytes"""
    text = str(size).strip().upper()
    for suffix, factor in (("KB", 1024), ("MB", 1024**2), ("GB", 1024**3)):
        if text.endswith(suffix):
            return int(text[: -len(suffix)]) * factor
    return int(text)


class LoggerManager:
    """Log manager"""

    def __init__(self, level: Optional[str] = None):
        self.level = level
        self._configure()

    def _configure(self):
        config = get_config()

        level_name = str(self.level or config.get("logging.level", "INFO")).upper()
        logs_dir = Path(config.get("logging.logs_dir", "./logs"))
        max_bytes = parse_size(config.get("logging.max_file_size", "10MB"))
        backup_count = int(config.get("logging.backup_count", 5))

        logs_dir.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, level_name, logging.INFO))

        for handler in list(root_logger.handlers):
            if getattr(handler, _OWNED_ATTR, False):
                root_logger.removeHandler(handler)
                handler.close()

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        self._attach(root_logger, console_handler)

        self._attach(
            root_logger,
            self._rotating(logs_dir / "ideatrium.log", max_bytes, backup_count, logging.DEBUG),
        )
        self._attach(
            root_logger,
            self._rotating(logs_dir / "error.log", max_bytes, backup_count, logging.ERROR),
        )

    @staticmethod
    def _rotating(path: Path, max_bytes: int, backup_count: int, level: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
        return handler

    @staticmethod
    def _attach(root_logger: logging.Logger, handler: logging.Handler) -> None:
        setattr(handler, _OWNED_ATTR, True)
        root_logger.addHandler(handler)


# Created on first use to avoid circular imports with the config loader
_logger_manager: Optional[LoggerManager] = None


def get_logger(name: str) -> logging.Logger:
    """Module logger; configures logging on first call"""
    global _logger_manager

    if _logger_manager is None:
        _logger_manager = LoggerManager()

    return logging.getLogger(name)


def setup_logging(level: Optional[str] = None) -> None:
    """(Re)configure logging, optionally overriding logging.level"""
    global _logger_manager
    _logger_manager = LoggerManager(level)
