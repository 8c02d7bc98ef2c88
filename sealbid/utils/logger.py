"""
Logging for sealbid.

Every subsystem logs under the "sealbid" namespace (sealbid.clearing,
sealbid.bids, sealbid.claims, ...). Records go to stderr in color, and to
<log_dir>/sealbid.log when a log directory is configured.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog

ROOT_NAME = "sealbid"
LOG_FILE = "sealbid.log"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SealbidLogger:
    """Owns the handlers installed on the sealbid root logger"""

    _initialized = False

    @classmethod
    def setup(cls, level: int = logging.INFO, log_dir: Optional[Union[str, Path]] = None):
        """
        Install console (and optional file) handlers once.

        Args:
            level: Logging level for the sealbid namespace
            log_dir: Also write sealbid.log here when given
        """
        if cls._initialized:
            return

        root = logging.getLogger(ROOT_NAME)
        root.setLevel(level)
        root.handlers.clear()

        console = colorlog.StreamHandler(sys.stderr)
        console.setFormatter(colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s",
            datefmt=DATE_FORMAT,
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        ))
        root.addHandler(console)

        if log_dir is not None:
            path = Path(log_dir)
            path.mkdir(exist_ok=True, parents=True)
            file_handler = logging.FileHandler(path / LOG_FILE, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(name)s] %(levelname)-8s %(message)s",
                datefmt=DATE_FORMAT,
            ))
            root.addHandler(file_handler)

        cls._initialized = True

    @classmethod
    def reset(cls):
        """Close and drop installed handlers so setup() can run again."""
        root = logging.getLogger(ROOT_NAME)
        for handler in list(root.handlers):
            root.removeHandler(handler)
            if isinstance(handler, logging.FileHandler):
                handler.close()
        cls._initialized = False


def get_logger(name: str) -> logging.Logger:
    """Logger for a subsystem, installing default handlers on first use"""
    SealbidLogger.setup()
    return logging.getLogger(f"{ROOT_NAME}.{name}")


def setup_logging(level: int = logging.INFO, log_dir: Optional[Union[str, Path]] = None):
    """(Re)configure logging, e.g. from CLI flags"""
    SealbidLogger.reset()
    SealbidLogger.setup(level=level, log_dir=log_dir)
