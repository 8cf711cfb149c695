"""
Centralized logging configuration and wrapper for logging library.
"""

import logging
import sys
from typing import Optional

from app.core.config import settings

ROOT_LOGGER_NAME = "aot"


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name."""

    COLORS = {
        "DEBUG": "\033[94m",  # Blue
        "INFO": "\033[92m",  # Green
        "WARNING": "\033[93m",  # Yellow
        "ERROR": "\033[91m",  # Red
        "CRITICAL": "\033[95m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record):
        log_message = super().format(record)
        color = self.COLORS.get(record.levelname)
        if not color:
            return log_message
        return log_message.replace(
            record.levelname, f"{color}{record.levelname}{self.RESET}", 1
        )


class AotLogger:
    """Self-configuring logger with colored output.

    Every module logs through a child of the ``aot`` logger::

        logger = AotLogger.get_logger(__name__)
    """

    _root: Optional[logging.Logger] = None

    @classmethod
    def _configure(cls) -> logging.Logger:
        if cls._root is not None:
            return cls._root

        level = getattr(logging, settings.log_level.upper(), logging.INFO)
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(level)
        if not root.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                ColoredFormatter("%(levelname)s:     %(name)s: %(message)s")
            )
            root.addHandler(handler)
        # Prevent propagation to root logger to avoid duplicate messages
        root.propagate = False

        cls._root = root
        return root

    @classmethod
    def get_logger(cls, name: Optional[str] = None) -> logging.Logger:
        """Return a logger below the application root logger."""
        root = cls._configure()
        if not name:
            return root
        if name.startswith("app."):
            name = name[len("app."):]
        return root.getChild(name)

    @classmethod
    def get_fastapi_logger(cls) -> logging.Logger:
        """Get the FastAPI logger configured with our formatter."""
        cls._configure()
        fastapi_logger = logging.getLogger("fastapi")
        fastapi_logger.setLevel(logging.INFO)
        if not any(isinstance(h, logging.StreamHandler) for h in fastapi_logger.handlers):
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(ColoredFormatter("%(levelname)s:     %(message)s"))
            fastapi_logger.addHandler(handler)
            fastapi_logger.propagate = False
        return fastapi_logger
