"""
Logging Management Module.

Configures structured logging for the application using structlog on top of
the standard logging handlers. Every record is written as a JSON line to a
per-application log file; console output is human friendly in development
and JSON otherwise.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog


class LogManager:
    """
    Builds and owns the application logger.

    Attributes:
        app_name (str): Name used for the log file and the root logger
        log_dir (str): Directory where the log file is written
        development (bool): Use a console renderer instead of JSON on stdout
        level (int): Minimum logging level
    """

    def __init__(
        self,
        app_name: str,
        log_dir: str = "logs",
        development: bool = False,
        level: int = logging.INFO,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ):
        self.app_name = app_name
        self.log_dir = log_dir
        self.development = development
        self.level = level
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self._configure()
        self.logger = structlog.get_logger(app_name)

    def _shared_processors(self) -> list:
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
        ]

    def _build_handler(self, handler: logging.Handler, renderer: Any) -> logging.Handler:
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=self._shared_processors(),
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    renderer,
                ],
            )
        )
        handler.setLevel(self.level)
        return handler

    def _configure(self) -> None:
        """Wire structlog into the standard logging handlers."""
        structlog.configure(
            processors=self._shared_processors()
            + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        root = logging.getLogger(self.app_name)
        root.setLevel(self.level)
        root.propagate = False
        root.handlers.clear()

        console_renderer = (
            structlog.dev.ConsoleRenderer()
            if self.development
            else structlog.processors.JSONRenderer()
        )
        root.addHandler(
            self._build_handler(logging.StreamHandler(sys.stdout), console_renderer)
        )

        if self.log_dir:
            os.makedirs(self.log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(self.log_dir, f"{self.app_name}.log"),
                maxBytes=self.max_bytes,
                backupCount=self.backup_count,
                encoding="utf-8",
            )
            root.addHandler(
                self._build_handler(file_handler, structlog.processors.JSONRenderer())
            )

        # PyGithub and httpx are chatty at debug level
        for noisy in ("github", "httpx", "httpcore", "urllib3"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
