#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Logging mixin used across easycontract.

Classes inherit ``ModernLogger`` and call ``self.info(...)`` and friends
directly. Output goes through a ``rich`` handler on stderr so that stdout
stays free for the hosting runtime.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

import logging
from typing import Any, Union

from rich.console import Console
from rich.logging import RichHandler

_DEFAULT_LOGGER_NAME = "easycontract"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if isinstance(resolved, int):
        return resolved
    raise ValueError("Unknown log level: {0}".format(level))


def get_logger(name: str = _DEFAULT_LOGGER_NAME, level: Union[int, str] = "WARNING") -> logging.Logger:
    """
    Return a logger wired to a single stderr ``RichHandler``.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
        logger.propagate = False
    logger.setLevel(_resolve_level(level))
    return logger


class ModernLogger:
    """
    Mixin that gives a class named logging methods.
    """

    def __init__(self, name: str = _DEFAULT_LOGGER_NAME, level: Union[int, str] = "WARNING") -> None:
        self.logger = get_logger(name, level)

    def _ensure_logger(self) -> logging.Logger:
        logger = getattr(self, "logger", None)
        if logger is None:
            logger = get_logger(_DEFAULT_LOGGER_NAME)
            self.logger = logger
        return logger

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._ensure_logger().debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._ensure_logger().info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._ensure_logger().warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._ensure_logger().error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._ensure_logger().critical(msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._ensure_logger().exception(msg, *args, **kwargs)
