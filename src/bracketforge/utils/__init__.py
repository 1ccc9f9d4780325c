"""Shared utilities for BracketForge."""

# BracketForge
# Copyright (C) 2025  BracketForge developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import logging
import os
from typing import Optional

from bracketforge.constants import LOG_LEVEL_ENV_VAR

ROOT_LOGGER_NAME = "bracketforge"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_root_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper())
    return root


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger within the package namespace.

    Args:
        name: Logger name, usually ``__name__`` of the calling module
        level: Optional level override for this logger

    Returns:
        Configured logger instance
    """
    _configure_root_logger()
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(level.upper())
    return logger


__all__ = ["setup_logger"]
