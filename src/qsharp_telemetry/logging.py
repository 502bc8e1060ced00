# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0

"""Set up a logger with optional rich formatting, plus a TRACE level for dropped events."""

from __future__ import annotations

import logging

from typing import Any

from rich.console import Console
from rich.logging import RichHandler


TRACE = 5
"""Below DEBUG. Used for events dropped because no reporter is bound."""

logging.addLevelName(TRACE, "TRACE")


def get_rich_handler(**kwargs: Any) -> RichHandler:
    """Build a rich handler writing to a markup-enabled console."""
    return RichHandler(console=Console(markup=True, soft_wrap=True), markup=True, **kwargs)


def setup_logger(
    name: str | None = "qsharp_telemetry",
    *,
    level: int = logging.WARNING,
    rich: bool = True,
    rich_options: dict[str, Any] | None = None,
) -> logging.Logger:
    """Set up a logger with optional rich formatting."""
    if not rich:
        logging.basicConfig(level=level)
        return logging.getLogger(name)
    handler = get_rich_handler(**(rich_options or {}))
    logger = logging.getLogger(name)
    logger.setLevel(level)
    # Clear existing handlers to prevent duplication
    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


__all__ = ("TRACE", "get_rich_handler", "setup_logger")
