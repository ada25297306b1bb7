from __future__ import annotations

import copy
import logging
import logging.config
from logging import LogRecord
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


class AppFilter(logging.Filter):
    """
    Attach the module file stem to each record for the rich formatter.
    """

    def filter(self, record: LogRecord) -> bool:
        record.filenameStem = Path(record.filename).stem
        return True


def rich_handler_factory() -> RichHandler:
    return RichHandler(
        console=Console(width=160, stderr=True),
        rich_tracebacks=True,
        markup=True,
        show_path=False,
    )


LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "appfilter": {
            "()": AppFilter,
        }
    },
    "formatters": {
        "pretty": {"format": "[[yellow]%(filenameStem)s[/]] %(message)s"},
    },
    "handlers": {
        "rich": {
            "()": rich_handler_factory,
            "formatter": "pretty",
            "filters": ["appfilter"],
        },
    },
    "loggers": {
        "pytargetdist": {
            "handlers": ["rich"],
            "level": "INFO",
            "propagate": False,
        },
    },
}


def setup(level: int | str = "INFO") -> dict[str, Any]:
    """
    Route the pytargetdist loggers (normalization and non-negativity warnings,
    update tracing at DEBUG) through a rich console handler.

    Args:
        level: Level for the ``pytargetdist`` logger.

    Returns:
        The configuration dictionary that was applied.
    """
    config = copy.deepcopy(LOGGING_CONFIG)
    config["loggers"]["pytargetdist"]["level"] = (
        logging.getLevelName(level) if isinstance(level, int) else level.upper()
    )
    logging.config.dictConfig(config)
    return config


__all__ = ("LOGGING_CONFIG", "setup")
