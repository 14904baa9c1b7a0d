"""Logging setup for the CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the entry point.
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

_configured = False


def setup_logging(level: str = "WARNING") -> None:
    """Attach a Rich stderr handler to the ``projectlens`` logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
               PROJECTLENS_LOG_LEVEL overrides it when set.
    """
    global _configured
    if _configured:
        return

    log_level = getattr(logging, level.upper(), logging.WARNING)
    env_level = os.getenv("PROJECTLENS_LOG_LEVEL")
    if env_level:
        log_level = getattr(logging, env_level.upper(), log_level)

    root = logging.getLogger("projectlens")
    root.setLevel(log_level)
    root.handlers.clear()

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.propagate = False

    _configured = True
