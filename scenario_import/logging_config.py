"""Shared logging configuration for the scenario import tools.

Call ``configure_logging()`` once at a CLI or UI entry point so that module
loggers are emitted. Repeated calls are no-ops once the root logger has
handlers.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the root logger with a console handler.

    Only configures if the root logger has no handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console)
    root.setLevel(level)
