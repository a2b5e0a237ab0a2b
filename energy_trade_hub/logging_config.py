import logging
import sys

from energy_trade_hub.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def set_logger_and_children_level(logger_instance: logging.Logger, level: int):
    """Set the level on a logger and on every child logger registered under it."""
    logger_instance.setLevel(level)

    if not logger_instance.name:
        return

    for name in list(logging.root.manager.loggerDict):
        if name.startswith(logger_instance.name + "."):
            logging.getLogger(name).setLevel(level)


def configure_logger(name: str = "energy_trade_hub") -> logging.Logger:
    configured = logging.getLogger(name)

    if not configured.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        configured.addHandler(handler)

    set_logger_and_children_level(
        configured, getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    )
    return configured


logger = configure_logger()
