
# config/logging.py
import logging

from config.settings import settings

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_configured = False

def _configure() -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(level=settings.LOG_LEVEL, format=_FORMAT)
    _configured = True

def get_logger(name: str) -> logging.Logger:
    """Project loggers live under the "lumen" namespace."""
    _configure()
    return logging.getLogger(f"lumen.{name}")
