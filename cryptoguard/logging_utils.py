import logging
import os
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

# httpx/httpcore anotan cada petición en INFO; un scan hace decenas
NOISY_LOGGERS = ("httpx", "httpcore")

_configured = False


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Root logging setup, once per process. LOG_LEVEL manda si no se pasa nivel."""
    global _configured
    if _configured:
        return

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = level.strip().upper()

    logging.basicConfig(format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    get_logger(__name__).debug("logging listo (nivel=%s)", logging.getLevelName(root.level))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "cryptoguard")
