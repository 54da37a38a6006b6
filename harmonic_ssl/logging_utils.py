"""Логирование пакета.

Обработчик ставится один раз на логгер ``harmonic_ssl``; логгеры модулей
(``harmonic_ssl.graph``, ``harmonic_ssl.solver`` и т. д.) своих обработчиков не
имеют и передают записи ему.
"""
import logging
from typing import Optional

PACKAGE_LOGGER = "harmonic_ssl"
LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Optional[int] = None) -> logging.Logger:
    """Attach the package stream handler if it is missing and optionally set the level."""
    package = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h, logging.StreamHandler) for h in package.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package.addHandler(handler)
        if package.level == logging.NOTSET:
            package.setLevel(logging.INFO)
    if level is not None:
        package.setLevel(level)
    return package


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
