"""Application logging setup."""

import logging

from invoicing.app.core.settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    global _configured
    if _configured:
        return
    settings = get_settings()
    logging.basicConfig(level=level or settings.log_level, format=LOG_FORMAT)
    _configured = True
