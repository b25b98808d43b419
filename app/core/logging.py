"""
Process-wide logging setup.

Modules log through ``logging.getLogger(__name__)``; this only decides the
handler, format and level once at startup.
"""
import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    level_name = (level or settings.LOG_LEVEL).upper()

    root = logging.getLogger()
    if not any(getattr(h, "_formfields", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._formfields = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    root.setLevel(getattr(logging, level_name, logging.INFO))

    # SQL echo is noisy outside debugging
    if level_name != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
