"""ERP Core — Logging setup shared by the API process and the Celery worker."""
import logging

from erp_core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply LOG_LEVEL to the root logger. Safe to call more than once."""
    level = (level or get_settings().LOG_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    # SQL echo is controlled by DEBUG on the engine, not by the app log level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
