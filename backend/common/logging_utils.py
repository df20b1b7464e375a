import logging
import sys

from backend.common.config import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] (%(service)s) %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers whose INFO/DEBUG output buries pipeline logs
QUIET_LOGGERS = ("httpx", "openai", "sqlalchemy.engine")


class _ServiceContextFilter(logging.Filter):
    """Ensures every log record carries the service name."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 (simple)
        record.service = self.service_name
        return True


def configure_logging(service_name: str | None = None, level: str | None = None) -> logging.Logger:
    """
    Route all records through one stdout handler stamped with the service name.

    Args:
        service_name: Name shown in every record; defaults to ``settings.service_name``
        level: Root level override; defaults to ``settings.log_level``

    Returns:
        The logger named after the service.
    """
    settings = get_settings()
    log_service_name = service_name or settings.service_name

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(_ServiceContextFilter(log_service_name))

    root_logger = logging.getLogger()
    root_logger.setLevel((level or settings.log_level).upper())

    # Avoid duplicate handlers in reconfig scenarios
    root_logger.handlers = []
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger(log_service_name)
