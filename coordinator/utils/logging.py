"""Logging setup for the service and CLI."""

import logging

from coordinator.config import settings


def setup_logging(level: str | None = None):
    """Configure root logging once from settings."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # APScheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
