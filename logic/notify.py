import logging

logger = logging.getLogger(__name__)


class Notifier:
    """User-facing notifications. The app swaps in one that also shows a status-bar message."""

    def success(self, message: str) -> None:
        logger.info(message)

    def info(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.warning(message)
