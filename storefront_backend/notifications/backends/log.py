# notifications/backends/log.py

import logging

from notifications.backends import BasePushBackend

logger = logging.getLogger(__name__)


class LogPushBackend(BasePushBackend):
    """Writes pushes to the log. Default until a real provider is wired in."""

    def send(self, *, token: str, title: str, body: str, data: dict | None = None) -> None:
        logger.info(
            "Push notification",
            extra={"token": token[-6:], "title": title, "data": data or {}},
        )
