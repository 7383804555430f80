# notifications/backends/__init__.py

"""
PUSH BACKENDS

A push backend is any class with:
    send(*, token: str, title: str, body: str, data: dict | None = None) -> None

The active backend is settings.NOTIFICATIONS["PUSH_BACKEND"] (dotted path).
"""

from django.conf import settings
from django.utils.module_loading import import_string

DEFAULT_PUSH_BACKEND = "notifications.backends.log.LogPushBackend"


class BasePushBackend:
    def send(self, *, token: str, title: str, body: str, data: dict | None = None) -> None:
        raise NotImplementedError


def get_push_backend() -> BasePushBackend:
    cfg = getattr(settings, "NOTIFICATIONS", {}) or {}
    path = cfg.get("PUSH_BACKEND") or DEFAULT_PUSH_BACKEND
    return import_string(path)()
