# notifications/backends/locmem.py

from notifications.backends import BasePushBackend

# Test inspection point, like django.core.mail.outbox.
outbox: list[dict] = []


class LocmemPushBackend(BasePushBackend):
    def send(self, *, token: str, title: str, body: str, data: dict | None = None) -> None:
        outbox.append({"token": token, "title": title, "body": body, "data": data or {}})
