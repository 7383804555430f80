# notifications/backends/fcm.py

"""
Firebase Cloud Messaging push backend.

Enable with:
    NOTIFICATIONS_PUSH_BACKEND=notifications.backends.fcm.FCMPushBackend
    FIREBASE_PROJECT_ID / FIREBASE_CLIENT_EMAIL / FIREBASE_PRIVATE_KEY

The private key may be given with literal "\\n" sequences (single-line env var).
Requires the "push" extra (firebase-admin).
"""

import logging

import firebase_admin
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from firebase_admin import credentials, messaging

from notifications.backends import BasePushBackend

logger = logging.getLogger(__name__)

APP_NAME = "storefront-push"
TOKEN_URI = "https://oauth2.googleapis.com/token"


def _fcm_settings() -> dict:
    config = getattr(settings, "NOTIFICATIONS", {}) or {}
    return config.get("FCM", {}) or {}


def _get_app():
    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        pass

    config = _fcm_settings()
    project_id = config.get("PROJECT_ID") or ""
    client_email = config.get("CLIENT_EMAIL") or ""
    private_key = (config.get("PRIVATE_KEY") or "").replace("\\n", "\n")

    if not (project_id and client_email and private_key):
        raise ImproperlyConfigured(
            "FCM push requires FIREBASE_PROJECT_ID, FIREBASE_CLIENT_EMAIL "
            "and FIREBASE_PRIVATE_KEY"
        )

    cred = credentials.Certificate(
        {
            "type": "service_account",
            "project_id": project_id,
            "client_email": client_email,
            "private_key": private_key,
            "token_uri": TOKEN_URI,
        }
    )
    return firebase_admin.initialize_app(cred, name=APP_NAME)


class FCMPushBackend(BasePushBackend):
    """Sends one notification message per device token."""

    def send(self, *, token: str, title: str, body: str, data: dict | None = None) -> None:
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data={str(k): str(v) for k, v in (data or {}).items()},
        )
        message_id = messaging.send(message, app=_get_app())

        logger.info(
            "Push notification sent",
            extra={"token": token[-6:], "message_id": message_id},
        )
