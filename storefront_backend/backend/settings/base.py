"""
PATH: backend/settings/base.py

BASE SETTINGS (shared by dev + prod)

Operational maturity:
- Throttling (public write / webhook scopes)
- Sentry (optional): error visibility in production
- Order engine knobs (currency, tax, cart tolerance, tracking dedupe)
- Payment gateway (MyFatoorah) credentials + strict amount check
- Notification backends (email via Django mail, push via pluggable backend)
"""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import environ
from corsheaders.defaults import default_headers, default_methods

# -----------------------------------------
# BASE DIRECTORY
# -----------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# -----------------------------------------
# TEST MODE DETECTION
# -----------------------------------------
TESTING = "test" in sys.argv or "pytest" in sys.modules

# -----------------------------------------
# ENV (django-environ)
# -----------------------------------------
env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "UTC"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    CORS_ALLOWED_ORIGINS=(list, ["http://localhost:5173"]),
    CSRF_TRUSTED_ORIGINS=(list, ["http://localhost:5173"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    # Throttling
    THROTTLE_ANON_RATE=(str, "60/min"),
    THROTTLE_USER_RATE=(str, "600/min"),
    THROTTLE_CHECKOUT_RATE=(str, "10/min"),
    # Order engine
    ORDER_CURRENCY=(str, "KWD"),
    ORDER_TAX_RATE=(str, "0.00"),
    ORDER_SKIP_UNAVAILABLE_CART_LINES=(bool, False),
    ORDER_TRACKING_DEDUPLICATE_STATUS=(bool, True),
    # Payments (MyFatoorah)
    MYFATOORAH_BASE_URL=(str, "https://apitest.myfatoorah.com"),
    MYFATOORAH_API_KEY=(str, ""),
    MYFATOORAH_TIMEOUT=(int, 20),
    PAYMENTS_STRICT_AMOUNT_CHECK=(bool, True),
    # Notifications
    EMAIL_BACKEND=(str, "django.core.mail.backends.console.EmailBackend"),
    DEFAULT_FROM_EMAIL=(str, "orders@storefront.local"),
    NOTIFICATIONS_ASYNC=(bool, not TESTING),
    NOTIFICATIONS_PUSH_BACKEND=(
        str,
        "notifications.backends.log.LogPushBackend",
    ),
    NOTIFICATIONS_OPERATOR_EMAILS=(list, []),
    FIREBASE_PROJECT_ID=(str, ""),
    FIREBASE_CLIENT_EMAIL=(str, ""),
    FIREBASE_PRIVATE_KEY=(str, ""),
    # Sentry (optional; enable by setting SENTRY_DSN)
    SENTRY_DSN=(str, ""),
    SENTRY_ENVIRONMENT=(str, "development"),
    SENTRY_TRACES_SAMPLE_RATE=(float, 0.0),
    SENTRY_SEND_PII=(bool, False),
    LOG_LEVEL=(str, "INFO"),
)

# -----------------------------------------
# LOAD .env
# -----------------------------------------
env_file_1 = BASE_DIR / ".env"
env_file_2 = BASE_DIR.parent / ".env"

if env_file_1.exists():
    env.read_env(str(env_file_1))
elif env_file_2.exists():
    env.read_env(str(env_file_2))

# -----------------------------------------
# CORE SECURITY
# -----------------------------------------
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

# -----------------------------------------
# I18N / TZ
# -----------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = (env("TIME_ZONE") or "UTC").strip()
USE_I18N = True
USE_TZ = True

# -----------------------------------------
# INSTALLED APPS
# -----------------------------------------
INSTALLED_APPS = [
    "corsheaders",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "django_filters",
    "catalog.apps.CatalogConfig",
    "customers.apps.CustomersConfig",
    "cart.apps.CartConfig",
    "coupons.apps.CouponsConfig",
    "delivery.apps.DeliveryConfig",
    "payments.apps.PaymentsConfig",
    "orders.apps.OrdersConfig",
    "notifications.apps.NotificationsConfig",
    "conversations.apps.ConversationsConfig",
]

# -----------------------------------------
# MIDDLEWARE
# -----------------------------------------
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ADMIN_PATH = (env("ADMIN_PATH", default="admin/") or "admin/").strip()

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"
APPEND_SLASH = True

# -----------------------------------------
# TEMPLATES (admin + notification bodies)
# -----------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(BASE_DIR / "templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# -----------------------------------------
# REST FRAMEWORK
# -----------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_THROTTLE_CLASSES": (
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ),
    "DEFAULT_THROTTLE_RATES": {
        "anon": env("THROTTLE_ANON_RATE"),
        "user": env("THROTTLE_USER_RATE"),
        "checkout": env("THROTTLE_CHECKOUT_RATE"),
    },
}

# -----------------------------------------
# SIMPLE JWT
# -----------------------------------------
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
    "ROTATE_REFRESH_TOKENS": True,
}

# -----------------------------------------
# DATABASE
# -----------------------------------------
DATABASES = {
    "default": env.db("DATABASE_URL"),
}
DATABASES["default"]["ATOMIC_REQUESTS"] = False

# -----------------------------------------
# ORDER ENGINE
# -----------------------------------------
ORDER_ENGINE = {
    "CURRENCY": (env("ORDER_CURRENCY") or "KWD").strip().upper(),
    "TAX_RATE": (env("ORDER_TAX_RATE") or "0.00").strip(),
    # Tolerant read of cart lines whose product/variation vanished.
    "SKIP_UNAVAILABLE_CART_LINES": env.bool("ORDER_SKIP_UNAVAILABLE_CART_LINES"),
    # Re-submitting the current tracking status appends nothing.
    "TRACKING_DEDUPLICATE_STATUS": env.bool("ORDER_TRACKING_DEDUPLICATE_STATUS"),
}

# -----------------------------------------
# PAYMENTS
# -----------------------------------------
PAYMENTS = {
    "MYFATOORAH": {
        "BASE_URL": (env("MYFATOORAH_BASE_URL") or "").strip().rstrip("/"),
        "API_KEY": (env("MYFATOORAH_API_KEY") or "").strip(),
        "TIMEOUT": env.int("MYFATOORAH_TIMEOUT"),
    },
    "STRICT_AMOUNT_CHECK": env.bool("PAYMENTS_STRICT_AMOUNT_CHECK"),
}

# -----------------------------------------
# NOTIFICATIONS
# -----------------------------------------
EMAIL_BACKEND = env("EMAIL_BACKEND")
DEFAULT_FROM_EMAIL = env("DEFAULT_FROM_EMAIL")

NOTIFICATIONS = {
    "ASYNC": env.bool("NOTIFICATIONS_ASYNC"),
    "PUSH_BACKEND": env("NOTIFICATIONS_PUSH_BACKEND"),
    "OPERATOR_EMAILS": env.list("NOTIFICATIONS_OPERATOR_EMAILS"),
    "FROM_EMAIL": DEFAULT_FROM_EMAIL,
    # used by notifications.backends.fcm.FCMPushBackend
    "FCM": {
        "PROJECT_ID": env("FIREBASE_PROJECT_ID"),
        "CLIENT_EMAIL": env("FIREBASE_CLIENT_EMAIL"),
        "PRIVATE_KEY": env("FIREBASE_PRIVATE_KEY"),
    },
}

if TESTING:
    NOTIFICATIONS["PUSH_BACKEND"] = "notifications.backends.locmem.LocmemPushBackend"

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOG_LEVEL = (env("LOG_LEVEL") or "INFO").strip().upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        app: {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False}
        for app in (
            "orders",
            "payments",
            "notifications",
            "conversations",
            "catalog",
        )
    },
}

# -----------------------------------------
# SENTRY (optional)
# -----------------------------------------
SENTRY_DSN = (env("SENTRY_DSN") or "").strip()
SENTRY_ENVIRONMENT = (env("SENTRY_ENVIRONMENT") or "development").strip()
SENTRY_TRACES_SAMPLE_RATE = float(env("SENTRY_TRACES_SAMPLE_RATE"))
SENTRY_SEND_PII = env.bool("SENTRY_SEND_PII")

if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        integrations=[DjangoIntegration()],
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=SENTRY_SEND_PII,
    )

# -----------------------------------------
# CORS / CSRF
# -----------------------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = list(default_methods)
CORS_ALLOW_HEADERS = list(default_headers)

CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS")

# -----------------------------------------
# STATIC FILES
# -----------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------------------
# SWAGGER
# -----------------------------------------
SPECTACULAR_SETTINGS = {
    "TITLE": "Storefront Backend API",
    "DESCRIPTION": "Checkout, order lifecycle and fulfillment tracking API",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}
