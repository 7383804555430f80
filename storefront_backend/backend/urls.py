# backend/urls.py
"""
PROJECT URLS

All API routes live under /api/:
- /api/            link index (AllowAny), built from named routes
- /api/health/     DB connectivity check (AllowAny)
- /api/orders/     order engine (orders.urls)

Django admin is mounted at settings.ADMIN_PATH.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.contrib import admin
from django.db import connections
from django.db.utils import OperationalError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema, inline_serializer
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

logger = logging.getLogger(__name__)


# ------------------ API ROOT (PUBLIC) ------------------
# section -> {key: url name}; resolved per request so links follow the mount point
API_INDEX = {
    "auth": {"jwt_create": "jwt-create", "jwt_refresh": "jwt-refresh"},
    "docs": {"swagger": "swagger-ui", "schema": "schema", "health": "health-check"},
    "orders": {
        "list": "orders-list",
        "checkout": "orders-checkout",
        "admin": "orders-admin-list",
    },
}

_links = serializers.DictField(child=serializers.URLField())


@extend_schema(
    responses=inline_serializer(
        name="ApiIndex",
        fields={
            "service": serializers.CharField(),
            "auth": _links,
            "docs": _links,
            "orders": _links,
        },
    ),
)
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    payload = {"service": "storefront-backend"}
    for section, routes in API_INDEX.items():
        payload[section] = {
            key: reverse(name, request=request) for key, name in routes.items()
        }
    return Response(payload)


# ------------------ HEALTH CHECK (PUBLIC) ------------------
@extend_schema(
    responses={
        200: inline_serializer(
            name="Health",
            fields={"status": serializers.CharField(), "db": serializers.CharField()},
        ),
        503: inline_serializer(
            name="HealthDegraded",
            fields={
                "status": serializers.CharField(),
                "db": serializers.CharField(),
                "error": serializers.CharField(),
            },
        ),
    },
)
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """Responds 200 when the default database answers a trivial query, 503 otherwise."""
    try:
        with connections["default"].cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
    except OperationalError as e:
        logger.error("Health check failed", extra={"error": str(e)})
        return Response({"status": "degraded", "db": "down", "error": str(e)}, status=503)
    return Response({"status": "ok", "db": "ok"})


# ------------------ ADMIN PATH (HARDENED) ------------------
# Non-default in production (env ADMIN_PATH); always ends with "/".
ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/")
if not ADMIN_PATH.endswith("/"):
    ADMIN_PATH = f"{ADMIN_PATH}/"


# ------------------ API ROUTES (ALL UNDER /api/) ------------------
api_urlpatterns = [
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    # OpenAPI / Swagger
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    # JWT (SimpleJWT)
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    # Order engine
    path("orders/", include("orders.urls")),
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    # Root convenience: visiting / takes you to Swagger docs
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
