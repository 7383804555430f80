# backend/tests/test_urls.py

from unittest import mock

from django.db.utils import OperationalError
from rest_framework import status
from rest_framework.test import APITestCase


class PublicEndpointTests(APITestCase):
    """
    GUARANTEES:
    - /api/ lists absolute links resolved from the named routes
    - /api/health/ reports 200 when the database answers, 503 when it does not
    - Both are reachable without authentication
    """

    def test_api_root_lists_resolved_links(self):
        response = self.client.get("/api/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["service"], "storefront-backend")
        self.assertTrue(response.data["orders"]["checkout"].endswith("/api/orders/checkout/"))
        self.assertTrue(response.data["orders"]["admin"].endswith("/api/orders/admin/"))
        self.assertTrue(response.data["auth"]["jwt_create"].endswith("/api/auth/jwt/create/"))
        self.assertTrue(response.data["docs"]["health"].startswith("http://testserver/"))

    def test_health_ok(self):
        response = self.client.get("/api/health/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"status": "ok", "db": "ok"})

    @mock.patch("backend.urls.connections")
    def test_health_degraded_when_database_is_down(self, connections):
        connections.__getitem__.return_value.cursor.side_effect = OperationalError("down")

        response = self.client.get("/api/health/")

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["db"], "down")
