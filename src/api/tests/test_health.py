"""Tests for health and root endpoints."""

import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from api.main import app, SERVICE_NAME


class TestHealth(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)

    @patch('api.routes.health.get_mongodb_client')
    def test_healthy_when_mongodb_reachable(self, mock_get_client):
        mock_get_client.return_value = MagicMock()

        response = self.client.get("/health")

        assert response.status_code == 200
        assert response.json()["services"]["mongodb"]["status"] == "healthy"

    @patch('api.routes.health.get_mongodb_client')
    def test_degraded_when_mongodb_unavailable(self, mock_get_client):
        mock_get_client.return_value = None

        response = self.client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"

    def test_root(self):
        data = self.client.get("/").json()

        assert data["service"] == SERVICE_NAME
        assert data["status"] == "running"


if __name__ == '__main__':
    unittest.main()
