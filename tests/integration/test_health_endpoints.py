"""
API tests for the health check.
"""


class TestHealth:

    def test_root_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    def test_versioned_health(self, client):
        assert client.get("/api/v1/health").status_code == 200

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"x-request-id": "trace-123"})
        assert response.headers["x-request-id"] == "trace-123"

    def test_unknown_route_uses_error_shape(self, client):
        response = client.get("/api/v1/does-not-exist")

        assert response.status_code == 404
        assert response.json()["success"] is False
