"""
API tests for calendar event create, update and delete.
"""
from datetime import timedelta

from healthsync.core.time_utils import utc_now
from healthsync.models.enums import ServiceName
from healthsync.services.credential_store import CredentialStore
from tests.lib import make_response


def _connect_google(session):
    CredentialStore(session).upsert(
        "user-1",
        ServiceName.GOOGLE,
        access_token="valid-access",
        refresh_token="stored-refresh",
        expires_at=utc_now() + timedelta(hours=1),
    )


class TestCalendarEndpoints:

    def test_update_event(self, client, auth_headers, db_session, mock_http_client):
        _connect_google(db_session)
        mock_http_client.request.return_value = make_response(200, {"id": "evt-1", "summary": "Yoga"})

        response = client.post(
            "/api/v1/calendar/events/update",
            json={
                "eventId": "evt-1",
                "title": "Yoga",
                "startTime": "2026-03-02T07:00:00Z",
                "endTime": "2026-03-02T07:30:00Z",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["event"] == {"id": "evt-1", "summary": "Yoga"}

    def test_update_with_missing_fields_is_400(self, client, auth_headers, mock_http_client):
        response = client.post(
            "/api/v1/calendar/events/update", json={"eventId": "evt-1"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "Missing required fields" in response.json()["error"]

    def test_google_rejection_is_400(self, client, auth_headers, db_session, mock_http_client):
        _connect_google(db_session)
        mock_http_client.request.return_value = make_response(404, text="Not Found")

        response = client.post(
            "/api/v1/calendar/events/update",
            json={
                "eventId": "evt-404",
                "title": "Yoga",
                "startTime": "2026-03-02T07:00:00Z",
                "endTime": "2026-03-02T07:30:00Z",
            },
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Google Calendar API error: 404 Not Found"

    def test_delete_event(self, client, auth_headers, db_session, mock_http_client):
        _connect_google(db_session)
        mock_http_client.request.return_value = make_response(204)

        response = client.post(
            "/api/v1/calendar/events/delete", json={"eventId": "evt-1"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_delete_without_google_connection_is_400(self, client, auth_headers, mock_http_client):
        response = client.post(
            "/api/v1/calendar/events/delete", json={"eventId": "evt-1"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "No configuration found for google"
        mock_http_client.request.assert_not_called()

    def test_update_with_mixed_offsets_is_not_a_server_error(self, client, auth_headers, db_session, mock_http_client):
        _connect_google(db_session)
        mock_http_client.request.return_value = make_response(200, {"id": "evt-1"})

        ok = client.post(
            "/api/v1/calendar/events/update",
            json={
                "eventId": "evt-1",
                "title": "Yoga",
                "startTime": "2026-03-02T07:00:00Z",
                "endTime": "2026-03-02T07:30:00",
            },
            headers=auth_headers,
        )
        reversed_times = client.post(
            "/api/v1/calendar/events/update",
            json={
                "eventId": "evt-1",
                "title": "Yoga",
                "startTime": "2026-03-02T07:00:00",
                "endTime": "2026-03-02T06:30:00Z",
            },
            headers=auth_headers,
        )

        assert ok.status_code == 200
        assert reversed_times.status_code == 400
        assert reversed_times.json()["error"] == "endTime must be after startTime"

    def test_create_event(self, client, auth_headers, db_session, mock_http_client):
        _connect_google(db_session)
        mock_http_client.request.return_value = make_response(
            200, {"id": "evt-new", "htmlLink": "https://calendar.google.com/event?eid=abc"}
        )

        response = client.post(
            "/api/v1/calendar/events/create",
            json={
                "title": "Hydrate",
                "start_datetime": "2026-03-02T10:00:00Z",
                "end_datetime": "2026-03-02T10:15:00Z",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "event_id": "evt-new",
            "event_link": "https://calendar.google.com/event?eid=abc",
        }
        assert mock_http_client.request.await_args.args[0] == "POST"

    def test_create_without_title_is_400(self, client, auth_headers, mock_http_client):
        response = client.post(
            "/api/v1/calendar/events/create",
            json={"start_datetime": "2026-03-02T10:00:00Z", "end_datetime": "2026-03-02T10:15:00Z"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Event title is required"
        mock_http_client.request.assert_not_called()

    def test_create_requires_auth(self, client):
        response = client.post("/api/v1/calendar/events/create", json={"title": "Hydrate"})

        assert response.status_code == 401
