"""Tests for CalComClient using httpx.MockTransport."""

import json

import httpx
import pytest

from app.integrations.calcom_client import CalComClient, CalComError


def _client(handler) -> CalComClient:
    return CalComClient(
        api_key="cal_test_key",
        base_url="https://cal.example/v1/",
        transport=httpx.MockTransport(handler),
    )


class TestRequests:
    def test_sends_bearer_token_and_unwraps_event_types(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"event_types": [{"id": 7, "slug": "mentor-abc"}]})

        client = _client(handler)

        assert client.find_event_type("mentor-abc") == {"id": 7, "slug": "mentor-abc"}
        assert client.find_event_type("mentor-xyz") is None
        assert seen["auth"] == "Bearer cal_test_key"
        assert seen["url"] == "https://cal.example/v1/event-types"

    def test_availability_query_params(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["dateFrom"] == "2030-01-08"
            assert request.url.params["dateTo"] == "2030-01-08"
            assert request.url.params["eventTypeId"] == "7"
            return httpx.Response(
                200, json={"availability": [{"date": "2030-01-08", "slots": [{"time": "09:00"}]}]}
            )

        days = _client(handler).get_availability(7, "2030-01-08", "2030-01-08")

        assert days == [{"date": "2030-01-08", "slots": [{"time": "09:00"}]}]

    def test_bare_payloads_are_accepted(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json={"id": 99, "meetingUrl": "https://cal.example/video/99"})

        booking = _client(handler).create_booking({"eventTypeId": 7})

        assert booking["id"] == 99

    def test_cancel_sends_reason(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(204)

        _client(handler).cancel_booking("99", "Student unavailable")

        assert captured == {
            "method": "DELETE",
            "path": "/v1/bookings/99",
            "body": {"reason": "Student unavailable"},
        }

    def test_reschedule_patches_booking(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PATCH"
            body = json.loads(request.content)
            return httpx.Response(200, json={"booking": {"id": 99, **body}})

        moved = _client(handler).reschedule_booking(
            "99", "2030-01-08T10:00:00.000Z", "2030-01-08T11:00:00.000Z"
        )

        assert moved["start"] == "2030-01-08T10:00:00.000Z"


class TestErrors:
    def test_http_error_raises_with_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"message": "Internal error"})

        with pytest.raises(CalComError) as exc_info:
            _client(handler).list_event_types()

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Internal error"

    def test_non_json_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad gateway")

        with pytest.raises(CalComError) as exc_info:
            _client(handler).list_event_types()

        assert exc_info.value.details == {"raw": "Bad gateway"}

    def test_transport_error_has_no_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(CalComError) as exc_info:
            _client(handler).get_availability(7, "2030-01-08", "2030-01-08")

        assert exc_info.value.status_code is None
        assert "unreachable" in exc_info.value.message

    def test_unexpected_availability_shape(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"availability": {"busy": []}})

        with pytest.raises(CalComError):
            _client(handler).get_availability(7, "2030-01-08", "2030-01-08")
