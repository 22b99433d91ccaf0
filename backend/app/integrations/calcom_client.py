"""Cal.com Scheduling API Integration Client.

Thin HTTP wrapper over the endpoints the booking core uses: event-type
lookup and creation, availability queries, and booking create, cancel and
reschedule. Every failure surfaces as ``CalComError``; deciding whether a
failure is soft or hard is the caller's job.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, cast

import httpx
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class CalComError(RuntimeError):
    """Raised when the Cal.com API is unreachable or responds with an error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class CalComClient:
    """HTTP client for the Cal.com v1 REST API."""

    def __init__(
        self,
        *,
        api_key: str | SecretStr,
        base_url: str = "https://api.cal.com/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated request to the Cal.com API."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.request(
                    method,
                    url,
                    headers=headers,
                    json=json_body,
                    params=params,
                )
        except httpx.TransportError as exc:
            logger.error("Cal.com API unreachable for %s %s: %s", method, path, exc)
            raise CalComError(message=f"Cal.com API unreachable: {exc}", status_code=None) from exc

        if response.status_code >= 400:
            try:
                parsed_body = response.json()
                error_body = parsed_body if isinstance(parsed_body, dict) else {"raw": response.text[:500]}
            except ValueError:
                error_body = {"raw": response.text[:500]}

            message = error_body.get("message") or error_body.get("error") or response.text
            logger.error(
                "Cal.com API error %s for %s %s: %s",
                response.status_code,
                method,
                path,
                response.text[:500],
            )
            raise CalComError(
                message=str(message),
                status_code=response.status_code,
                details=error_body,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise CalComError(
                message="Cal.com API returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _unwrap(body: Any, key: str) -> Any:
        # v1 responses are either the bare payload or wrapped under a key
        if isinstance(body, dict) and key in body:
            return body[key]
        return body

    # ── Event types ─────────────────────────────────────────────────────

    def list_event_types(self) -> list[dict[str, Any]]:
        body = self._request("GET", "/event-types")
        event_types = self._unwrap(body, "event_types")
        return cast(list[dict[str, Any]], event_types if isinstance(event_types, list) else [])

    def find_event_type(self, slug: str) -> Optional[dict[str, Any]]:
        for event_type in self.list_event_types():
            if event_type.get("slug") == slug:
                return event_type
        return None

    def create_event_type(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = self._request("POST", "/event-types", json_body=payload)
        return cast(dict[str, Any], self._unwrap(body, "event_type"))

    def update_event_type(self, event_type_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        body = self._request("PATCH", f"/event-types/{event_type_id}", json_body=payload)
        return cast(dict[str, Any], self._unwrap(body, "event_type"))

    # ── Availability ────────────────────────────────────────────────────

    def get_availability(self, event_type_id: int, date_from: str, date_to: str) -> list[dict[str, Any]]:
        """
        Available times per day for an event type.

        Returns:
            ``[{"date": "YYYY-MM-DD", "slots": [{"time": ...}, ...]}, ...]``
        """
        body = self._request(
            "GET",
            "/availability",
            params={"dateFrom": date_from, "dateTo": date_to, "eventTypeId": event_type_id},
        )
        days = self._unwrap(body, "availability")
        if not isinstance(days, list):
            raise CalComError("Unexpected availability payload", details={"body": body})
        return cast(list[dict[str, Any]], days)

    # ── Bookings ────────────────────────────────────────────────────────

    def create_booking(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = self._request("POST", "/bookings", json_body=payload)
        return cast(dict[str, Any], self._unwrap(body, "booking"))

    def cancel_booking(self, booking_id: str, reason: str | None = None) -> None:
        self._request(
            "DELETE",
            f"/bookings/{booking_id}",
            json_body={"reason": reason or "Cancelled by user"},
        )

    def reschedule_booking(self, booking_id: str, start: str, end: str) -> dict[str, Any]:
        body = self._request("PATCH", f"/bookings/{booking_id}", json_body={"start": start, "end": end})
        return cast(dict[str, Any], self._unwrap(body, "booking"))
