"""Google Calendar actions over the Calendar REST v3 API."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone as dt_timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from agents.security import PassthroughDecryptor, SecretDecryptor
from agents.tools.base import ToolBase
from agents.tools.exceptions import MissingAPIKeyError, ToolConfigurationError, ToolExecutionError
from utils.logger import get_logger

logger = get_logger(__name__)

CALENDAR_API_URL = "https://www.googleapis.com/calendar/v3"
TOKEN_URL = "https://oauth2.googleapis.com/token"
ACTIONS = ("create_event", "list_events", "get_event", "update_event", "delete_event", "find_free_slots")
EVENT_ID_ACTIONS = ("get_event", "update_event", "delete_event")
WORKING_HOURS = (9, 17)
MAX_FREE_SLOTS = 20
DEFAULT_LOOKAHEAD_DAYS = 7


def _parse_time(value: str, tz: ZoneInfo) -> datetime:
    """Parse RFC 3339 date-times and all-day dates; naive values are read in *tz*."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=tz)


def _event_bounds(event: Dict[str, Any], tz: ZoneInfo) -> tuple[datetime, datetime]:
    start = event.get("start") or {}
    end = event.get("end") or {}
    return (
        _parse_time(start.get("dateTime") or start["date"], tz),
        _parse_time(end.get("dateTime") or end["date"], tz),
    )


def find_free_slots(
    events: List[Dict[str, Any]],
    range_start: datetime,
    range_end: datetime,
    duration_minutes: int,
    tz: ZoneInfo,
) -> List[Dict[str, Any]]:
    """Weekday gaps of at least *duration_minutes* inside working hours, earliest first."""
    duration = timedelta(minutes=duration_minutes)
    busy = sorted((_event_bounds(e, tz) for e in events), key=lambda pair: pair[0])
    slots: List[Dict[str, Any]] = []

    day = range_start.astimezone(tz).date()
    last_day = range_end.astimezone(tz).date()
    while day <= last_day:
        if day.weekday() < 5:
            day_start = max(datetime.combine(day, time(WORKING_HOURS[0]), tzinfo=tz), range_start)
            day_end = min(datetime.combine(day, time(WORKING_HOURS[1]), tzinfo=tz), range_end)
            cursor = day_start
            for busy_start, busy_end in busy:
                if busy_end <= day_start or busy_start >= day_end:
                    continue
                if busy_start - cursor >= duration:
                    slots.append(_slot(cursor, duration, duration_minutes))
                cursor = max(cursor, busy_end)
            if cursor < day_end and day_end - cursor >= duration:
                slots.append(_slot(cursor, duration, duration_minutes))
        day += timedelta(days=1)
    return slots


def _slot(start: datetime, duration: timedelta, duration_minutes: int) -> Dict[str, Any]:
    return {"start": start.isoformat(), "end": (start + duration).isoformat(), "duration_minutes": duration_minutes}


def format_event(event: Dict[str, Any]) -> Dict[str, Any]:
    start = event.get("start") or {}
    end = event.get("end") or {}
    return {
        "id": event.get("id"),
        "summary": event.get("summary"),
        "description": event.get("description") or "",
        "location": event.get("location") or "",
        "start": start.get("dateTime") or start.get("date"),
        "end": end.get("dateTime") or end.get("date"),
        "timezone": start.get("timeZone") or "",
        "attendees": [
            {"email": a.get("email"), "responseStatus": a.get("responseStatus")}
            for a in event.get("attendees") or []
        ],
        "htmlLink": event.get("htmlLink"),
        "status": event.get("status"),
        "created": event.get("created"),
        "updated": event.get("updated"),
    }


@dataclass
class _Credentials:
    access_token: str
    refresh_token: Optional[str] = None
    refreshed: bool = False


class GoogleCalendarTool(ToolBase):
    name = "google_calendar"
    description = "Create, list, update and delete Google Calendar events and find free slots"
    required_parameters = ("action",)

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        decryptor: SecretDecryptor | None = None,
        api_url: str = CALENDAR_API_URL,
        token_url: str = TOKEN_URL,
        clock: Callable[[], datetime] | None = None,
        timeout: float = 30.0,
    ):
        super().__init__()
        self.client = client or httpx.Client()
        self.decryptor = decryptor or PassthroughDecryptor()
        self.api_url = api_url.rstrip("/")
        self.token_url = token_url
        self._clock = clock or (lambda: datetime.now(dt_timezone.utc))
        self.timeout = timeout

    def validate(self, parameters: Dict[str, Any]) -> None:
        super().validate(parameters)
        action = parameters["action"]
        if action not in ACTIONS:
            raise ToolConfigurationError(f"Unsupported action: {action}", tool_id=self.id)

        if action in EVENT_ID_ACTIONS:
            event_id = parameters.get("event_id")
            if not event_id:
                raise ToolConfigurationError(f"Event ID is required for {action} action", tool_id=self.id)
            if " " in str(event_id) or len(str(event_id)) < 10:
                raise ToolConfigurationError(
                    f'Invalid event_id format: "{event_id}". Event IDs should be long strings without spaces. '
                    "Please use list_events to get the correct event_id.",
                    tool_id=self.id,
                )
        if action == "create_event":
            if not parameters.get("summary"):
                raise ToolConfigurationError("Event summary (title) is required", tool_id=self.id)
            if not parameters.get("start_time") or not parameters.get("end_time"):
                raise ToolConfigurationError("Start time and end time are required", tool_id=self.id)
        if action == "find_free_slots" and not parameters.get("duration_minutes"):
            raise ToolConfigurationError("Duration in minutes is required for find_free_slots action", tool_id=self.id)

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        action = parameters["action"]
        calendar_id = parameters.get("calendar_id") or config.get("calendar_id") or "primary"
        tz_name = parameters.get("timezone") or config.get("timezone") or "UTC"
        credentials = self._credentials(parameters, config)

        handler = getattr(self, f"_{action}")
        result = handler(credentials, calendar_id, parameters, tz_name)
        logger.info("calendar_action_completed", action=action, calendar_id=calendar_id)
        return {
            "success": True,
            "action": action,
            **result,
            "calendar_id": calendar_id,
            "user_email": config.get("user_email"),
        }

    # actions

    def _create_event(self, creds: _Credentials, calendar_id: str, p: Dict[str, Any], tz_name: str) -> Dict[str, Any]:
        attendees = p.get("attendees") or []
        event = {
            "summary": p["summary"],
            "description": p.get("description"),
            "location": p.get("location"),
            "start": {"dateTime": p["start_time"], "timeZone": tz_name},
            "end": {"dateTime": p["end_time"], "timeZone": tz_name},
        }
        if attendees:
            event["attendees"] = [{"email": email} for email in attendees]
        data = self._request(
            creds, "POST", self._events_path(calendar_id),
            params={"sendUpdates": "all" if attendees else "none"}, json=event,
        )
        return {"event": format_event(data), "message": "Event created successfully"}

    def _list_events(self, creds: _Credentials, calendar_id: str, p: Dict[str, Any], tz_name: str) -> Dict[str, Any]:
        params = {
            "maxResults": p.get("max_results", 10),
            "singleEvents": "true",
            "orderBy": "startTime",
            "timeMin": p.get("time_min") or self._clock().isoformat(),
        }
        if p.get("time_max"):
            params["timeMax"] = p["time_max"]
        items = self._request(creds, "GET", self._events_path(calendar_id), params=params).get("items") or []
        return {
            "events": [format_event(e) for e in items],
            "total_events": len(items),
            "message": f"Found {len(items)} event(s)",
        }

    def _get_event(self, creds: _Credentials, calendar_id: str, p: Dict[str, Any], tz_name: str) -> Dict[str, Any]:
        data = self._request(creds, "GET", self._event_path(calendar_id, p["event_id"]))
        return {"event": format_event(data), "message": "Event retrieved successfully"}

    def _update_event(self, creds: _Credentials, calendar_id: str, p: Dict[str, Any], tz_name: str) -> Dict[str, Any]:
        path = self._event_path(calendar_id, p["event_id"])
        event = dict(self._request(creds, "GET", path))
        for key in ("summary", "description", "location"):
            if key in p:
                event[key] = p[key]
        if "start_time" in p:
            event["start"] = {"dateTime": p["start_time"], "timeZone": tz_name}
        if "end_time" in p:
            event["end"] = {"dateTime": p["end_time"], "timeZone": tz_name}
        if "attendees" in p:
            event["attendees"] = [{"email": email} for email in p["attendees"] or []]

        send_updates = "all" if event.get("attendees") else "none"
        data = self._request(creds, "PUT", path, params={"sendUpdates": send_updates}, json=event)
        return {"event": format_event(data), "message": "Event updated successfully"}

    def _delete_event(self, creds: _Credentials, calendar_id: str, p: Dict[str, Any], tz_name: str) -> Dict[str, Any]:
        self._request(creds, "DELETE", self._event_path(calendar_id, p["event_id"]), params={"sendUpdates": "all"})
        return {"event_id": p["event_id"], "message": "Event deleted successfully"}

    def _find_free_slots(self, creds: _Credentials, calendar_id: str, p: Dict[str, Any], tz_name: str) -> Dict[str, Any]:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ToolConfigurationError(f"Unknown timezone '{tz_name}'", tool_id=self.id) from exc

        now = self._clock()
        range_start = _parse_time(p["time_min"], tz) if p.get("time_min") else now
        range_end = _parse_time(p["time_max"], tz) if p.get("time_max") else now + timedelta(days=DEFAULT_LOOKAHEAD_DAYS)
        duration = int(p["duration_minutes"])

        items = self._request(
            creds, "GET", self._events_path(calendar_id),
            params={
                "timeMin": range_start.isoformat(),
                "timeMax": range_end.isoformat(),
                "singleEvents": "true",
                "orderBy": "startTime",
            },
        ).get("items") or []
        slots = find_free_slots(items, range_start, range_end, duration, tz)
        return {
            "free_slots": slots[:MAX_FREE_SLOTS],
            "total_slots_found": len(slots),
            "duration_minutes": duration,
            "timezone": tz_name,
            "message": f"Found {len(slots)} available time slot(s)",
        }

    # transport

    def _credentials(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> _Credentials:
        access_token = parameters.get("access_token")
        refresh_token = parameters.get("refresh_token")
        if not access_token and config.get("encrypted_access_token"):
            access_token = self.decryptor.decrypt(config["encrypted_access_token"])
        if not refresh_token and config.get("encrypted_refresh_token"):
            refresh_token = self.decryptor.decrypt(config["encrypted_refresh_token"])
        if not access_token:
            raise ToolConfigurationError(
                "Access token is required for Google Calendar authentication. Please configure the Google "
                "Calendar tool with OAuth tokens or provide access_token in parameters.",
                tool_id=self.id,
            )
        return _Credentials(access_token=access_token, refresh_token=refresh_token)

    def _events_path(self, calendar_id: str) -> str:
        return f"/calendars/{quote(calendar_id, safe='')}/events"

    def _event_path(self, calendar_id: str, event_id: str) -> str:
        return f"{self._events_path(calendar_id)}/{quote(str(event_id), safe='')}"

    def _request(self, creds: _Credentials, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = self._send(creds, method, path, **kwargs)
        if response.status_code == 401 and creds.refresh_token and not creds.refreshed:
            self._refresh(creds)
            response = self._send(creds, method, path, **kwargs)

        if response.status_code >= 400:
            raise ToolExecutionError(self._error_message(response), tool_id=self.id)
        if not response.content:
            return {}
        return response.json()

    def _send(self, creds: _Credentials, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return self.client.request(
                method,
                f"{self.api_url}{path}",
                headers={"Authorization": f"Bearer {creds.access_token}"},
                timeout=self.timeout,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise ToolExecutionError(f"Google Calendar request failed: {exc}", tool_id=self.id) from exc

    def _refresh(self, creds: _Credentials) -> None:
        client_id = os.getenv("CALENDAR_GOOGLE_CLIENT_ID")
        client_secret = os.getenv("CALENDAR_GOOGLE_CLIENT_SECRET")
        if not client_id or not client_secret:
            raise MissingAPIKeyError(
                "CALENDAR_GOOGLE_CLIENT_ID" if not client_id else "CALENDAR_GOOGLE_CLIENT_SECRET",
                tool_id=self.id,
                api_name="Google Calendar",
            )
        try:
            response = self.client.post(
                self.token_url,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": creds.refresh_token,
                    "client_id": client_id,
                    "client_secret": client_secret,
                },
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise ToolExecutionError(f"Google token refresh failed: {exc}", tool_id=self.id) from exc

        creds.refreshed = True
        try:
            token = response.json().get("access_token") if response.status_code < 400 else None
        except ValueError:
            token = None
        if not token:
            raise ToolExecutionError(self._error_message(response), tool_id=self.id)
        creds.access_token = token
        logger.info("calendar_token_refreshed")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message") or response.reason_phrase
        else:
            message = str(error or payload.get("error_description") or response.reason_phrase)

        code = response.status_code
        if code == 401 or "invalid_grant" in message or "invalid_request" in message:
            return (
                f"Authentication failed: {message}. The access token may have expired. Please re-authorize "
                "the Google Calendar connection by visiting your account settings and reconnecting your Google account."
            )
        if code == 403:
            return f"Permission denied: {message}. Make sure the Google account has granted calendar access permissions."
        if code == 404:
            return f"Not found: {message}. The event or calendar may not exist."
        return f"Google Calendar API error {code}: {message}"
