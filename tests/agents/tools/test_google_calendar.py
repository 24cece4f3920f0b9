import json
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import httpx
import pytest

from agents.tools.builtin.google_calendar import GoogleCalendarTool, find_free_slots, format_event
from agents.tools.exceptions import MissingAPIKeyError, ToolConfigurationError, ToolExecutionError

MONDAY_8AM = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)


def _tool(handler):
    return GoogleCalendarTool(
        httpx.Client(transport=httpx.MockTransport(handler)),
        api_url="https://calendar.test/v3",
        token_url="https://oauth.test/token",
        clock=lambda: MONDAY_8AM,
    )


def _event(event_id, start, end, summary="Meeting"):
    return {"id": event_id, "summary": summary, "start": {"dateTime": start}, "end": {"dateTime": end}}


def test_find_free_slots_skips_busy_time_and_weekends():
    tz = ZoneInfo("UTC")
    events = [_event("e1", "2025-01-06T10:00:00Z", "2025-01-06T11:00:00Z")]

    slots = find_free_slots(
        events,
        datetime(2025, 1, 4, 0, 0, tzinfo=tz),
        datetime(2025, 1, 6, 23, 0, tzinfo=tz),
        60,
        tz,
    )

    assert [s["start"] for s in slots] == ["2025-01-06T09:00:00+00:00", "2025-01-06T11:00:00+00:00"]
    assert slots[0]["end"] == "2025-01-06T10:00:00+00:00"


def test_find_free_slots_requires_full_duration():
    tz = ZoneInfo("UTC")
    events = [
        _event("e1", "2025-01-06T09:30:00Z", "2025-01-06T12:00:00Z"),
        _event("e2", "2025-01-06T12:30:00Z", "2025-01-06T17:00:00Z"),
    ]
    slots = find_free_slots(
        events, datetime(2025, 1, 6, 0, 0, tzinfo=tz), datetime(2025, 1, 6, 23, 0, tzinfo=tz), 45, tz
    )
    assert slots == []


def test_format_event_flattens_google_payload():
    formatted = format_event(
        {
            **_event("abc123", "2025-01-06T10:00:00Z", "2025-01-06T11:00:00Z"),
            "attendees": [{"email": "a@x.test", "responseStatus": "accepted", "self": True}],
        }
    )
    assert formatted["start"] == "2025-01-06T10:00:00Z"
    assert formatted["attendees"] == [{"email": "a@x.test", "responseStatus": "accepted"}]
    assert formatted["description"] == ""


def test_create_event_posts_event_with_attendees():
    captured = {}

    def handler(request):
        captured["request"] = request
        body = json.loads(request.content)
        return httpx.Response(200, json={"id": "evt-0000001", **body})

    result = _tool(handler).execute(
        {
            "action": "create_event",
            "summary": "Demo",
            "start_time": "2025-01-07T10:00:00Z",
            "end_time": "2025-01-07T11:00:00Z",
            "attendees": ["b@x.test"],
        },
        {"encrypted_access_token": "token-1", "calendar_id": "team@x.test"},
    )

    request = captured["request"]
    assert request.method == "POST"
    assert "/v3/calendars/team%40x.test/events" in str(request.url)
    assert request.url.params["sendUpdates"] == "all"
    assert request.headers["Authorization"] == "Bearer token-1"
    assert result["success"] is True
    assert result["event"]["id"] == "evt-0000001"
    assert result["calendar_id"] == "team@x.test"


def test_find_free_slots_action_uses_listed_events():
    def handler(request):
        return httpx.Response(200, json={"items": [_event("e1", "2025-01-06T10:00:00Z", "2025-01-06T11:00:00Z")]})

    result = _tool(handler).execute(
        {
            "action": "find_free_slots",
            "duration_minutes": 60,
            "time_min": "2025-01-06T00:00:00Z",
            "time_max": "2025-01-06T23:00:00Z",
            "access_token": "t",
        },
        {},
    )

    assert result["total_slots_found"] == 2
    assert result["free_slots"][0]["start"] == "2025-01-06T09:00:00+00:00"


def test_expired_token_is_refreshed_once(monkeypatch):
    monkeypatch.setenv("CALENDAR_GOOGLE_CLIENT_ID", "cid")
    monkeypatch.setenv("CALENDAR_GOOGLE_CLIENT_SECRET", "secret")
    auth_headers = []

    def handler(request):
        if request.url.host == "oauth.test":
            return httpx.Response(200, json={"access_token": "fresh"})
        auth_headers.append(request.headers["Authorization"])
        if request.headers["Authorization"] == "Bearer stale":
            return httpx.Response(401, json={"error": {"message": "Invalid Credentials"}})
        return httpx.Response(200, json={"items": []})

    result = _tool(handler).execute(
        {"action": "list_events", "access_token": "stale", "refresh_token": "r-1"}, {}
    )

    assert auth_headers == ["Bearer stale", "Bearer fresh"]
    assert result["total_events"] == 0


def test_refresh_without_client_credentials_raises(monkeypatch):
    monkeypatch.delenv("CALENDAR_GOOGLE_CLIENT_ID", raising=False)
    monkeypatch.delenv("CALENDAR_GOOGLE_CLIENT_SECRET", raising=False)

    tool = _tool(lambda request: httpx.Response(401, json={}))
    with pytest.raises(MissingAPIKeyError):
        tool.execute({"action": "list_events", "access_token": "a", "refresh_token": "r"}, {})


def test_not_found_maps_to_helpful_message():
    tool = _tool(lambda request: httpx.Response(404, json={"error": {"message": "Not Found"}}))
    with pytest.raises(ToolExecutionError, match="Not found: Not Found. The event or calendar may not exist."):
        tool.execute({"action": "get_event", "event_id": "abcdefghijkl", "access_token": "a"}, {})


def test_validation_rules():
    tool = GoogleCalendarTool()
    with pytest.raises(ToolConfigurationError, match="Invalid event_id format"):
        tool.validate({"action": "delete_event", "event_id": "short"})
    with pytest.raises(ToolConfigurationError, match="Unsupported action"):
        tool.validate({"action": "share_calendar"})
    with pytest.raises(ToolConfigurationError, match="Start time and end time are required"):
        tool.validate({"action": "create_event", "summary": "x"})
    with pytest.raises(ToolConfigurationError, match="Access token is required"):
        tool.execute({"action": "list_events"}, {})
