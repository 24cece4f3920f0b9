from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from agents.tools.base import ToolBase
from agents.tools.exceptions import ToolConfigurationError

FORMATS = ("iso", "unix", "human")


class CurrentTimeTool(ToolBase):
    name = "current_time"
    description = "Get the current date and time in various formats"

    def __init__(self, clock=None):
        super().__init__()
        self._clock = clock or (lambda: datetime.now(dt_timezone.utc))

    def validate(self, parameters: Dict[str, Any]) -> None:
        super().validate(parameters)
        fmt = parameters.get("format", "iso")
        if fmt not in FORMATS:
            raise ToolConfigurationError(
                f"Unsupported format '{fmt}'. Allowed: {', '.join(FORMATS)}", tool_id=self.id
            )

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        tz_name = parameters.get("timezone") or config.get("timezone") or "UTC"
        fmt = parameters.get("format", "iso")
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ToolConfigurationError(f"Unknown timezone '{tz_name}'", tool_id=self.id) from exc

        now = self._clock().astimezone(tz)
        unix_timestamp = int(now.timestamp())
        if fmt == "unix":
            formatted: Any = unix_timestamp
        elif fmt == "human":
            formatted = now.strftime("%A, %B %d, %Y %I:%M:%S %p %Z")
        else:
            formatted = now.isoformat()

        date_string = now.strftime("%Y-%m-%d")
        return {
            "success": True,
            "current_date": date_string,
            "current_time": formatted,
            "timezone": tz_name,
            "format": fmt,
            "unix_timestamp": unix_timestamp,
            "iso_string": now.isoformat(),
            "year": now.year,
            "month": now.month,
            "day": now.day,
            "message": f"Current time retrieved successfully: {date_string}",
        }
