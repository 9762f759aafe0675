from typing import Any

from mcp.shared.exceptions import McpError
from mcp.types import INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData

from google_meet_mcp.mcp.schemas import LIST
from google_meet_mcp.services.renderer_service import (
    render_availability,
    render_created_meeting,
    render_deleted_meeting,
    render_meeting_details,
    render_meeting_list,
    render_updated_meeting,
)
from google_meet_mcp.tools.calendar import CalendarGateway, parse_timestamp


def list_tools() -> list[dict[str, Any]]:
    return [
        {"name": v["name"], "description": v["description"], "input_schema": v["input_schema"]}
        for v in LIST.values()
    ]


def _invalid(message: str) -> McpError:
    return McpError(ErrorData(code=INVALID_PARAMS, message=message))


def _require(args: dict[str, Any], *names: str) -> None:
    missing = [n for n in names if args.get(n) in (None, "")]
    if missing:
        raise _invalid(f"Missing required parameter(s): {', '.join(missing)}")


def _timestamp(args: dict[str, Any], name: str) -> str | None:
    value = args.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _invalid(f"{name} must be an ISO 8601 string")
    try:
        parse_timestamp(value)
    except ValueError:
        raise _invalid(f"{name} is not a valid ISO 8601 timestamp: {value}") from None
    return value


def _time_window(args: dict[str, Any], start_name: str, end_name: str) -> None:
    start = _timestamp(args, start_name)
    end = _timestamp(args, end_name)
    if start and end and parse_timestamp(end) <= parse_timestamp(start):
        raise _invalid(f"{end_name} must be later than {start_name}")


def _string_list(args: dict[str, Any], name: str) -> list[str] | None:
    value = args.get(name)
    if value is None:
        return None
    if isinstance(value, str):
        value = [v.strip() for v in value.split(",") if v.strip()]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise _invalid(f"{name} must be a list of strings")
    return value


def _max_results(args: dict[str, Any]) -> int:
    value = args.get("max_results", 10)
    try:
        max_results = int(value)
    except (TypeError, ValueError):
        raise _invalid(f"max_results must be a number: {value}") from None
    if max_results < 1:
        raise _invalid("max_results must be at least 1")
    return max_results


def call_tool(gateway: CalendarGateway, name: str, args: dict[str, Any], tz: str = "UTC") -> str:
    """
    Validate the arguments of tool `name`, run it against `gateway` and render the result.

    Raises:
        McpError: INVALID_PARAMS for bad arguments, METHOD_NOT_FOUND for unknown tools.
        ProviderError: When the Calendar API call fails.
    """
    if name == "list_meetings":
        _time_window(args, "time_min", "time_max")
        meetings = gateway.list_meetings(
            max_results=_max_results(args),
            time_min=args.get("time_min"),
            time_max=args.get("time_max"),
        )
        return render_meeting_list(meetings, tz)

    if name == "get_meeting":
        _require(args, "meeting_id")
        return render_meeting_details(gateway.get_meeting(args["meeting_id"]), tz)

    if name == "create_meeting":
        _require(args, "summary", "start_time", "end_time")
        _time_window(args, "start_time", "end_time")
        attendees = _string_list(args, "attendees") or []

        conflicts = []
        if args.get("check_conflicts", True) is not False:
            conflicts = gateway.check_time_conflicts(args["start_time"], args["end_time"])

        meeting = gateway.create_meeting(
            summary=args["summary"],
            start_time=args["start_time"],
            end_time=args["end_time"],
            description=args.get("description") or "",
            attendees=attendees,
        )
        return render_created_meeting(meeting, attendees, conflicts, tz)

    if name == "update_meeting":
        _require(args, "meeting_id")
        _time_window(args, "start_time", "end_time")
        meeting = gateway.update_meeting(
            args["meeting_id"],
            summary=args.get("summary"),
            description=args.get("description"),
            start_time=args.get("start_time"),
            end_time=args.get("end_time"),
            attendees=_string_list(args, "attendees"),
        )
        return render_updated_meeting(meeting, tz)

    if name == "delete_meeting":
        _require(args, "meeting_id")
        gateway.delete_meeting(args["meeting_id"])
        return render_deleted_meeting(args["meeting_id"])

    if name == "check_availability":
        _require(args, "start_time", "end_time")
        _time_window(args, "start_time", "end_time")
        availability = gateway.check_availability(
            args["start_time"], args["end_time"], _string_list(args, "calendars")
        )
        return render_availability(availability, tz)

    raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))
