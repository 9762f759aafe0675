from __future__ import annotations

import time
import uuid
from datetime import UTC, datetime
from typing import Any

from googleapiclient.errors import HttpError

from google_meet_mcp.errors import MeetingNotFound, NotConferenced, ProviderError
from google_meet_mcp.infrastructure.data_models import Attendee, MeetingRecord

PRIMARY_CALENDAR = "primary"
UNTITLED = "Untitled"


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp or an all-day date.

    Naive values (and plain dates) are taken as UTC so they compare with
    timezone-aware ones.
    """
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def conference_request_id() -> str:
    """Unique id for a conference create request: millisecond timestamp plus random suffix."""
    return f"meet-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def _event_time(event: dict[str, Any], key: str) -> str:
    when = event.get(key) or {}
    return when.get("dateTime") or when.get("date") or ""


def format_meeting_data(event: dict[str, Any] | None) -> MeetingRecord | None:
    """Normalize a Calendar event into a MeetingRecord; None if it has no conference data."""
    if not event or not event.get("conferenceData"):
        return None

    conference = event["conferenceData"]
    meet_link = ""
    phone_info = ""
    entry_points = conference.get("entryPoints") or []
    video = next((ep for ep in entry_points if ep.get("entryPointType") == "video"), None)
    phone = next((ep for ep in entry_points if ep.get("entryPointType") == "phone"), None)
    if video:
        meet_link = video.get("uri", "")
    if phone:
        phone_info = f"{phone.get('label', '')} {phone.get('uri', '')}".strip()

    attendees = [
        Attendee(
            email=a.get("email", ""),
            status=a.get("responseStatus") or "needsAction",
            optional=bool(a.get("optional", False)),
        )
        for a in event.get("attendees") or []
    ]

    return MeetingRecord(
        id=event.get("id", ""),
        summary=event.get("summary") or UNTITLED,
        description=event.get("description") or "",
        start_time=_event_time(event, "start"),
        end_time=_event_time(event, "end"),
        meet_link=meet_link,
        phone_info=phone_info,
        attendees=attendees,
        created=event.get("created"),
        updated=event.get("updated"),
        creator=event.get("creator"),
        organizer=event.get("organizer"),
        status=event.get("status"),
        html_link=event.get("htmlLink"),
        conference_id=conference.get("conferenceId") or "",
        location=event.get("location") or "",
    )


def _provider_error(action: str, e: Exception) -> ProviderError:
    if isinstance(e, HttpError):
        status = e.resp.status
        reason = getattr(e, "reason", None) or str(e)
        cls = MeetingNotFound if status == 404 else ProviderError
        return cls(f"Error {action}: {reason}", status=status)
    return ProviderError(f"Error {action}: {e}")


class CalendarGateway:
    """
    Google Meet operations on top of the Calendar v3 API.

    Args:
        service: A built Calendar v3 service (googleapiclient.discovery.build).
    """

    def __init__(self, service: Any) -> None:
        self._service = service

    def _execute(self, request: Any, action: str) -> Any:
        try:
            return request.execute()
        except Exception as e:
            raise _provider_error(action, e) from e

    def list_meetings(
        self,
        max_results: int = 10,
        time_min: str | None = None,
        time_max: str | None = None,
    ) -> list[MeetingRecord]:
        """List upcoming events that carry Google Meet conference data, by start time."""
        params: dict[str, Any] = {
            "calendarId": PRIMARY_CALENDAR,
            "maxResults": max_results,
            "timeMin": time_min or utc_now_iso(),
            "orderBy": "startTime",
            "singleEvents": True,
            "conferenceDataVersion": 1,
        }
        if time_max:
            params["timeMax"] = time_max

        response = self._execute(self._service.events().list(**params), "listing meetings")
        meetings = []
        for event in response.get("items") or []:
            meeting = format_meeting_data(event)
            if meeting:
                meetings.append(meeting)
        return meetings

    def get_meeting(self, meeting_id: str) -> MeetingRecord:
        event = self._execute(
            self._service.events().get(
                calendarId=PRIMARY_CALENDAR, eventId=meeting_id, conferenceDataVersion=1
            ),
            "getting meeting",
        )
        meeting = format_meeting_data(event)
        if meeting is None:
            raise NotConferenced(f"Event {meeting_id} has no Google Meet conference data")
        return meeting

    def create_meeting(
        self,
        summary: str,
        start_time: str,
        end_time: str,
        description: str = "",
        attendees: list[str] | None = None,
    ) -> MeetingRecord:
        """Create an event with a new Google Meet conference and invite the attendees."""
        event = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": start_time, "timeZone": "UTC"},
            "end": {"dateTime": end_time, "timeZone": "UTC"},
            "attendees": [{"email": email} for email in attendees or []],
            "conferenceData": {"createRequest": {"requestId": conference_request_id()}},
        }
        created = self._execute(
            self._service.events().insert(
                calendarId=PRIMARY_CALENDAR,
                body=event,
                conferenceDataVersion=1,
                sendUpdates="all",
            ),
            "creating meeting",
        )
        meeting = format_meeting_data(created)
        if meeting is None:
            raise ProviderError("Created event did not return conference data")
        return meeting

    def update_meeting(
        self,
        meeting_id: str,
        summary: str | None = None,
        description: str | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
        attendees: list[str] | None = None,
    ) -> MeetingRecord:
        """Apply only the given fields to an existing meeting and notify attendees."""
        event = self._execute(
            self._service.events().get(
                calendarId=PRIMARY_CALENDAR, eventId=meeting_id, conferenceDataVersion=1
            ),
            "updating meeting",
        )

        if summary is not None:
            event["summary"] = summary
        if description is not None:
            event["description"] = description
        if start_time is not None:
            event["start"] = {"dateTime": start_time, "timeZone": "UTC"}
        if end_time is not None:
            event["end"] = {"dateTime": end_time, "timeZone": "UTC"}
        if attendees is not None:
            event["attendees"] = [{"email": email} for email in attendees]

        updated = self._execute(
            self._service.events().update(
                calendarId=PRIMARY_CALENDAR,
                eventId=meeting_id,
                body=event,
                conferenceDataVersion=1,
                sendUpdates="all",
            ),
            "updating meeting",
        )
        meeting = format_meeting_data(updated)
        if meeting is None:
            raise NotConferenced(f"Event {meeting_id} has no Google Meet conference data")
        return meeting

    def delete_meeting(self, meeting_id: str) -> None:
        self._execute(
            self._service.events().delete(
                calendarId=PRIMARY_CALENDAR, eventId=meeting_id, sendUpdates="all"
            ),
            "deleting meeting",
        )

    def check_time_conflicts(
        self,
        start_time: str,
        end_time: str,
        calendars: list[str] | None = None,
    ) -> list[dict[str, str]]:
        """
        Find events that overlap the half-open window [start_time, end_time).

        Two intervals overlap when each starts before the other ends, so an event
        ending exactly at `start_time` is not a conflict.
        """
        check_start = parse_timestamp(start_time)
        check_end = parse_timestamp(end_time)
        conflicts = []

        for calendar_id in calendars or [PRIMARY_CALENDAR]:
            response = self._execute(
                self._service.events().list(
                    calendarId=calendar_id,
                    timeMin=start_time,
                    timeMax=end_time,
                    singleEvents=True,
                    orderBy="startTime",
                    conferenceDataVersion=1,
                ),
                "checking time conflicts",
            )
            for event in response.get("items") or []:
                event_start = _event_time(event, "start")
                event_end = _event_time(event, "end")
                if not event_start or not event_end:
                    continue
                if parse_timestamp(event_start) < check_end and check_start < parse_timestamp(
                    event_end
                ):
                    conflicts.append({
                        "id": event.get("id", ""),
                        "summary": event.get("summary") or UNTITLED,
                        "start_time": event_start,
                        "end_time": event_end,
                        "calendar": calendar_id,
                    })
        return conflicts

    def check_availability(
        self,
        start_time: str,
        end_time: str,
        calendars: list[str] | None = None,
    ) -> dict[str, Any]:
        calendars = calendars or [PRIMARY_CALENDAR]
        conflicts = self.check_time_conflicts(start_time, end_time, calendars)
        return {
            "available": not conflicts,
            "conflicts": conflicts,
            "checked_calendars": calendars,
            "time_range": {"start": start_time, "end": end_time},
        }

    def get_free_busy(
        self,
        start_time: str,
        end_time: str,
        calendars: list[str] | None = None,
    ) -> dict[str, Any]:
        """Busy intervals and per-calendar errors from the free/busy endpoint."""
        body = {
            "timeMin": start_time,
            "timeMax": end_time,
            "items": [{"id": c} for c in (calendars or [PRIMARY_CALENDAR])],
        }
        response = self._execute(
            self._service.freebusy().query(body=body), "getting free/busy information"
        )
        busy_times = {
            calendar_id: {"busy": data.get("busy") or [], "errors": data.get("errors") or []}
            for calendar_id, data in (response.get("calendars") or {}).items()
        }
        return {"time_range": {"start": start_time, "end": end_time}, "calendars": busy_times}
