from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from google_meet_mcp.infrastructure.data_models import MeetingRecord

DEFAULT_FMT = "%a %d %b %Y, %H:%M (%Z)"


def pretty_datetime(iso: str | None, tz: str = "UTC", fmt: str = DEFAULT_FMT) -> str:
    """
    Convert an ISO 8601 datetime string (e.g., '2025-10-13T00:00:00.000Z')
    into a nicely formatted time string in `tz`.

    All-day dates ('2025-10-13') are rendered as the date alone. Values that
    cannot be parsed are returned unchanged.

    Args:
        iso: ISO 8601 string; a trailing 'Z' means UTC, naive values are UTC.
        tz: IANA timezone for output (default 'UTC').
        fmt: strftime format for output (default 'Mon 13 Oct 2025, 01:00 (BST)').

    Returns:
        Formatted datetime string in the target timezone.
    """
    if not iso:
        return "-"
    try:
        # Make it RFC 3339-friendly for fromisoformat
        dt = datetime.fromisoformat(iso.replace("Z", "+00:00"))
    except ValueError:
        return iso
    if len(iso) == 10:
        return dt.strftime("%a %d %b %Y")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(ZoneInfo(tz)).strftime(fmt)


def _time_range(start: str, end: str, tz: str) -> str:
    return f"{pretty_datetime(start, tz)} - {pretty_datetime(end, tz)}"


def _conflict_lines(conflicts: list[dict[str, str]], tz: str) -> str:
    return "\n".join(
        f"• {c['summary']} ({_time_range(c['start_time'], c['end_time'], tz)})" for c in conflicts
    )


def render_meeting_list(meetings: list[MeetingRecord], tz: str = "UTC") -> str:
    if not meetings:
        return "📅 No upcoming Google Meet meetings found."

    result_string = f"📅 **Found {len(meetings)} upcoming Google Meet meeting(s)**\n\n"
    entries = []
    for index, meeting in enumerate(meetings, start=1):
        entries.append(
            f"**{index}. {meeting.summary}**\n"
            f"🕐 Time: {_time_range(meeting.start_time, meeting.end_time, tz)}\n"
            f"🔗 Meet link: {meeting.meet_link}\n"
            f"👥 Attendees: {len(meeting.attendees)}\n"
            f"📋 ID: {meeting.id}\n"
        )
    return result_string + "\n".join(entries)


def render_meeting_details(meeting: MeetingRecord, tz: str = "UTC") -> str:
    attendees = "\n".join(f"  • {a.email} ({a.status})" for a in meeting.attendees)
    return (
        "📋 **Meeting details**\n\n"
        f"**Title:** {meeting.summary}\n"
        f"**Description:** {meeting.description or 'None'}\n"
        f"**Start:** {pretty_datetime(meeting.start_time, tz)}\n"
        f"**End:** {pretty_datetime(meeting.end_time, tz)}\n"
        f"**Google Meet link:** {meeting.meet_link}\n"
        f"**Dial-in:** {meeting.phone_info or 'None'}\n"
        f"**Location:** {meeting.location or 'None'}\n"
        f"**Meeting ID:** {meeting.id}\n"
        f"**Attendees:**\n{attendees or '  No attendees'}\n"
        f"**Created:** {pretty_datetime(meeting.created, tz)}\n"
        f"**Last updated:** {pretty_datetime(meeting.updated, tz)}"
    )


def render_created_meeting(
    meeting: MeetingRecord,
    invited: list[str],
    conflicts: list[dict[str, str]] | None = None,
    tz: str = "UTC",
) -> str:
    conflict_warning = ""
    if conflicts:
        lines = _conflict_lines(conflicts, tz)
        conflict_warning = f"\n⚠️ **Time conflict warning:**\n{lines}\n"

    return (
        "✅ **Meeting created!**\n"
        f"{conflict_warning}\n"
        "**Meeting information:**\n"
        f"📋 Title: {meeting.summary}\n"
        f"📝 Description: {meeting.description or 'None'}\n"
        f"🕐 Start: {pretty_datetime(meeting.start_time, tz)}\n"
        f"🕐 End: {pretty_datetime(meeting.end_time, tz)}\n"
        f"🔗 **Google Meet link:** {meeting.meet_link}\n"
        f"📞 Dial-in: {meeting.phone_info or 'None'}\n"
        f"👥 Attendees: {len(meeting.attendees)}\n"
        f"📧 Invitations sent to: {', '.join(invited) or 'nobody'}\n"
        f"🆔 Meeting ID: {meeting.id}\n\n"
        "💡 **Tip:** share the Google Meet link above, or let attendees use their "
        "calendar invitation."
    )


def render_updated_meeting(meeting: MeetingRecord, tz: str = "UTC") -> str:
    return (
        "✅ **Meeting updated!**\n\n"
        "**Updated meeting information:**\n"
        f"📋 Title: {meeting.summary}\n"
        f"📝 Description: {meeting.description or 'None'}\n"
        f"🕐 Start: {pretty_datetime(meeting.start_time, tz)}\n"
        f"🕐 End: {pretty_datetime(meeting.end_time, tz)}\n"
        f"🔗 Google Meet link: {meeting.meet_link}\n"
        f"👥 Attendees: {len(meeting.attendees)}\n"
        f"🆔 Meeting ID: {meeting.id}\n\n"
        "📧 **Update notifications were sent to all attendees.**"
    )


def render_deleted_meeting(meeting_id: str) -> str:
    return (
        "✅ **Meeting deleted!**\n\n"
        f"Meeting ID: {meeting_id}\n\n"
        "📧 **Cancellation notices were sent to all attendees.**"
    )


def render_availability(availability: dict[str, Any], tz: str = "UTC") -> str:
    time_range = availability["time_range"]
    conflicts = availability["conflicts"]
    result_string = (
        "⏰ **Availability check**\n\n"
        "**Time range:**\n"
        f"🕐 {_time_range(time_range['start'], time_range['end'], tz)}\n"
        f"📆 Calendars: {', '.join(availability['checked_calendars'])}\n\n"
    )
    if availability["available"]:
        return (
            result_string
            + "**Result:** ✅ Available\n\n"
            + "🎉 No other meetings in this time range!"
        )
    return (
        result_string
        + "**Result:** ❌ Time conflict\n\n"
        + f"**Conflicting meetings:**\n{_conflict_lines(conflicts, tz)}"
    )
