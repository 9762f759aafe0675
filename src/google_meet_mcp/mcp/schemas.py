LIST = {
    "list_meetings": {
        "name": "list_meetings",
        "description": "📅 List upcoming Google Meet meetings",
        "input_schema": {
            "type": "object",
            "required": [],
            "properties": {
                "max_results": {
                    "type": "number",
                    "description": "Maximum number of results to return (default: 10)",
                },
                "time_min": {
                    "type": "string",
                    "format": "date-time",
                    "description": "Start time (ISO format, default: now)",
                },
                "time_max": {
                    "type": "string",
                    "format": "date-time",
                    "description": "End time (ISO format, optional)",
                },
            },
        },
    },
    "get_meeting": {
        "name": "get_meeting",
        "description": "🔍 Get the details of a specific Google Meet meeting",
        "input_schema": {
            "type": "object",
            "required": ["meeting_id"],
            "properties": {
                "meeting_id": {"type": "string", "description": "ID of the meeting to retrieve"},
            },
        },
    },
    "create_meeting": {
        "name": "create_meeting",
        "description": "✨ Create a new Google Meet meeting (with time conflict detection)",
        "input_schema": {
            "type": "object",
            "required": ["summary", "start_time", "end_time"],
            "properties": {
                "summary": {"type": "string", "description": "Meeting title"},
                "description": {"type": "string", "description": "Meeting description (optional)"},
                "start_time": {
                    "type": "string",
                    "format": "date-time",
                    "description": "Start time (ISO format)",
                },
                "end_time": {
                    "type": "string",
                    "format": "date-time",
                    "description": "End time (ISO format)",
                },
                "attendees": {
                    "type": "array",
                    "items": {"type": "string", "format": "email"},
                    "description": "Attendee email addresses (optional)",
                },
                "check_conflicts": {
                    "type": "boolean",
                    "description": "Check for time conflicts first (default: true)",
                },
            },
        },
    },
    "update_meeting": {
        "name": "update_meeting",
        "description": "📝 Update an existing Google Meet meeting",
        "input_schema": {
            "type": "object",
            "required": ["meeting_id"],
            "properties": {
                "meeting_id": {"type": "string", "description": "ID of the meeting to update"},
                "summary": {"type": "string", "description": "New title (optional)"},
                "description": {"type": "string", "description": "New description (optional)"},
                "start_time": {
                    "type": "string",
                    "format": "date-time",
                    "description": "New start time (ISO format, optional)",
                },
                "end_time": {
                    "type": "string",
                    "format": "date-time",
                    "description": "New end time (ISO format, optional)",
                },
                "attendees": {
                    "type": "array",
                    "items": {"type": "string", "format": "email"},
                    "description": "New attendee email addresses (optional)",
                },
            },
        },
    },
    "delete_meeting": {
        "name": "delete_meeting",
        "description": "🗑️ Delete a Google Meet meeting",
        "input_schema": {
            "type": "object",
            "required": ["meeting_id"],
            "properties": {
                "meeting_id": {"type": "string", "description": "ID of the meeting to delete"},
            },
        },
    },
    "check_availability": {
        "name": "check_availability",
        "description": "⏰ Check availability for a time range",
        "input_schema": {
            "type": "object",
            "required": ["start_time", "end_time"],
            "properties": {
                "start_time": {
                    "type": "string",
                    "format": "date-time",
                    "description": "Start time (ISO format)",
                },
                "end_time": {
                    "type": "string",
                    "format": "date-time",
                    "description": "End time (ISO format)",
                },
                "calendars": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": 'Calendars to check (default: ["primary"])',
                },
            },
        },
    },
}
