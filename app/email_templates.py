from html import escape


def reminder_subject(event_name: str) -> str:
    return f"Reminder: {event_name} starts soon"


def reminder_text(attendee_name: str, event_name: str, starts_at: str, location: str) -> str:
    return (
        f"Hi {attendee_name},\n\n"
        f"This is a reminder that {event_name} starts at {starts_at} ({location}).\n"
        "See you there!"
    )


def reminder_html(attendee_name: str, event_name: str, starts_at: str, location: str) -> str:
    return f"""
      <p>Hi {escape(attendee_name)},</p>
      <p>This is a reminder that <strong>{escape(event_name)}</strong> starts at
      {escape(starts_at)} ({escape(location)}).</p>
      <p>See you there!</p>
    """
