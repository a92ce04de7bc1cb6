from datetime import time


def twelve_hour(t: time) -> str:
    """7:00 PM style display."""
    hour = t.hour % 12 or 12
    suffix = "AM" if t.hour < 12 else "PM"
    return f"{hour}:{t.minute:02d} {suffix}"


def window_display(start: time, end: time) -> str:
    return f"{twelve_hour(start)} - {twelve_hour(end)}"
