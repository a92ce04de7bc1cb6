"""Application-wide constants for the PNW Sauna booking platform."""

from __future__ import annotations

from datetime import time

BRAND_NAME = "PNW Sauna"
SAUNA_LOCATION = "Atlas Waterfront Park, Coeur d'Alene, Idaho"

# Session windows as (start, end) wall-clock times.
COMMUNITY_HOURS = [
    (time(6, 0), time(7, 0)),
    (time(7, 0), time(8, 0)),
    (time(8, 0), time(9, 0)),
    (time(19, 0), time(20, 0)),
    (time(20, 0), time(21, 0)),
    (time(21, 0), time(22, 0)),
    (time(22, 0), time(23, 0)),
]

# Private sessions run on the hour from 7am through the 9pm start.
PRIVATE_HOURS = [(time(hour, 0), time(hour + 1, 0)) for hour in range(7, 22)]

# Capacity
DEFAULT_SLOT_CAPACITY = 8
MIN_PARTY_SIZE = 1
MAX_PARTY_SIZE = 8

# Private event requests
MAX_EVENT_GUESTS = 50
ENQUIRY_PHONE = "(360) 977-3487"

# Catalog horizon
SLOT_HORIZON_DAYS = 30

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 1000

# Text constraints
MAX_NOTES_LENGTH = 1000
MAX_REASON_LENGTH = 255

# Waivers
WAIVER_VERSION = "1.0"

# Frontend paths
BOOKING_SUCCESS_PATH = "/booking-success"
BOOKING_CANCEL_PATH = "/book"
MEMBERSHIP_SUCCESS_PATH = "/membership/success"
MEMBERSHIP_CANCEL_PATH = "/membership"


def private_window_for(start: time) -> tuple[time, time] | None:
    """Return the configured private window starting at ``start``, if any."""
    for window in PRIVATE_HOURS:
        if window[0] == start:
            return window
    return None
