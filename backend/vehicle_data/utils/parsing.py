"""
Parsing helpers for dealer feed fields shared by the importer and the API.
"""

from datetime import date, datetime

# SQLite INTEGER is a signed 64-bit value
DEALER_ID_MIN = -(2**63)
DEALER_ID_MAX = 2**63 - 1

_DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d", "%m-%d-%Y")


def parse_modified_date(value: str) -> date:
    """Parse ISO dates, ISO datetimes (date part kept) and M/D/YYYY."""
    value = value.strip()
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date '{value}'")


def parse_dealer_id(value: str) -> int:
    """Parse a dealer id, rejecting values that do not fit a storage INTEGER."""
    dealer_id = int(value.strip())
    if not DEALER_ID_MIN <= dealer_id <= DEALER_ID_MAX:
        raise ValueError(f"dealerId {value.strip()} is out of range")
    return dealer_id
