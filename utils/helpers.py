# utils/helpers.py

from datetime import datetime

import pytz

tz_utc = pytz.UTC


# --- Time helpers ------------------------------------------------------------

def utcnow():
    return datetime.now(tz_utc)


def as_utc(dt):
    """
    Normalize a datetime to tz-aware UTC.
    SQLite hands back naive values; those are stored as UTC so we just attach tzinfo.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz_utc)
    return dt.astimezone(tz_utc)


def floor_minute(dt):
    return as_utc(dt).replace(second=0, microsecond=0)


def to_iso(dt):
    """
    Serialize as ISO-8601 UTC with millisecond precision and a 'Z' suffix,
    e.g. 2024-01-01T00:00:00.000Z
    """
    if dt is None:
        return None
    dt = as_utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_pagination(args, default_limit=10, max_limit=100):
    """
    Read ?page=&limit= from request args; junk values fall back to defaults.
    Returns (page, limit, offset).
    """
    try:
        page = max(1, int(args.get("page", 1)))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max_limit, max(1, int(args.get("limit", default_limit))))
    except (TypeError, ValueError):
        limit = default_limit
    return page, limit, (page - 1) * limit


def pagination_meta(page, limit, total):
    return {"page": page, "limit": limit, "total": total, "pages": -(-total // limit)}


def parse_timestamp(value):
    """
    Parse an ISO-8601 string (accepts 'Z' or an explicit offset) into tz-aware UTC.
    Raises ValueError on anything unparseable.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))
