"""UTC timestamps in the format carried on the wire (``2024-01-01T12:00:00.000Z``)."""

from datetime import datetime, timezone


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
