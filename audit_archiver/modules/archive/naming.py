"""Archive object names: ``<start>-<end>-idcs-audit-events.json``."""

from __future__ import annotations

import re
from datetime import UTC, datetime

ARCHIVE_SUFFIX = "idcs-audit-events.json"

# The end timestamp is the last ISO timestamp preceded by "<start>Z-".
_END_TIMESTAMP_RE = re.compile(r"^.*Z-(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z)")


def archive_object_name(start_timestamp: str, end_timestamp: str) -> str:
    return f"{start_timestamp}-{end_timestamp}-{ARCHIVE_SUFFIX}"


def parse_end_timestamp(object_name: str) -> str | None:
    """Return the batch end timestamp embedded in a name, or ``None`` if malformed."""
    match = _END_TIMESTAMP_RE.match(object_name)
    if match is None:
        return None
    return match.group(1)


def format_timestamp(moment: datetime) -> str:
    """Render a UTC timestamp with millisecond precision, e.g. ``2020-09-07T00:00:00.000Z``."""
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 UTC timestamp as written by IDCS and this archiver."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def day_prefix(moment: datetime) -> str:
    """Object-name prefix (``YYYY-MM-DD``) that partitions archives by UTC day."""
    return moment.astimezone(UTC).date().isoformat()
