"""
Snapshot writer: serialize {users, feedbacks, assignmentDetails} into app-data.json.
"""

from datetime import datetime, timezone
from typing import Dict, Any
from storage.datadir import write_json


def format_timestamp(dt: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix, e.g. 2025-07-01T09:30:00.000Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if hasattr(value, 'to_dict'):
        return _to_jsonable(value.to_dict())
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def build_snapshot(users: Dict[str, Any], feedbacks: Dict[str, Any], assignment_details: Dict[str, Any]) -> Dict[str, Any]:
    """Assemble the JSON-ready snapshot. Key names and nesting are consumed as-is by the frontend."""
    return {
        'users': _to_jsonable(users),
        'feedbacks': _to_jsonable(feedbacks),
        'assignmentDetails': _to_jsonable(assignment_details),
    }


def write_snapshot(path: str, snapshot: Dict[str, Any]) -> str:
    """Write the snapshot to path (parent directories are created). Returns the path."""
    return write_json(path, _to_jsonable(snapshot))
