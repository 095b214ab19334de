from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from .errors import ValidationError
from .models import NewTask

_MISSING: Any = object()


def parse_due_date(value: Any) -> datetime:
    """
    Normalize a due date input into an aware UTC datetime.

    - Strings are parsed as ISO8601 date or datetime ('2026-01-31',
      '2026-01-31T13:45:00', '2026-01-31T13:45:00.000Z'). A date without time
      means midnight.
    - date/datetime objects are accepted as-is.
    - Naive values are taken to be UTC.

    Raises:
        ValueError if the value is not a recognizable date.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        s = value.strip()
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            d = date.fromisoformat(s)
            dt = datetime(d.year, d.month, d.day)
    else:
        raise ValueError(f"Invalid type for due date: {type(value).__name__}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError:
        # Offset pushes the instant past year 1 or 9999
        raise ValueError(f"Due date out of range: {value}") from None


def to_iso(dt: datetime) -> str:
    """Format a datetime as 'YYYY-MM-DDTHH:MM:SS.mmmZ' in UTC."""
    utc = dt.astimezone(timezone.utc) if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return f"{utc.strftime('%Y-%m-%dT%H:%M:%S')}.{utc.microsecond // 1000:03d}Z"


def normalize_due_date(value: Any) -> str:
    """Parse and re-format a due date; raises ValueError when unparsable."""
    return to_iso(parse_due_date(value))


# PUBLIC_INTERFACE
def validate_task(
    name: Any,
    completed: Any = _MISSING,
    due_date: Any = None,
    now: Optional[datetime] = None,
) -> NewTask:
    """
    Validate raw task fields and build a NewTask.

    Args:
        name: Required, non-empty string. Surrounding whitespace is stripped.
        completed: Must be a bool when given; defaults to False when omitted.
        due_date: None, or anything parse_due_date accepts. The due day (UTC)
            must not be earlier than today's (UTC).
        now: Reference time for the past-date check; defaults to the current UTC time.

    Raises:
        ValidationError with a field-specific message.
    """
    if name is None or (isinstance(name, str) and not name.strip()):
        raise ValidationError("'name' is a required field")
    if not isinstance(name, str):
        raise ValidationError("'name' must be a string")

    if completed is _MISSING:
        completed = False
    if not isinstance(completed, bool):
        raise ValidationError("'completed' must be a boolean")

    normalized: Optional[str] = None
    if due_date is not None:
        try:
            due = parse_due_date(due_date)
        except ValueError:
            raise ValidationError(f"Invalid dueDate '{due_date}'") from None

        today = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).date()
        if due.date() < today:
            raise ValidationError("Can't create a task with a dueDate in the past")
        normalized = to_iso(due)

    return NewTask(name=name.strip(), completed=completed, due_date=normalized)
