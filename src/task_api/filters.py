from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .entities import parse_due_date, to_iso
from .errors import FilterError

# Canonical column names keyed by their lowercase spelling
COLUMNS = {"name": "name", "completed": "completed", "duedate": "dueDate"}


@dataclass(frozen=True)
class OrderBy:
    """One ordering term; columns are the wire names: name, completed, dueDate."""

    column: str
    decreasing: bool = False


@dataclass(frozen=True)
class DateRange:
    """Inclusive due date range as canonical ISO8601 UTC strings."""

    from_: str
    to: str


FilterValue = Union[str, bool, DateRange]


@dataclass(frozen=True)
class FilterBy:
    column: str
    value: FilterValue


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class FilterSpec:
    """
    Structured list query, independent of its query-string grammar.

    - order_by: terms applied in sequence, or None for store order
    - filter: single column filter, or None for all tasks
    """

    order_by: Optional[Tuple[OrderBy, ...]] = None
    filter: Optional[FilterBy] = None


def _column(raw: str) -> str:
    column = COLUMNS.get(raw.strip().lower())
    if column is None:
        raise FilterError(f"Invalid column '{raw}'")
    return column


def parse_order(order: Optional[str]) -> Optional[Tuple[OrderBy, ...]]:
    """
    Parse 'column[,DIRECTION](;column[,DIRECTION])*'.

    DIRECTION is ASC or DESC, case-insensitive; ascending when omitted.
    """
    if not order:
        return None

    terms = []
    for item in order.split(";"):
        column, _, direction = item.partition(",")
        column = _column(column)
        direction = direction.strip().upper()
        if direction not in {"", "ASC", "DESC"}:
            raise FilterError(f"Invalid order direction '{direction}'")
        terms.append(OrderBy(column=column, decreasing=direction == "DESC"))
    return tuple(terms)


def parse_filter(expr: Optional[str]) -> Optional[FilterBy]:
    """
    Parse 'column=value'.

    - name=<substring>
    - completed=true|false
    - dueDate=<start>;<end>, both ISO8601 dates, start <= end
    """
    if not expr:
        return None

    raw_column, sep, value = expr.partition("=")
    if not sep:
        raise FilterError(f"Invalid filter '{expr}'")
    column = _column(raw_column)

    if column == "name":
        return FilterBy(column=column, value=value)

    if column == "completed":
        if value not in {"true", "false"}:
            raise FilterError("Completed column filter must be a boolean")
        return FilterBy(column=column, value=value == "true")

    start, sep, end = value.partition(";")
    try:
        if not sep:
            raise ValueError(value)
        start_dt = parse_due_date(start)
        end_dt = parse_due_date(end)
    except ValueError:
        raise FilterError(f"Invalid range '{value}'") from None
    if end_dt < start_dt:
        raise FilterError("Start date can't be after end")
    return FilterBy(column=column, value=DateRange(from_=to_iso(start_dt), to=to_iso(end_dt)))


# PUBLIC_INTERFACE
def parse_filter_spec(order: Optional[str] = None, filter: Optional[str] = None) -> FilterSpec:
    """Build a FilterSpec from the raw 'order' and 'filter' query parameters."""
    return FilterSpec(order_by=parse_order(order), filter=parse_filter(filter))
