"""
Calendar day handling for leave and travel requests.

Every date that enters the engine goes through ``normalize`` first. Dates are
plain ``datetime.date`` values: no time component and no timezone. Timestamps
are cut to their calendar-day part as written, never shifted to another zone,
so ``2025-03-10T23:30:00-08:00`` is the 10th, not the 11th.
"""
import re
from datetime import date, datetime
from typing import Any, Iterable, Iterator, Tuple, Union

from hr201.core.exceptions import InvalidDateFormatError

_YMD = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_MDY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_TIMESTAMP = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?$"
)

RawDate = Union[str, date, datetime]


def normalize(raw: RawDate) -> date:
    """
    Convert one raw value to a calendar day.

    Accepts ``YYYY-MM-DD``, ``MM/DD/YYYY`` (one or two digit month/day),
    ISO timestamps with or without offset, and ``date``/``datetime`` objects.
    Anything else raises InvalidDateFormatError.
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        raise InvalidDateFormatError(raw)

    text = raw.strip()
    match = _YMD.match(text) or _ISO_TIMESTAMP.match(text)
    if match:
        year, month, day = match.group(1), match.group(2), match.group(3)
    else:
        match = _MDY.match(text)
        if not match:
            raise InvalidDateFormatError(raw)
        month, day, year = match.group(1), match.group(2), match.group(3)

    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        # e.g. 2025-02-30
        raise InvalidDateFormatError(raw) from None


def to_ymd(value: date) -> str:
    return value.isoformat()


class DateSet:
    """Ordered, duplicate-free, immutable collection of calendar days."""

    __slots__ = ("_days",)

    def __init__(self, days: Iterable[date] = ()):
        self._days: Tuple[date, ...] = tuple(sorted(set(days)))

    @classmethod
    def from_raw(cls, values: Iterable[RawDate]) -> "DateSet":
        return cls(normalize(v) for v in values)

    @property
    def days(self) -> Tuple[date, ...]:
        return self._days

    @property
    def first(self) -> date:
        return self._days[0]

    @property
    def last(self) -> date:
        return self._days[-1]

    def is_empty(self) -> bool:
        return not self._days

    def overlaps(self, other: "DateSet") -> bool:
        return not set(self._days).isdisjoint(other._days)

    def intersection(self, other: "DateSet") -> "DateSet":
        return DateSet(set(self._days) & set(other._days))

    def union(self, other: "DateSet") -> "DateSet":
        return DateSet(self._days + other._days)

    def to_strings(self) -> list:
        return [to_ymd(d) for d in self._days]

    def __iter__(self) -> Iterator[date]:
        return iter(self._days)

    def __len__(self) -> int:
        return len(self._days)

    def __contains__(self, item: Any) -> bool:
        return item in self._days

    def __bool__(self) -> bool:
        return bool(self._days)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DateSet):
            return self._days == other._days
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._days)

    def __repr__(self) -> str:
        return f"DateSet({self.to_strings()})"


def overlaps(set_a: DateSet, set_b: DateSet) -> bool:
    return set_a.overlaps(set_b)


def intersection(set_a: DateSet, set_b: DateSet) -> DateSet:
    return set_a.intersection(set_b)


def union(set_a: DateSet, set_b: DateSet) -> DateSet:
    return set_a.union(set_b)
