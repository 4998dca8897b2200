"""Filter normalization for image search.

Turns the loosely-typed filter mapping received from the transport layer
(query-string values, CLI options) into a typed ``SearchFilterSet``:

- unrecognized keys are dropped here and never reach the composer
- empty or unparseable values are treated as "no constraint"
- boolean modes fall back to OR
- megabyte size bounds are converted to bytes
- tag names are resolved against the owner's tag catalog
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from photoshelf.tags import TagService

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024

# Signed 64-bit range of the integer columns.
MAX_FILTER_INT = 2 ** 63 - 1
MIN_FILTER_INT = -(2 ** 63)

RAW_FILTER_KEYS = frozenset({
    "keyword",
    "keyword_mode",
    "created_start",
    "created_end",
    "taken_start",
    "taken_end",
    "width_min",
    "width_max",
    "height_min",
    "height_max",
    "size_min",
    "size_max",
    "size_min_bytes",
    "size_max_bytes",
    "tags",
    "tag_mode",
})


class FilterMode(str, Enum):
    """Boolean combination mode."""

    AND = "and"
    OR = "or"

    @classmethod
    def parse(cls, value: Any) -> "FilterMode":
        """Parse a mode value; anything other than exactly 'and'/'or' means OR."""
        if isinstance(value, cls):
            return value
        if value == cls.AND.value:
            return cls.AND
        return cls.OR


@dataclass(frozen=True)
class SearchFilterSet:
    """Typed, per-request search filters. ``None`` means unconstrained."""

    keyword: Optional[str] = None
    keyword_mode: FilterMode = FilterMode.OR
    created_start: Optional[datetime] = None
    created_end: Optional[datetime] = None
    taken_start: Optional[datetime] = None
    taken_end: Optional[datetime] = None
    width_min: Optional[int] = None
    width_max: Optional[int] = None
    height_min: Optional[int] = None
    height_max: Optional[int] = None
    size_min_bytes: Optional[int] = None
    size_max_bytes: Optional[int] = None
    tag_names: Tuple[str, ...] = ()
    tag_mode: FilterMode = FilterMode.OR

    @property
    def has_keyword(self) -> bool:
        return bool(self.keyword)

    @property
    def has_created_range(self) -> bool:
        return self.created_start is not None or self.created_end is not None

    @property
    def has_taken_range(self) -> bool:
        return self.taken_start is not None or self.taken_end is not None

    @property
    def has_dimension_range(self) -> bool:
        return any(
            value is not None
            for value in (self.width_min, self.width_max, self.height_min, self.height_max)
        )

    @property
    def has_size_range(self) -> bool:
        return self.size_min_bytes is not None or self.size_max_bytes is not None

    @property
    def has_tag_filter(self) -> bool:
        return bool(self.tag_names)

    @property
    def has_other_filters(self) -> bool:
        """True when any non-keyword dimension is constrained."""
        return (
            self.has_created_range
            or self.has_taken_range
            or self.has_dimension_range
            or self.has_size_range
            or self.has_tag_filter
        )


@dataclass(frozen=True)
class NormalizedFilters:
    """Filter set after tag resolution, ready for composition."""

    filter_set: SearchFilterSet
    requested_tag_names: Tuple[str, ...] = ()
    unsatisfiable: bool = False

    @property
    def has_keyword(self) -> bool:
        return self.filter_set.has_keyword

    @property
    def has_other_filters(self) -> bool:
        return self.filter_set.has_other_filters or bool(self.requested_tag_names)

    @property
    def has_tag_filter(self) -> bool:
        return self.filter_set.has_tag_filter


def _clean(value: Any) -> Any:
    """Return None for missing or blank values."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _in_range(number: int) -> bool:
    return MIN_FILTER_INT <= number <= MAX_FILTER_INT


def parse_int(value: Any) -> Optional[int]:
    value = _clean(value)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    else:
        try:
            number = int(str(value))
        except ValueError:
            logger.debug("Ignoring non-integer filter value %r", value)
            return None
    if not _in_range(number):
        logger.debug("Ignoring out-of-range filter value %r", value)
        return None
    return number


def parse_timestamp(value: Any, end_of_day: bool = False) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime into naive UTC.

    A date without a time component covers the whole day: it is midnight as a
    start bound and the last microsecond of the day as an end bound.
    """
    value = _clean(value)
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.max if end_of_day else time.min)
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            if len(text) == 10:
                day = date.fromisoformat(text)
                parsed = datetime.combine(day, time.max if end_of_day else time.min)
            else:
                parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Ignoring unparseable timestamp filter value %r", value)
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def megabytes_to_bytes(value: Any, round_up: bool = False) -> Optional[int]:
    """Convert a fractional megabyte value to a byte threshold.

    The conversion is done in decimal arithmetic so that values such as
    ``1.5`` map exactly to 1572864. Minimum bounds round down and maximum
    bounds round up, keeping both inclusive bounds from excluding a file
    whose size sits on the boundary. Non-positive values, and values beyond
    the 64-bit integer range, mean no bound.
    """
    value = _clean(value)
    if value is None or isinstance(value, bool):
        return None
    try:
        megabytes = Decimal(str(value))
    except InvalidOperation:
        logger.debug("Ignoring non-numeric size filter value %r", value)
        return None
    if not megabytes.is_finite() or megabytes <= 0:
        return None
    size = megabytes * BYTES_PER_MB
    size = int(math.ceil(size)) if round_up else int(math.floor(size))
    if not _in_range(size):
        logger.debug("Ignoring out-of-range size filter value %r", value)
        return None
    return size


def parse_tag_string(value: Any) -> List[str]:
    """Split a tag filter into unique names.

    Accepts ASCII and full-width commas interchangeably, or an iterable of
    names. Entries are trimmed, empties dropped, first occurrence kept.
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.replace("，", ",").split(",")
    else:
        parts = [str(part) for part in value]
    names = [part.strip() for part in parts]
    return list(dict.fromkeys(name for name in names if name))


def parse_filters(raw: Optional[Mapping[str, Any]]) -> SearchFilterSet:
    """Build a ``SearchFilterSet`` from raw filter values.

    Only ``RAW_FILTER_KEYS`` are recognized; anything else is ignored.
    """
    raw = dict(raw or {})
    unknown = sorted(key for key in raw if key not in RAW_FILTER_KEYS)
    if unknown:
        logger.debug("Ignoring unrecognized filter keys: %s", ", ".join(unknown))

    size_min_bytes = parse_int(raw.get("size_min_bytes"))
    if size_min_bytes is None:
        size_min_bytes = megabytes_to_bytes(raw.get("size_min"))
    size_max_bytes = parse_int(raw.get("size_max_bytes"))
    if size_max_bytes is None:
        size_max_bytes = megabytes_to_bytes(raw.get("size_max"), round_up=True)

    keyword = _clean(raw.get("keyword"))

    return SearchFilterSet(
        keyword=str(keyword) if keyword is not None else None,
        keyword_mode=FilterMode.parse(raw.get("keyword_mode")),
        created_start=parse_timestamp(raw.get("created_start")),
        created_end=parse_timestamp(raw.get("created_end"), end_of_day=True),
        taken_start=parse_timestamp(raw.get("taken_start")),
        taken_end=parse_timestamp(raw.get("taken_end"), end_of_day=True),
        width_min=parse_int(raw.get("width_min")),
        width_max=parse_int(raw.get("width_max")),
        height_min=parse_int(raw.get("height_min")),
        height_max=parse_int(raw.get("height_max")),
        size_min_bytes=size_min_bytes,
        size_max_bytes=size_max_bytes,
        tag_names=tuple(parse_tag_string(raw.get("tags"))),
        tag_mode=FilterMode.parse(raw.get("tag_mode")),
    )


TagResolver = Callable[[Iterable[str]], List[Any]]


def normalize_filters(
    db: Session,
    owner_id: int,
    raw: Optional[Mapping[str, Any]],
    resolve_tags: Optional[TagResolver] = None,
) -> NormalizedFilters:
    """Parse raw filters and resolve tag names against the owner's catalog.

    Args:
        db: Database session
        owner_id: ID of the requesting user
        raw: Raw filter mapping
        resolve_tags: Optional catalog lookup returning existing tags for names
            (defaults to ``TagService.resolve_tags_by_name``)

    Returns:
        NormalizedFilters; ``unsatisfiable`` is set when tag names were given
        but none of them exist for the owner.
    """
    filter_set = parse_filters(raw)
    requested = filter_set.tag_names
    if not requested:
        return NormalizedFilters(filter_set=filter_set)

    if resolve_tags is None:
        resolve_tags = TagService(db, owner_id).resolve_tags_by_name
    existing = {tag.name for tag in resolve_tags(requested)}
    resolved = tuple(name for name in requested if name in existing)

    dropped = [name for name in requested if name not in existing]
    if dropped:
        logger.debug("Dropping unknown tag names for owner %s: %s", owner_id, dropped)

    return NormalizedFilters(
        filter_set=replace(filter_set, tag_names=resolved),
        requested_tag_names=requested,
        unsatisfiable=not resolved,
    )
