# sales_analytics/windows.py
"""
Window resolution for the sales analytics engine.

A granularity token ('week', 'month' or 'year') decides how many buckets the
revenue series has, how wide each bucket is and how it is labelled. The
comparison window is the same number of buckets immediately before the
current one. Anything that is not a known token falls back to 'year'.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Hashable, Optional, Tuple, Union

WEEK = "week"
MONTH = "month"
YEAR = "year"
GRANULARITIES = (WEEK, MONTH, YEAR)

BUCKET_COUNTS = {WEEK: 7, MONTH: 12, YEAR: 5}

# Lookback used for best/worst seller selection, unrelated to bucket counts
TRAILING_DAYS = {WEEK: 7, MONTH: 30, YEAR: 365}

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

def normalize_granularity(token) -> str:
    """Returns the token if it is a known granularity, otherwise 'year'."""
    if isinstance(token, str) and token in GRANULARITIES:
        return token
    return YEAR

def _as_date(value: Union[date, datetime]) -> date:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    return value

def _month_start(value: date, offset: int = 0) -> date:
    index = value.year * 12 + (value.month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)

def bucket_key(granularity: str, value) -> Hashable:
    """
    Normalises a date-like value to the key of the bucket that contains it.

    - week:  a `date` (time of day dropped)
    - month: a `(year, month)` tuple
    - year:  the year as an int

    Accepts dates, datetimes, ISO strings and already-normalised keys, so
    that rows coming back from different database drivers compare equal.
    """
    granularity = normalize_granularity(granularity)

    if isinstance(value, str):
        value = date.fromisoformat(value[:10])

    if isinstance(value, date):
        day = _as_date(value)
        if granularity == WEEK:
            return day
        if granularity == MONTH:
            return (day.year, day.month)
        return day.year

    if isinstance(value, tuple):
        parts = [int(part) for part in value]
        if granularity == WEEK:
            return date(*parts[:3])
        if granularity == MONTH:
            return (parts[0], parts[1])
        return parts[0]

    if isinstance(value, (int, float, Decimal)) and granularity == YEAR:
        return int(value)

    raise ValueError(f"Cannot derive a {granularity} bucket key from {value!r}")

def bucket_label(granularity: str, bucket_start: date) -> str:
    granularity = normalize_granularity(granularity)
    if granularity == WEEK:
        return WEEKDAY_LABELS[bucket_start.weekday()]
    if granularity == MONTH:
        return MONTH_LABELS[bucket_start.month - 1]
    return str(bucket_start.year)

def _bucket_start(granularity: str, today: date, offset: int) -> date:
    if granularity == WEEK:
        return today + timedelta(days=offset)
    if granularity == MONTH:
        return _month_start(today, offset)
    return date(today.year + offset, 1, 1)

@dataclass(frozen=True)
class WindowSpec:
    """Bucket layout for one analytics request."""
    granularity: str
    bucket_count: int
    current: Tuple[date, ...]
    comparison: Tuple[date, ...]
    end: date

    @property
    def start(self) -> date:
        """Inclusive start of the combined comparison + current span."""
        return self.comparison[0]

    @property
    def boundaries(self) -> Tuple[date, ...]:
        return self.comparison + self.current

    def key(self, value) -> Hashable:
        return bucket_key(self.granularity, value)

    def label(self, bucket_start: date) -> str:
        return bucket_label(self.granularity, bucket_start)

def resolve_window(granularity, today: Optional[date] = None) -> WindowSpec:
    """
    Resolves a granularity token into its current and comparison windows.

    Both windows are listed oldest to newest. The last bucket of the current
    window is the one containing `today` (defaults to the host's local date).
    """
    granularity = normalize_granularity(granularity)
    today = _as_date(today or date.today())
    count = BUCKET_COUNTS[granularity]

    current = tuple(_bucket_start(granularity, today, -i) for i in range(count - 1, -1, -1))
    comparison = tuple(
        _bucket_start(granularity, today, -i) for i in range(2 * count - 1, count - 1, -1)
    )
    end = _bucket_start(granularity, today, 1)

    return WindowSpec(
        granularity=granularity,
        bucket_count=count,
        current=current,
        comparison=comparison,
        end=end,
    )

def trailing_days(granularity) -> int:
    return TRAILING_DAYS[normalize_granularity(granularity)]

def trailing_range(granularity, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Returns the `[now - N days, now)` lookback used by seller selection."""
    now = now or datetime.now()
    return now - timedelta(days=trailing_days(granularity)), now
