"""
Revenue Bucketing

Groups order revenue into fixed calendar windows anchored at "now":

- monthly: the last N calendar months, current month included
- quarterly: Q1..Q4 of the current year
- half-yearly: H1/H2 of the current year
- yearly: the last N calendar years, current year included

Every window is always emitted, zero-valued when no order falls into it.
"""

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

import structlog

from scr_agro.reporting.models import BucketPolicy, OrderLike, TimeBucket, as_orders
from scr_agro.reporting.timeutils import local_now, to_local

logger = structlog.get_logger(__name__)

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
QUARTER_LABELS = ("Q1", "Q2", "Q3", "Q4")
HALF_YEAR_LABELS = ("H1 (Jan–Jun)", "H2 (Jul–Dec)")

DEFAULT_MONTHLY_WINDOW = 4
DEFAULT_YEARLY_WINDOW = 3

# (year, month) or (year, slot) identifying a bucket
BucketKey = Tuple[int, int]


def month_window(now: datetime, size: int = DEFAULT_MONTHLY_WINDOW) -> List[BucketKey]:
    """(year, month) pairs of the last `size` calendar months, oldest first"""
    keys = []
    for offset in range(size - 1, -1, -1):
        index = now.year * 12 + (now.month - 1) - offset
        keys.append((index // 12, index % 12 + 1))
    return keys


def _monthly(now: datetime, size: int) -> Tuple[List[BucketKey], List[str], Callable[[datetime], BucketKey]]:
    keys = month_window(now, size)
    labels = [MONTH_LABELS[month - 1] for _, month in keys]
    return keys, labels, lambda ts: (ts.year, ts.month)


def _quarterly(now: datetime, size: int) -> Tuple[List[BucketKey], List[str], Callable[[datetime], BucketKey]]:
    keys = [(now.year, q) for q in range(4)]
    return keys, list(QUARTER_LABELS), lambda ts: (ts.year, (ts.month - 1) // 3)


def _half_yearly(now: datetime, size: int) -> Tuple[List[BucketKey], List[str], Callable[[datetime], BucketKey]]:
    keys = [(now.year, 0), (now.year, 1)]
    return keys, list(HALF_YEAR_LABELS), lambda ts: (ts.year, 0 if ts.month <= 6 else 1)


def _yearly(now: datetime, size: int) -> Tuple[List[BucketKey], List[str], Callable[[datetime], BucketKey]]:
    keys = [(now.year - offset, 0) for offset in range(size - 1, -1, -1)]
    labels = [str(year) for year, _ in keys]
    return keys, labels, lambda ts: (ts.year, 0)


_WINDOWS = {
    BucketPolicy.MONTHLY: _monthly,
    BucketPolicy.QUARTERLY: _quarterly,
    BucketPolicy.HALF_YEARLY: _half_yearly,
    BucketPolicy.YEARLY: _yearly,
}


def bucket_revenue(
    orders: Iterable[OrderLike],
    policy: Union[BucketPolicy, str] = BucketPolicy.MONTHLY,
    now: Optional[datetime] = None,
    tz_name: str = "UTC",
    monthly_window: int = DEFAULT_MONTHLY_WINDOW,
    yearly_window: int = DEFAULT_YEARLY_WINDOW,
) -> List[TimeBucket]:
    """
    Sum order revenue into the fixed windows of a bucketing policy.

    Args:
        orders: Order snapshot (records or raw rows)
        policy: Bucketing policy or its string tag
        now: Anchor of the windows; defaults to the current local time
        tz_name: Timezone used to read calendar fields of aware timestamps
        monthly_window: Number of months in the monthly window
        yearly_window: Number of years in the yearly window

    Returns:
        Buckets in chronological order. Orders without a parseable
        creation time are skipped.

    Raises:
        ValueError: If the policy tag is unknown
    """
    policy = BucketPolicy(policy)
    anchor = to_local(now, tz_name) if now is not None else local_now(tz_name)

    size = monthly_window if policy == BucketPolicy.MONTHLY else yearly_window
    keys, labels, assign = _WINDOWS[policy](anchor, size)

    totals: Dict[BucketKey, float] = {key: 0.0 for key in keys}
    skipped = 0
    for order in as_orders(orders):
        if order.created_at is None:
            skipped += 1
            continue
        key = assign(to_local(order.created_at, tz_name))
        if key in totals:
            totals[key] += order.total

    logger.debug("Revenue bucketed", policy=policy.value, buckets=len(keys), skipped=skipped)

    return [TimeBucket(label=label, value=totals[key]) for key, label in zip(keys, labels)]
