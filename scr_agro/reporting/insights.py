"""
Peak and Chart Insights

Derives the peak period of a bucket series and the chart payload the
analytics view plots.
"""

from typing import Optional, Sequence, Union

from scr_agro.reporting.models import BucketPolicy, TimeBucket, TrendChart

NO_PEAK = "N/A"

POINT_COLOR = "rgb(75, 192, 192)"
PEAK_POINT_COLOR = "rgb(255, 99, 132)"
POINT_RADIUS = 4
PEAK_POINT_RADIUS = 7

CHART_TITLES = {
    BucketPolicy.MONTHLY: "Monthly Sales Trend",
    BucketPolicy.QUARTERLY: "Quarterly Sales Trend",
    BucketPolicy.HALF_YEARLY: "Half-Yearly Sales Trend",
    BucketPolicy.YEARLY: "Yearly Sales Trend",
}

CURRENCY_SYMBOL = "₹"


def peak_index(series: Sequence[TimeBucket]) -> Optional[int]:
    """Index of the first bucket holding the maximum value, None if empty"""
    best: Optional[int] = None
    for index, bucket in enumerate(series):
        # strict comparison keeps the first bucket on ties
        if best is None or bucket.value > series[best].value:
            best = index
    return best


def peak_label(series: Sequence[TimeBucket]) -> str:
    """Label of the peak bucket, or "N/A" for an empty series"""
    index = peak_index(series)
    if index is None:
        return NO_PEAK
    return series[index].label


def dataset_label(policy: Union[BucketPolicy, str]) -> str:
    tag = BucketPolicy(policy).value
    return f"{tag[0].upper()}{tag[1:]} Sales"


def build_trend_chart(series: Sequence[TimeBucket], policy: Union[BucketPolicy, str]) -> TrendChart:
    """
    Build the trend chart payload with the peak point highlighted.

    Args:
        series: Bucketed revenue series
        policy: Policy the series was bucketed with

    Returns:
        TrendChart
    """
    policy = BucketPolicy(policy)
    peak = peak_index(series)

    return TrendChart(
        title=CHART_TITLES[policy],
        dataset_label=dataset_label(policy),
        labels=[b.label for b in series],
        values=[b.value for b in series],
        point_colors=[PEAK_POINT_COLOR if i == peak else POINT_COLOR for i in range(len(series))],
        point_radii=[PEAK_POINT_RADIUS if i == peak else POINT_RADIUS for i in range(len(series))],
        peak_index=peak,
    )


def format_currency(value: Optional[float]) -> str:
    """Display formatting; rounding happens here and nowhere earlier"""
    return f"{CURRENCY_SYMBOL}{(value or 0.0):.2f}"
