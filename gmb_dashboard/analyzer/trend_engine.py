"""GMB Dashboard: Trend Engine.

Compares the latest month present in the data with the month before it
and produces a signal per tracked metric.
"""

from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from gmb_dashboard.core.metric_registry import metric_value
from gmb_dashboard.core.months import MONTH_ORDER, period_key
from gmb_dashboard.models.document_models import MonthlyInsight
from gmb_dashboard.models.report_models import TrendSignal
from gmb_dashboard.core.logging import get_logger

logger = get_logger("analyzer.trend")

# Key metrics to track trends for
TREND_METRICS = (
    "search_impressions",
    "maps_views",
    "directions",
    "website_clicks",
    "calls",
    "review",
)

Period = Tuple[int, int]


def _label(period: Period) -> str:
    year, index = period
    name = MONTH_ORDER[index] if 0 <= index < len(MONTH_ORDER) else "?"
    return f"{name} {year}" if year else name


def _direction(change_pct: float) -> str:
    if change_pct > 2:
        return "up"
    elif change_pct < -2:
        return "down"
    return "flat"


def _signal(direction: str) -> str:
    # Every tracked metric is a volume where "up" is good
    return {"up": "improving", "down": "declining"}.get(direction, "stable")


def _aggregate(rows: Sequence[MonthlyInsight]) -> Dict[Period, Dict[str, float]]:
    """period → metric → sum."""
    agg: Dict[Period, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for r in rows:
        bucket = agg[period_key(r.month, r.date)]
        for name in TREND_METRICS:
            bucket[name] += metric_value(r, name)
    return agg


def compute_trends(rows: Sequence[MonthlyInsight]) -> List[TrendSignal]:
    """Latest period vs the one immediately before it in the data."""
    agg = _aggregate(rows)
    if not agg:
        return []

    periods = sorted(agg)
    current_period = periods[-1]
    previous_period = periods[-2] if len(periods) > 1 else None
    current = agg[current_period]
    previous = agg[previous_period] if previous_period else {}

    signals: List[TrendSignal] = []
    for name in TREND_METRICS:
        curr_val = current.get(name, 0)
        prev_val = previous.get(name, 0)

        # Handle zero baseline: insufficient data, not +100%
        if prev_val == 0:
            signals.append(
                TrendSignal(
                    metric_name=name,
                    current_period=_label(current_period),
                    previous_period=_label(previous_period) if previous_period else "",
                    current_value=round(curr_val, 4),
                    previous_value=0,
                    change_pct=0,
                    direction="flat",
                    signal="insufficient_data",
                    previous_period_available=False,
                )
            )
            continue

        change = (curr_val - prev_val) / prev_val * 100
        d = _direction(change)
        signals.append(
            TrendSignal(
                metric_name=name,
                current_period=_label(current_period),
                previous_period=_label(previous_period),
                current_value=round(curr_val, 4),
                previous_value=round(prev_val, 4),
                change_pct=round(change, 2),
                direction=d,
                signal=_signal(d),
                previous_period_available=True,
            )
        )

    logger.info(f"Computed {len(signals)} trend signals over {len(periods)} periods")
    return signals
