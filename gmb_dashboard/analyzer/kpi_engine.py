"""GMB Dashboard: KPI Engine.

Sums insight counters over an arbitrary set of rows. The search total is
always the sum of its two channels, so per-channel and total figures
agree for any selection.
"""

from typing import Sequence

from gmb_dashboard.core.metric_registry import metric_value
from gmb_dashboard.models.document_models import MonthlyInsight
from gmb_dashboard.models.report_models import AggregatedMetrics, ReviewStats
from gmb_dashboard.core.logging import get_logger

logger = get_logger("analyzer.kpi")


def _mean_positive_rating(rows: Sequence[MonthlyInsight]) -> float:
    rated = [r.rating for r in rows if (r.rating or 0) > 0]
    return sum(rated) / len(rated) if rated else 0.0


def aggregate_metrics(rows: Sequence[MonthlyInsight]) -> AggregatedMetrics:
    """Totals for a dashboard selection."""
    search_mobile = sum(r.google_search_mobile or 0 for r in rows)
    search_desktop = sum(r.google_search_desktop or 0 for r in rows)
    maps_mobile = sum(r.google_maps_mobile or 0 for r in rows)
    maps_desktop = sum(r.google_maps_desktop or 0 for r in rows)

    metrics = AggregatedMetrics(
        total_search_impressions=search_mobile + search_desktop,
        total_maps_views=maps_mobile + maps_desktop,
        total_directions=sum(metric_value(r, "directions") for r in rows),
        total_website_clicks=sum(metric_value(r, "website_clicks") for r in rows),
        total_calls=sum(metric_value(r, "calls") for r in rows),
        average_rating=round(_mean_positive_rating(rows), 4),
        google_search_mobile=search_mobile,
        google_search_desktop=search_desktop,
        google_maps_mobile=maps_mobile,
        google_maps_desktop=maps_desktop,
        total_searches=search_mobile + search_desktop + maps_mobile + maps_desktop,
    )
    logger.debug(f"Aggregated {len(rows)} insight rows")
    return metrics


def review_stats(rows: Sequence[MonthlyInsight]) -> ReviewStats:
    return ReviewStats(
        total_reviews=sum(r.review or 0 for r in rows),
        average_rating=round(_mean_positive_rating(rows), 4),
    )
