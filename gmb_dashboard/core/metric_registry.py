"""GMB Dashboard: Insight Metric Registry.

Defines the per-month counters an insight row carries, the key each one
has in the source documents, and how the report engines group them.
"""

from enum import Enum
from typing import Dict


class MetricType(str, Enum):
    """How a metric is categorised."""

    SEARCH = "search"  # Google Search impressions
    MAPS = "maps"  # Google Maps views
    ACTION = "action"  # Directions, website clicks, calls
    REVIEW = "review"  # Review count, rating
    DERIVED = "derived"  # Computed by the report engines


class MetricDefinition:
    """Describes a single metric."""

    def __init__(
        self,
        name: str,
        metric_type: MetricType,
        source_key: str = "",
        description: str = "",
    ):
        self.name = name
        self.metric_type = metric_type
        self.source_key = source_key
        self.description = description

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.metric_type.value})>"


# ─────────────────────────────────────────────
# INSIGHT COUNTERS: as stored on MonthlyInsight
# ─────────────────────────────────────────────

INSIGHT_METRICS: Dict[str, MetricDefinition] = {
    "google_search_mobile": MetricDefinition(
        "google_search_mobile", MetricType.SEARCH, "Google Search - Mobile", "Search impressions on mobile"
    ),
    "google_search_desktop": MetricDefinition(
        "google_search_desktop", MetricType.SEARCH, "Google Search - Desktop", "Search impressions on desktop"
    ),
    "google_maps_mobile": MetricDefinition(
        "google_maps_mobile", MetricType.MAPS, "Google Maps - Mobile", "Maps views on mobile"
    ),
    "google_maps_desktop": MetricDefinition(
        "google_maps_desktop", MetricType.MAPS, "Google Maps - Desktop", "Maps views on desktop"
    ),
    "directions": MetricDefinition("directions", MetricType.ACTION, "Directions", "Direction requests"),
    "website_clicks": MetricDefinition(
        "website_clicks", MetricType.ACTION, "Website clicks", "Clicks through to the website"
    ),
    "calls": MetricDefinition("calls", MetricType.ACTION, "Calls", "Calls from the listing"),
    "review": MetricDefinition("review", MetricType.REVIEW, "Review", "Reviews received"),
}


# ─────────────────────────────────────────────
# DERIVED METRICS: computed by report engines
# ─────────────────────────────────────────────

DERIVED_METRICS: Dict[str, MetricDefinition] = {
    "search_impressions": MetricDefinition(
        "search_impressions", MetricType.DERIVED, description="Search mobile + desktop"
    ),
    "maps_views": MetricDefinition("maps_views", MetricType.DERIVED, description="Maps mobile + desktop"),
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

ALL_METRICS = {**INSIGHT_METRICS, **DERIVED_METRICS}


def metrics_by_type(metric_type: MetricType) -> list[MetricDefinition]:
    """Return all metrics of a given type."""
    return [m for m in ALL_METRICS.values() if m.metric_type == metric_type]


def metric_value(row, name: str) -> int:
    """Value of a stored or derived metric on an insight row."""
    if name in INSIGHT_METRICS:
        return getattr(row, name) or 0
    members = (
        MetricType.SEARCH if name == "search_impressions" else MetricType.MAPS if name == "maps_views" else None
    )
    if members is None:
        raise KeyError(name)
    return sum(getattr(row, m.name) or 0 for m in metrics_by_type(members))
