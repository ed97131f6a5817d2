"""GMB Dashboard: Report Pipeline.

Composes the engines into the views served by the report endpoints:
  scoped rows → filters → metrics / rankings / locations / trends

Every function here is pure over the rows it is given except
doctor_details, which reads through the scoped repository.
"""

import csv
import io
from typing import List, Sequence, Tuple

from gmb_dashboard.analyzer.branch_engine import processed_locations
from gmb_dashboard.analyzer.filters import InsightFilter, filter_options
from gmb_dashboard.analyzer.kpi_engine import aggregate_metrics, review_stats
from gmb_dashboard.analyzer.ranking_engine import sort_labels, top_performers
from gmb_dashboard.analyzer.trend_engine import compute_trends
from gmb_dashboard.core.months import in_period, latest_period, month_index
from gmb_dashboard.models.document_models import (
    LocationVerification,
    MonthlyInsight,
    Profile,
)
from gmb_dashboard.models.report_models import (
    DashboardOverview,
    DoctorDetails,
    PhoneDirectory,
    PhoneEntry,
)
from gmb_dashboard.repositories.scoped import ScopedRepository
from gmb_dashboard.core.logging import get_logger

logger = get_logger("analyzer.pipeline")

NO_PHONE = "Not available"


def build_overview(
    insights: Sequence[MonthlyInsight],
    locations: Sequence[LocationVerification],
    flt: InsightFilter,
) -> DashboardOverview:
    """Everything the main dashboard shows for one filter selection."""
    latest = latest_period(insights)
    filtered = flt.apply(insights)

    overview = DashboardOverview(
        latest_month=latest[0],
        filter_options=filter_options(insights, flt),
        metrics=aggregate_metrics(filtered),
        review_stats=review_stats(filtered),
        top_performers=top_performers(filtered),
        locations=processed_locations(insights, locations, flt, latest),
        # Trends need every month, so the month selection is ignored
        trends=compute_trends(flt.apply(insights, skip=("month",))),
    )
    logger.info(
        f"Overview built from {len(filtered)}/{len(insights)} insight rows (latest month {latest[0]})"
    )
    return overview


def doctor_details(repo: ScopedRepository, identifier: str) -> DoctorDetails:
    """Profile, month-ordered insights and keywords for one listing.

    `identifier` is matched case-insensitively against the business name,
    then the doctor's name.
    """
    identifier = identifier.strip()
    profile = repo.find_by_name(Profile, "business_name", identifier)
    if profile is None:
        profile = repo.find_by_name(Profile, "name", identifier)

    target = profile.business_name if profile and profile.business_name else identifier
    insights = repo.find_all_by_name(MonthlyInsight, "business_name", target)
    insights.sort(key=lambda r: month_index(r.month))

    labels = profile.labels if profile else []
    return DoctorDetails(
        profile=profile.model_dump() if profile else None,
        monthly_insights=[r.model_dump() for r in insights],
        keywords=sort_labels(labels or []),
        competitors=[c for l in (labels or []) for c in (l.get("competitors") or [])],
    )


def _selected_or_latest(
    insights: Sequence[MonthlyInsight], flt: InsightFilter, latest: Tuple[str, int]
) -> List[MonthlyInsight]:
    if flt.months:
        return flt.apply(insights)
    return [r for r in flt.apply(insights) if in_period(r, latest)]


def phone_directory(
    insights: Sequence[MonthlyInsight], flt: InsightFilter, latest: Tuple[str, int]
) -> PhoneDirectory:
    """Phone numbers listed on each profile for the selected (or latest) month."""
    rows = _selected_or_latest(insights, flt, latest)
    entries = [
        PhoneEntry(
            business_name=r.business_name,
            phone=r.phone or NO_PHONE,
            branch=r.branch,
            department=r.department,
            calls=r.calls or 0,
        )
        for r in rows
    ]
    missing = sum(1 for e in entries if e.phone == NO_PHONE)
    return PhoneDirectory(
        months=flt.months or [latest[0]],
        has_phone=len(entries) - missing,
        no_phone=missing,
        rows=entries,
    )


def export_rows(
    insights: Sequence[MonthlyInsight], flt: InsightFilter, latest: Tuple[str, int]
) -> List[dict]:
    """Insight sheet for download; defaults to the latest month."""
    return [
        {
            "Business Name": r.business_name,
            "Month": r.month,
            "Cluster": r.cluster,
            "Branch": r.branch,
            "Department": r.department,
            "Speciality": r.speciality,
            "Google Search - Mobile": r.google_search_mobile,
            "Google Search - Desktop": r.google_search_desktop,
            "Google Maps - Mobile": r.google_maps_mobile,
            "Google Maps - Desktop": r.google_maps_desktop,
            "Directions": r.directions,
            "Website Clicks": r.website_clicks,
            "Calls": r.calls,
            "Reviews": r.review,
            "Rating": r.rating,
            "Phone": r.phone or NO_PHONE,
        }
        for r in _selected_or_latest(insights, flt, latest)
    ]


def rows_to_csv(rows: Sequence[dict]) -> str:
    if not rows:
        return ""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(rows[0].keys()))
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()
