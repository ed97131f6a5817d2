"""GMB Dashboard: Branch Engine.

Per-branch roll-ups of insights and keyword labels, and the location
verification table shown alongside the dashboard.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Tuple

from gmb_dashboard.analyzer.filters import InsightFilter
from gmb_dashboard.core.metric_registry import metric_value
from gmb_dashboard.core.months import in_period
from gmb_dashboard.models.document_models import (
    LocationVerification,
    MonthlyInsight,
    Profile,
)
from gmb_dashboard.models.report_models import BranchStats, BranchTotals, LocationRow
from gmb_dashboard.core.logging import get_logger

logger = get_logger("analyzer.branch")


@dataclass
class _BranchAccumulator:
    stats: BranchStats
    profiles: Set[str] = field(default_factory=set)
    rating_sum: float = 0.0
    rating_count: int = 0


def branch_stats(
    insights: Sequence[MonthlyInsight], profiles: Sequence[Profile]
) -> List[BranchStats]:
    """One row per branch, ordered by search impressions descending."""
    branches: Dict[str, _BranchAccumulator] = {}

    for row in insights:
        acc = branches.get(row.branch)
        if acc is None:
            acc = _BranchAccumulator(stats=BranchStats(name=row.branch, cluster=row.cluster))
            branches[row.branch] = acc
        s = acc.stats
        s.total_search_impressions += metric_value(row, "search_impressions")
        s.total_maps_views += metric_value(row, "maps_views")
        s.total_directions += metric_value(row, "directions")
        s.total_website_clicks += metric_value(row, "website_clicks")
        s.total_calls += metric_value(row, "calls")
        if row.business_name:
            acc.profiles.add(row.business_name)
        if (row.rating or 0) > 0:
            acc.rating_sum += row.rating
            acc.rating_count += 1

    # Keyword counts only attach to branches that already have insights
    for profile in profiles:
        acc = branches.get(profile.branch)
        if acc is None:
            continue
        labels = profile.labels or []
        acc.stats.total_keywords += len(labels)
        acc.stats.ranking_keywords += sum(
            1 for l in labels if 0 < int(l.get("rank") or 0) <= 10
        )

    result: List[BranchStats] = []
    for acc in branches.values():
        acc.stats.profile_count = len(acc.profiles)
        acc.stats.average_rating = (
            round(acc.rating_sum / acc.rating_count, 4) if acc.rating_count else 0.0
        )
        result.append(acc.stats)

    result.sort(key=lambda s: s.total_search_impressions, reverse=True)
    logger.info(f"Rolled up {len(insights)} insights into {len(result)} branches")
    return result


def branch_totals(stats: Sequence[BranchStats]) -> BranchTotals:
    return BranchTotals(
        branches=len(stats),
        profiles=sum(s.profile_count for s in stats),
        impressions=sum(s.total_search_impressions for s in stats),
        calls=sum(s.total_calls for s in stats),
    )


def _location_row(loc: LocationVerification) -> LocationRow:
    return LocationRow(
        id=str(loc.id),
        month=loc.month,
        cluster=loc.cluster,
        unit_name=loc.unit_name,
        department=loc.department,
        total_profiles=loc.total_profiles,
        verified_profiles=loc.verified_profiles,
        unverified_profiles=loc.unverified_profiles,
        need_access=loc.need_access,
        not_interested=loc.not_interested,
        out_of_organization=loc.out_of_organization,
    )


def processed_locations(
    insights: Sequence[MonthlyInsight],
    locations: Sequence[LocationVerification],
    flt: InsightFilter,
    latest: Tuple[str, int],
) -> List[LocationRow]:
    """Verification counts for the current selection.

    Stored counts cannot be narrowed by speciality or rating, so with
    either selected the rows are rebuilt from insights: every distinct
    business name in the target month counts as one verified profile.
    """
    if flt.narrows_profiles:
        if flt.months:
            target = flt.months[0]
            rows = [r for r in flt.apply(insights, skip=("month", "year")) if r.month == target]
        else:
            target = latest[0]
            rows = [r for r in flt.apply(insights, skip=("year",)) if in_period(r, latest)]
        by_branch: Dict[str, Set[str]] = {}
        clusters: Dict[str, str] = {}
        for r in rows:
            by_branch.setdefault(r.branch, set()).add(r.business_name)
            clusters.setdefault(r.branch, r.cluster)
        return [
            LocationRow(
                id=f"dynamic-{branch}",
                month=target,
                cluster=clusters[branch],
                unit_name=branch,
                department="Multiple",
                total_profiles=len(names),
                verified_profiles=len(names),
            )
            for branch, names in by_branch.items()
        ]

    months = flt.months or [latest[0]]
    return [
        _location_row(loc)
        for loc in locations
        if (not flt.clusters or loc.cluster in flt.clusters)
        and (not flt.branches or loc.unit_name in flt.branches)
        and (not flt.departments or loc.department in flt.departments)
        and loc.month in months
    ]
