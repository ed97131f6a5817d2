"""GMB Dashboard: Ranking Engine.

Top-N selection over insights and keyword ranking over profile labels.
"""

import math
from typing import Dict, List, Sequence, Tuple

from gmb_dashboard.core.metric_registry import metric_value
from gmb_dashboard.core.months import in_period, latest_period
from gmb_dashboard.models.document_models import MonthlyInsight, Profile
from gmb_dashboard.models.report_models import (
    KeywordRow,
    KeywordStats,
    TopDoctors,
    TopPerformer,
)
from gmb_dashboard.core.logging import get_logger

logger = get_logger("analyzer.ranking")

RANK_FILTERS = ("all", "top3", "top10", "notranking")


def _performer(row: MonthlyInsight, total: int) -> TopPerformer:
    return TopPerformer(
        business_name=row.business_name,
        cluster=row.cluster,
        branch=row.branch,
        department=row.department,
        speciality=row.speciality,
        month=row.month,
        rating=row.rating,
        total_searches=total,
    )


def top_doctors(rows: Sequence[MonthlyInsight], limit: int = 10) -> TopDoctors:
    """Highest Google search volume in the latest month present."""
    if not rows:
        return TopDoctors(latest_month="", top_doctors=[])
    period = latest_period(rows)
    ranked = sorted(
        (
            _performer(r, metric_value(r, "search_impressions"))
            for r in rows
            if in_period(r, period)
        ),
        key=lambda p: p.total_searches,
        reverse=True,
    )
    return TopDoctors(latest_month=period[0], top_doctors=ranked[:limit])


def top_performers(rows: Sequence[MonthlyInsight], limit: int = 10) -> List[TopPerformer]:
    """Unique business names ranked by search volume summed over `rows`.

    The first row seen for a name supplies its cluster/branch/month.
    """
    grouped: Dict[str, TopPerformer] = {}
    for row in rows:
        searches = metric_value(row, "search_impressions")
        existing = grouped.get(row.business_name)
        if existing is None:
            grouped[row.business_name] = _performer(row, searches)
        else:
            existing.total_searches += searches
    ranked = sorted(grouped.values(), key=lambda p: p.total_searches, reverse=True)
    return ranked[:limit]


# ── Keywords ──


def _label_sort_key(label: dict) -> Tuple[int, int]:
    rank = int(label.get("rank") or 0)
    # Rank 0 means "not ranking": after every positive rank
    return (1, 0) if rank <= 0 else (0, rank)


def sort_labels(labels: Sequence[dict]) -> List[dict]:
    return sorted(labels, key=_label_sort_key)


def flatten_keywords(profiles: Sequence[Profile]) -> List[KeywordRow]:
    rows: List[KeywordRow] = []
    for profile in profiles:
        for label in profile.labels or []:
            competitors = list(label.get("competitors") or [])
            rows.append(
                KeywordRow(
                    keyword=label.get("label", ""),
                    doctor_name=profile.name,
                    branch=profile.branch,
                    rank=int(label.get("rank") or 0),
                    competitor_count=len(competitors),
                    competitors=competitors,
                )
            )
    return rows


def _rank_matches(rank: int, rank_filter: str) -> bool:
    if rank_filter == "top3":
        return 0 < rank <= 3
    if rank_filter == "top10":
        return 0 < rank <= 10
    if rank_filter == "notranking":
        return rank == 0
    return True


def filter_keywords(
    rows: Sequence[KeywordRow], query: str = "", rank_filter: str = "all"
) -> List[KeywordRow]:
    needle = (query or "").lower()
    return [
        r
        for r in rows
        if (needle in r.keyword.lower() or needle in r.doctor_name.lower())
        and _rank_matches(r.rank, rank_filter)
    ]


def keyword_stats(rows: Sequence[KeywordRow]) -> KeywordStats:
    ranking = [r for r in rows if r.rank > 0]
    return KeywordStats(
        total=len(rows),
        ranking=len(ranking),
        top3=sum(1 for r in ranking if r.rank <= 3),
        top10=sum(1 for r in ranking if r.rank <= 10),
        not_ranking=len(rows) - len(ranking),
    )


def paginate(rows: Sequence, page: int = 1, page_size: int = 10) -> Tuple[list, int]:
    """(rows on `page`, total pages). Pages are 1-based."""
    page_size = max(1, page_size)
    total_pages = math.ceil(len(rows) / page_size)
    start = (max(1, page) - 1) * page_size
    return list(rows[start : start + page_size]), total_pages
