"""GMB Dashboard: Report Routes.

Read-only views computed from the caller's scoped rows. Multi-select
filters arrive as repeated query parameters (?cluster=A&cluster=B).
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from gmb_dashboard.analyzer.branch_engine import branch_stats, branch_totals
from gmb_dashboard.analyzer.filters import InsightFilter
from gmb_dashboard.analyzer.pipeline import (
    build_overview,
    doctor_details,
    export_rows,
    phone_directory,
    rows_to_csv,
)
from gmb_dashboard.analyzer.ranking_engine import (
    RANK_FILTERS,
    filter_keywords,
    flatten_keywords,
    keyword_stats,
    paginate,
    top_doctors,
)
from gmb_dashboard.analyzer.trend_engine import compute_trends
from gmb_dashboard.api.deps import get_repository
from gmb_dashboard.core.errors import ok
from gmb_dashboard.core.months import latest_period
from gmb_dashboard.models.document_models import (
    LocationVerification,
    MonthlyInsight,
    Profile,
)
from gmb_dashboard.models.report_models import KeywordPage
from gmb_dashboard.repositories.scoped import ScopedRepository

router = APIRouter(prefix="/api", tags=["Reports"])


def insight_filter(
    cluster: List[str] = Query([]),
    branch: List[str] = Query([]),
    month: List[str] = Query([]),
    year: List[str] = Query([]),
    speciality: List[str] = Query([]),
    department: List[str] = Query([]),
    rating: List[int] = Query([], description="Floor of the rating, 1-5"),
) -> InsightFilter:
    return InsightFilter(
        clusters=cluster,
        branches=branch,
        months=month,
        years=year,
        specialities=speciality,
        departments=department,
        ratings=rating,
    )


def _csv_response(rows: List[dict], filename: str) -> Response:
    return Response(
        content=rows_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/top10-doctors")
async def get_top_doctors(repo: ScopedRepository = Depends(get_repository)):
    """Ten most searched profiles in the latest month."""
    return ok(top_doctors(repo.find(MonthlyInsight)).model_dump())


@router.get("/doctor-details/{name}")
async def get_doctor_details(name: str, repo: ScopedRepository = Depends(get_repository)):
    details = doctor_details(repo, name)
    if details.profile is None and not details.monthly_insights:
        raise HTTPException(status_code=404, detail="Doctor not found")
    return ok(details.model_dump())


@router.get("/reports/overview")
async def get_overview(
    flt: InsightFilter = Depends(insight_filter),
    repo: ScopedRepository = Depends(get_repository),
):
    overview = build_overview(repo.find(MonthlyInsight), repo.find(LocationVerification), flt)
    return ok(overview.model_dump())


@router.get("/reports/branches")
async def get_branches(
    flt: InsightFilter = Depends(insight_filter),
    repo: ScopedRepository = Depends(get_repository),
):
    stats = branch_stats(flt.apply(repo.find(MonthlyInsight)), repo.find(Profile))
    return ok(
        {
            "branches": [s.model_dump() for s in stats],
            "totals": branch_totals(stats).model_dump(),
        }
    )


@router.get("/reports/keywords")
async def get_keywords(
    q: str = Query("", description="Substring of keyword or doctor name"),
    rank: str = Query("all", description="all | top3 | top10 | notranking"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    cluster: List[str] = Query([]),
    branch: List[str] = Query([]),
    repo: ScopedRepository = Depends(get_repository),
):
    if rank not in RANK_FILTERS:
        raise HTTPException(status_code=400, detail=f"rank must be one of {', '.join(RANK_FILTERS)}")

    profiles = [
        p
        for p in repo.find(Profile)
        if (not cluster or p.cluster in cluster) and (not branch or p.branch in branch)
    ]
    rows = flatten_keywords(profiles)
    matched = filter_keywords(rows, q, rank)
    page_rows, total_pages = paginate(matched, page, page_size)
    return ok(
        KeywordPage(
            stats=keyword_stats(rows),
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            total=len(matched),
            rows=page_rows,
        ).model_dump()
    )


@router.get("/reports/trends")
async def get_trends(
    flt: InsightFilter = Depends(insight_filter),
    repo: ScopedRepository = Depends(get_repository),
):
    rows = flt.apply(repo.find(MonthlyInsight), skip=("month",))
    return ok([t.model_dump() for t in compute_trends(rows)])


@router.get("/reports/phones")
async def get_phones(
    format: str = Query("json", pattern="^(json|csv)$"),
    flt: InsightFilter = Depends(insight_filter),
    repo: ScopedRepository = Depends(get_repository),
):
    insights = repo.find(MonthlyInsight)
    directory = phone_directory(insights, flt, latest_period(insights))
    if format == "csv":
        return _csv_response([e.model_dump() for e in directory.rows], "phone-details.csv")
    return ok(directory.model_dump())


@router.get("/reports/export")
async def export_insights(
    format: str = Query("json", pattern="^(json|csv)$"),
    flt: InsightFilter = Depends(insight_filter),
    repo: ScopedRepository = Depends(get_repository),
):
    insights = repo.find(MonthlyInsight)
    rows = export_rows(insights, flt, latest_period(insights))
    if format == "csv":
        return _csv_response(rows, "gmb-insights.csv")
    return ok(rows, count=len(rows))
