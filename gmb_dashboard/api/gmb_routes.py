"""GMB Dashboard: GMB API Proxy Routes."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from gmb_dashboard.api.deps import get_gmb_client, get_principal
from gmb_dashboard.connectors.gmb.client import GMBAPIError, GMBClient
from gmb_dashboard.connectors.gmb.reviews import fetch_all_reviews
from gmb_dashboard.core.errors import ok
from gmb_dashboard.core.logging import get_logger

logger = get_logger("api.gmb")

router = APIRouter(prefix="/api", tags=["GMB"])

KEYWORD_FIELDS = ("email", "locationId", "startYear", "startMonth", "endYear", "endMonth")


@router.get("/search-keywords-impressions")
async def keywords_liveness():
    return {"success": True, "message": "Search Keywords API is live (GET works). Use POST for data."}


@router.post("/search-keywords-impressions", dependencies=[Depends(get_principal)])
async def search_keywords_impressions(
    payload: Dict[str, Any] = Body(...),
    client: GMBClient = Depends(get_gmb_client),
):
    """Relay a search-keyword impressions query; the upstream JSON is returned unchanged."""
    if any(not payload.get(f) for f in KEYWORD_FIELDS):
        raise HTTPException(status_code=400, detail="Missing required fields")
    try:
        return await client.search_keywords_impressions(
            email=payload["email"],
            location_id=payload["locationId"],
            start_year=payload["startYear"],
            start_month=payload["startMonth"],
            end_year=payload["endYear"],
            end_month=payload["endMonth"],
        )
    except GMBAPIError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/reviews", dependencies=[Depends(get_principal)])
async def reviews(
    payload: Dict[str, Any] = Body(...),
    client: GMBClient = Depends(get_gmb_client),
):
    """Star breakdown and sample comments across every review page."""
    email, location = payload.get("email"), payload.get("location")
    if not email or not location:
        raise HTTPException(status_code=400, detail="Email and Location required")
    summary = await fetch_all_reviews(client, email, location)
    return ok(summary.model_dump())
