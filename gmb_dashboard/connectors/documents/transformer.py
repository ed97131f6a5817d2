"""GMB Dashboard: Raw Document → Row Transformer.

Converts documents as exported from the reporting store (keys such as
"Business name" or "Google Search - Mobile") into table rows. Missing or
malformed numbers become 0; missing text becomes "".
"""

from datetime import date, datetime
from typing import Any, Dict, List, Type

from sqlmodel import SQLModel

from gmb_dashboard.core.metric_registry import INSIGHT_METRICS
from gmb_dashboard.core.logging import get_logger
from gmb_dashboard.models.document_models import (
    LocationVerification,
    MonthlyInsight,
    Profile,
)

logger = get_logger("documents.transformer")

NO_PHONE = "Not available"


def _safe_int(value: Any) -> int:
    """Safely convert a value to int."""
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _safe_float(value: Any) -> float:
    """Safely convert a value to float."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _iso_date(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()[:10]
    if isinstance(value, dict) and "$date" in value:
        return _text(value["$date"])[:10]
    return _text(value)[:10]


def _label(raw: Dict[str, Any]) -> Dict[str, Any]:
    competitors = raw.get("competitors") or []
    return {
        "rank": _safe_int(raw.get("rank")),
        "label": _text(raw.get("label")),
        "competitors": [_text(c) for c in competitors if c],
        "screen_shot": _text(raw.get("screen_shot")),
        "business_name": _text(raw.get("business_name")),
        "link": _text(raw.get("link")),
    }


def profile_from_document(doc: Dict[str, Any]) -> Profile:
    return Profile(
        business_name=_text(doc.get("business_name")),
        name=_text(doc.get("name")),
        phone=_text(doc.get("phone")) or NO_PHONE,
        place_id=_text(doc.get("placeId")),
        new_review_uri=_text(doc.get("newReviewUri")),
        maps_uri=_text(doc.get("mapsUri")),
        website_url=_text(doc.get("websiteUrl")),
        labels=[_label(l) for l in (doc.get("labels") or []) if isinstance(l, dict)],
        account=_text(doc.get("account")),
        primary_category=_text(doc.get("primaryCategory")),
        address=_text(doc.get("address")),
        average_rating=_safe_float(doc.get("averageRating")),
        total_review_count=_safe_int(doc.get("totalReviewCount")),
        profile_photo=_text(doc.get("profile_photo")),
        profile_screenshot=_text(doc.get("profile_screenshot")),
        mail_id=_text(doc.get("mail_id")),
        cluster=_text(doc.get("Cluster")),
        branch=_text(doc.get("Branch")),
    )


def insight_from_document(doc: Dict[str, Any]) -> MonthlyInsight:
    counters = {name: _safe_int(doc.get(m.source_key)) for name, m in INSIGHT_METRICS.items()}
    return MonthlyInsight(
        business_name=_text(doc.get("Business name")),
        month=_text(doc.get("Month")),
        date=_iso_date(doc.get("Date")),
        cluster=_text(doc.get("Cluster")),
        branch=_text(doc.get("Branch")),
        department=_text(doc.get("Department")),
        speciality=_text(doc.get("Speciality")),
        rating=_safe_float(doc.get("Rating")),
        phone=_text(doc.get("Phone")) or NO_PHONE,
        **counters,
    )


def location_from_document(doc: Dict[str, Any]) -> LocationVerification:
    return LocationVerification(
        month=_text(doc.get("Month")),
        cluster=_text(doc.get("Cluster")),
        unit_name=_text(doc.get("Unit Name")),
        department=_text(doc.get("Department")),
        total_profiles=_safe_int(doc.get("Total Profiles")),
        verified_profiles=_safe_int(doc.get("Verified Profiles")),
        # The source store spells this key without the second "i"
        unverified_profiles=_safe_int(doc.get("Unverfied Profiles", doc.get("Unverified Profiles"))),
        need_access=_safe_int(doc.get("Need Access")),
        not_interested=_safe_int(doc.get("Not Intrested", doc.get("Not Interested"))),
        out_of_organization=_safe_int(doc.get("Out Of Organization")),
    )


TRANSFORMERS = {
    "insights": insight_from_document,
    "doctors": profile_from_document,
    "locations": location_from_document,
}


def transform_documents(collection: str, documents: List[Dict[str, Any]]) -> list:
    """Transform a batch of raw documents for one collection."""
    transform = TRANSFORMERS[collection]
    rows = [transform(doc) for doc in documents if isinstance(doc, dict)]
    skipped = len(documents) - len(rows)
    logger.info(
        f"Transformed {len(rows)} {collection} documents ({skipped} skipped)",
        extra={"collection": collection},
    )
    return rows


# ── Client payloads ──

_COERCERS = {int: _safe_int, float: _safe_float, str: _text}


def coerce_fields(model: Type[SQLModel], payload: Dict[str, Any]) -> Dict[str, Any]:
    """Column values from an API payload, coerced to each column's type.

    Unknown keys and "id" are dropped. Table models skip validation, so
    numbers are coerced here the same way imported documents are.
    """
    fields: Dict[str, Any] = {}
    for key, value in payload.items():
        info = model.model_fields.get(key)
        if info is None or key == "id":
            continue
        if key == "labels":
            fields[key] = [_label(l) for l in value if isinstance(l, dict)] if isinstance(value, list) else []
        elif key == "date":
            fields[key] = _iso_date(value)
        else:
            coerce = _COERCERS.get(info.annotation)
            fields[key] = coerce(value) if coerce else value
    return fields
