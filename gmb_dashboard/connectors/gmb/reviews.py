"""GMB Dashboard: Review Aggregation.

Walks the paginated reviews endpoint and folds every page into a star
distribution plus a handful of sample comments.
"""

from typing import Any, Dict

from gmb_dashboard.config import settings
from gmb_dashboard.connectors.gmb.client import GMBAPIError, GMBClient
from gmb_dashboard.models.report_models import ReviewSnippet, ReviewSummary
from gmb_dashboard.core.logging import get_logger

logger = get_logger("gmb.reviews")

STAR_INDEX = {"ONE": 0, "TWO": 1, "THREE": 2, "FOUR": 3, "FIVE": 4}
MAX_SNIPPETS = 5


def _snippet(review: Dict[str, Any]) -> ReviewSnippet:
    reviewer = review.get("reviewer") or {}
    return ReviewSnippet(
        comment=str(review.get("comment", "")),
        author=str(reviewer.get("displayName", "")),
        date=str(review.get("createTime", "")),
    )


def _fold_page(summary: ReviewSummary, reviews: list) -> None:
    for review in reviews:
        star = review.get("starRating")
        index = STAR_INDEX.get(star)
        if index is None:
            continue
        summary.ratings[index] += 1
        if not review.get("comment"):
            continue
        if star == "FIVE" and len(summary.good_reviews) < MAX_SNIPPETS:
            summary.good_reviews.append(_snippet(review))
        elif star == "ONE" and len(summary.bad_reviews) < MAX_SNIPPETS:
            summary.bad_reviews.append(_snippet(review))
    summary.total_fetched += len(reviews)


async def fetch_all_reviews(
    client: GMBClient,
    email: str,
    location: str,
    limit: int | None = None,
) -> ReviewSummary:
    """Aggregate review pages until exhausted or `limit` reviews are seen.

    Upstream failures end the walk early; whatever was gathered so far is
    returned.
    """
    if limit is None:
        limit = settings.review_fetch_limit
    summary = ReviewSummary()
    page_token = ""

    while True:
        try:
            page = await client.fetch_review_page(email, location, page_token)
            reviews = page.get("reviews") or []
            _fold_page(summary, reviews)
        except (GMBAPIError, AttributeError, TypeError) as e:
            logger.warning(
                f"Review fetch stopped after {summary.total_fetched} reviews: {e}"
            )
            break

        page_token = page.get("nextPageToken") or ""
        if not page_token or summary.total_fetched >= limit:
            break

    logger.info(f"Aggregated {summary.total_fetched} reviews for {location}")
    return summary
