"""GMB Dashboard: Report Output Schemas."""

from typing import List, Optional
from pydantic import BaseModel, computed_field


# ─────────────────────────────────────────────
# METRICS
# ─────────────────────────────────────────────


class AggregatedMetrics(BaseModel):
    """Sums over a set of monthly insights."""

    total_search_impressions: int = 0
    total_maps_views: int = 0
    total_directions: int = 0
    total_website_clicks: int = 0
    total_calls: int = 0
    average_rating: float = 0.0
    google_search_mobile: int = 0
    google_search_desktop: int = 0
    google_maps_mobile: int = 0
    google_maps_desktop: int = 0
    total_searches: int = 0


class ReviewStats(BaseModel):
    total_reviews: int = 0
    average_rating: float = 0.0


class TrendSignal(BaseModel):
    """Month-over-month comparison for a metric."""

    metric_name: str
    current_period: str
    previous_period: str = ""
    current_value: float
    previous_value: float
    change_pct: float
    direction: str  # "up" | "down" | "flat"
    signal: str = ""  # "improving" | "declining" | "stable" | "insufficient_data"
    previous_period_available: bool = True


# ─────────────────────────────────────────────
# RANKINGS
# ─────────────────────────────────────────────


class TopPerformer(BaseModel):
    """A profile ranked by Google search volume."""

    business_name: str
    cluster: str = ""
    branch: str = ""
    department: str = ""
    speciality: str = ""
    month: str = ""
    rating: float = 0.0
    total_searches: int = 0


class TopDoctors(BaseModel):
    latest_month: str = ""
    top_doctors: List[TopPerformer] = []


class KeywordRow(BaseModel):
    """One tracked keyword of one profile."""

    keyword: str
    doctor_name: str = ""
    branch: str = ""
    rank: int = 0
    competitor_count: int = 0
    competitors: List[str] = []


class KeywordStats(BaseModel):
    total: int = 0
    ranking: int = 0
    top3: int = 0
    top10: int = 0
    not_ranking: int = 0


class KeywordPage(BaseModel):
    stats: KeywordStats = KeywordStats()
    page: int = 1
    page_size: int = 10
    total_pages: int = 0
    total: int = 0
    rows: List[KeywordRow] = []


# ─────────────────────────────────────────────
# BRANCHES & LOCATIONS
# ─────────────────────────────────────────────


class BranchStats(BaseModel):
    name: str
    cluster: str = ""
    profile_count: int = 0
    total_search_impressions: int = 0
    total_maps_views: int = 0
    total_directions: int = 0
    total_website_clicks: int = 0
    total_calls: int = 0
    average_rating: float = 0.0
    total_keywords: int = 0
    ranking_keywords: int = 0


class BranchTotals(BaseModel):
    branches: int = 0
    profiles: int = 0
    impressions: int = 0
    calls: int = 0


class LocationRow(BaseModel):
    """A verification row, stored or synthesised from insights."""

    id: str
    month: str
    cluster: str = ""
    unit_name: str
    department: str = ""
    total_profiles: int = 0
    verified_profiles: int = 0
    unverified_profiles: int = 0
    need_access: int = 0
    not_interested: int = 0
    out_of_organization: int = 0


# ─────────────────────────────────────────────
# DASHBOARD
# ─────────────────────────────────────────────


class FilterOptions(BaseModel):
    clusters: List[str] = []
    branches: List[str] = []
    months: List[str] = []
    years: List[str] = []
    specialities: List[str] = []


class DashboardOverview(BaseModel):
    latest_month: str
    filter_options: FilterOptions
    metrics: AggregatedMetrics
    review_stats: ReviewStats
    top_performers: List[TopPerformer] = []
    locations: List[LocationRow] = []
    trends: List[TrendSignal] = []


class PhoneEntry(BaseModel):
    business_name: str
    phone: str
    branch: str = ""
    department: str = ""
    calls: int = 0


class PhoneDirectory(BaseModel):
    months: List[str] = []
    has_phone: int = 0
    no_phone: int = 0
    rows: List[PhoneEntry] = []


# ─────────────────────────────────────────────
# REVIEWS (third-party API)
# ─────────────────────────────────────────────


class ReviewSnippet(BaseModel):
    comment: str
    author: str = ""
    date: str = ""


class ReviewSummary(BaseModel):
    """Star distribution and sample comments over fetched review pages."""

    ratings: List[int] = [0, 0, 0, 0, 0]  # ONE..FIVE
    good_reviews: List[ReviewSnippet] = []
    bad_reviews: List[ReviewSnippet] = []
    total_fetched: int = 0

    @computed_field
    @property
    def total_rated(self) -> int:
        return sum(self.ratings)

    @computed_field
    @property
    def average_rating(self) -> float:
        rated = self.total_rated
        if rated == 0:
            return 0.0
        return round(sum((i + 1) * n for i, n in enumerate(self.ratings)) / rated, 2)


class DoctorDetails(BaseModel):
    profile: Optional[dict] = None
    monthly_insights: List[dict] = []
    keywords: List[dict] = []
    competitors: List[str] = []
