"""GMB Dashboard: Stored Collections.

One table per collection of the reporting store. Rows are written one at a
time; nothing here enforces uniqueness or links profiles to insights.
Profiles and insights are matched by business name at read time.
"""

from datetime import datetime, timezone
from typing import ClassVar, List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """A Google Business Profile listing (doctor, clinic, hospital)."""

    __tablename__ = "profiles"
    scope_columns: ClassVar[tuple[str, str]] = ("cluster", "branch")

    id: Optional[int] = Field(default=None, primary_key=True)
    business_name: str = Field(default="", index=True)
    name: str = Field(default="", index=True)
    phone: str = "Not available"
    place_id: str = ""
    new_review_uri: str = ""
    maps_uri: str = ""
    website_url: str = ""
    labels: List[dict] = Field(
        default_factory=list,
        sa_column=Column(JSON),
        description="Tracked keywords: {rank, label, competitors, screen_shot, business_name, link}",
    )
    account: str = Field(default="", description="accounts/<id>/locations/<id>")
    primary_category: str = ""
    address: str = ""
    average_rating: float = 0.0
    total_review_count: int = 0
    profile_photo: str = ""
    profile_screenshot: str = ""
    mail_id: str = ""
    cluster: str = Field(default="", index=True)
    branch: str = Field(default="", index=True)


class MonthlyInsight(SQLModel, table=True):
    """One month of interaction counts for one profile."""

    __tablename__ = "monthly_insights"
    scope_columns: ClassVar[tuple[str, str]] = ("cluster", "branch")

    id: Optional[int] = Field(default=None, primary_key=True)
    business_name: str = Field(default="", index=True)
    month: str = Field(default="", index=True, description="Jan..Dec")
    date: str = Field(default="", description="YYYY-MM-DD, may be empty")
    cluster: str = Field(default="", index=True)
    branch: str = Field(default="", index=True)
    department: str = ""
    speciality: str = ""
    google_search_mobile: int = 0
    google_search_desktop: int = 0
    google_maps_mobile: int = 0
    google_maps_desktop: int = 0
    directions: int = 0
    website_clicks: int = 0
    calls: int = 0
    review: int = 0
    rating: float = 0.0
    phone: str = "Not available"


class LocationVerification(SQLModel, table=True):
    """Pre-aggregated profile counts by verification status."""

    __tablename__ = "location_verifications"
    scope_columns: ClassVar[tuple[str, str]] = ("cluster", "unit_name")

    id: Optional[int] = Field(default=None, primary_key=True)
    month: str = Field(default="", index=True)
    cluster: str = Field(default="", index=True)
    unit_name: str = Field(default="", index=True)
    department: str = ""
    total_profiles: int = 0
    verified_profiles: int = 0
    unverified_profiles: int = 0
    need_access: int = 0
    not_interested: int = 0
    out_of_organization: int = 0


class UserAccount(SQLModel, table=True):
    """Dashboard login.

    Passwords are stored as given and compared by string equality.
    """

    __tablename__ = "user_accounts"

    id: Optional[int] = Field(default=None, primary_key=True)
    user: str = Field(default="", description="Display name")
    mail: str = Field(default="", index=True)
    org_email: str = Field(default="", index=True)
    psw: str = ""
    role: str = Field(default="Branch", description="Admin | Cluster | Branch")
    cluster: str = ""
    branch: str = ""
    logo: str = ""
    otp: Optional[str] = None
    otp_expires: Optional[datetime] = None
    reset_token: Optional[str] = None
    reset_token_expires: Optional[datetime] = None
    notify_phone_change: bool = False
    notify_name_change: bool = False
    notify_monthly_report: bool = False


class LoginAlert(SQLModel, table=True):
    """Append-only log of dashboard logins."""

    __tablename__ = "login_alerts"

    id: Optional[int] = Field(default=None, primary_key=True)
    user: str = ""
    email: str = ""
    role: str = Field(default="", index=True)
    location: str = ""
    cluster: Optional[str] = Field(default=None, index=True)
    type: str = "LOGIN"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    read: bool = False


COLLECTIONS = {
    "insights": MonthlyInsight,
    "doctors": Profile,
    "locations": LocationVerification,
}
