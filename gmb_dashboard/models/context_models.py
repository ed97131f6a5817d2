"""GMB Dashboard: Caller Context.

Who is calling, as recovered from the bearer token, and what they may see.
"""

from typing import Optional

from pydantic import BaseModel, Field

from gmb_dashboard.core.scope import Scope


class Principal(BaseModel):
    """Authenticated dashboard user."""

    user_id: Optional[int] = Field(None, description="UserAccount id; None for the admin bypass")
    name: str = ""
    email: str = ""
    role: str = Field("Branch", description="Admin | Cluster | Branch")
    cluster: Optional[str] = None
    branch: Optional[str] = None

    @property
    def scope(self) -> Scope:
        return Scope.for_user(self.role, self.cluster, self.branch)

    def claims(self) -> dict:
        return {
            "sub": str(self.user_id) if self.user_id is not None else self.email,
            "uid": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "cluster": self.cluster,
            "branch": self.branch,
        }

    @classmethod
    def from_claims(cls, claims: dict) -> "Principal":
        return cls(
            user_id=claims.get("uid"),
            name=claims.get("name") or "",
            email=claims.get("email") or "",
            role=claims.get("role") or "Branch",
            cluster=claims.get("cluster"),
            branch=claims.get("branch"),
        )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 12,
                "name": "South Cluster Lead",
                "email": "south@example.com",
                "role": "Cluster",
                "cluster": "South",
            }
        }
