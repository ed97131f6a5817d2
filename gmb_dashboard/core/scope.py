"""GMB Dashboard: Row-Level Visibility.

A Scope is derived from the caller's role and is applied by the repository
to every read and write, so route handlers never filter by cluster or
branch themselves.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from sqlalchemy import false


class ScopeLevel(str, Enum):
    GLOBAL = "global"
    CLUSTER = "cluster"
    BRANCH = "branch"


ROLE_LEVELS = {
    "Admin": ScopeLevel.GLOBAL,
    "Cluster": ScopeLevel.CLUSTER,
    "Branch": ScopeLevel.BRANCH,
}


class ScopeViolation(Exception):
    """Raised when a write targets a row outside the caller's scope."""


@dataclass(frozen=True)
class Scope:
    level: ScopeLevel
    cluster: Optional[str] = None
    branch: Optional[str] = None

    @classmethod
    def global_scope(cls) -> "Scope":
        return cls(ScopeLevel.GLOBAL)

    @classmethod
    def for_user(
        cls, role: Optional[str], cluster: Optional[str] = None, branch: Optional[str] = None
    ) -> "Scope":
        # Unknown roles get a branch scope without a branch: sees nothing
        level = ROLE_LEVELS.get(role or "", ScopeLevel.BRANCH)
        if level == ScopeLevel.GLOBAL:
            return cls.global_scope()
        if level == ScopeLevel.CLUSTER:
            return cls(level, cluster=cluster or None)
        return cls(ScopeLevel.BRANCH, cluster=cluster or None, branch=branch or None)

    @property
    def is_global(self) -> bool:
        return self.level == ScopeLevel.GLOBAL

    def clauses(self, model: Any) -> List[Any]:
        """SQL predicates restricting `model` to this scope."""
        if self.is_global:
            return []
        cluster_col, branch_col = model.scope_columns
        if self.level == ScopeLevel.CLUSTER:
            if not self.cluster:
                return [false()]
            return [getattr(model, cluster_col) == self.cluster]
        if not self.branch:
            return [false()]
        return [getattr(model, branch_col) == self.branch]

    def allows(self, row: Any) -> bool:
        """In-memory equivalent of clauses() for a single row."""
        if self.is_global:
            return True
        cluster_col, branch_col = type(row).scope_columns
        if self.level == ScopeLevel.CLUSTER:
            return bool(self.cluster) and getattr(row, cluster_col) == self.cluster
        return bool(self.branch) and getattr(row, branch_col) == self.branch
