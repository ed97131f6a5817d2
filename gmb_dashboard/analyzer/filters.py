"""GMB Dashboard: Insight Filters.

Multi-select filters applied to monthly insight rows. An empty selection
means "no restriction" for that dimension.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Sequence

from gmb_dashboard.core.months import parse_year, sort_months
from gmb_dashboard.models.document_models import MonthlyInsight
from gmb_dashboard.models.report_models import FilterOptions


@dataclass
class InsightFilter:
    clusters: List[str] = field(default_factory=list)
    branches: List[str] = field(default_factory=list)
    months: List[str] = field(default_factory=list)
    years: List[str] = field(default_factory=list)
    specialities: List[str] = field(default_factory=list)
    departments: List[str] = field(default_factory=list)
    ratings: List[int] = field(default_factory=list)

    def _checks(self) -> Dict[str, Callable[[MonthlyInsight], bool]]:
        return {
            "cluster": lambda r: not self.clusters or r.cluster in self.clusters,
            "branch": lambda r: not self.branches or r.branch in self.branches,
            "month": lambda r: not self.months or r.month in self.months,
            "year": lambda r: not self.years or str(parse_year(r.date)) in self.years,
            "speciality": lambda r: not self.specialities or r.speciality in self.specialities,
            "department": lambda r: not self.departments or r.department in self.departments,
            "rating": lambda r: not self.ratings or math.floor(r.rating or 0) in self.ratings,
        }

    def matches(self, row: MonthlyInsight, skip: Iterable[str] = ()) -> bool:
        """True if `row` passes every check not named in `skip`."""
        skipped = set(skip)
        return all(check(row) for name, check in self._checks().items() if name not in skipped)

    def apply(self, rows: Sequence[MonthlyInsight], skip: Iterable[str] = ()) -> List[MonthlyInsight]:
        skipped = tuple(skip)
        return [r for r in rows if self.matches(r, skipped)]

    def only(self, *names: str) -> "InsightFilter":
        """Copy keeping only the named dimensions."""
        keep = {
            "cluster": "clusters",
            "branch": "branches",
            "month": "months",
            "year": "years",
            "speciality": "specialities",
            "department": "departments",
            "rating": "ratings",
        }
        return InsightFilter(**{attr: list(getattr(self, attr)) for dim, attr in keep.items() if dim in names})

    @property
    def narrows_profiles(self) -> bool:
        """Speciality/rating selections change which profiles are counted."""
        return bool(self.specialities or self.ratings)


def _distinct_sorted(values: Iterable[str]) -> List[str]:
    return sorted({v for v in values if v})


def filter_options(rows: Sequence[MonthlyInsight], flt: InsightFilter) -> FilterOptions:
    """Cascading option lists: each list reflects the selections above it."""
    clusters = _distinct_sorted(r.cluster for r in flt.only("department").apply(rows))
    branches = _distinct_sorted(r.branch for r in flt.only("cluster", "department").apply(rows))
    specialities = _distinct_sorted(
        r.speciality for r in flt.only("cluster", "branch", "department", "rating").apply(rows)
    )
    months = sort_months({r.month for r in rows if r.month})
    years = sorted({str(y) for y in (parse_year(r.date) for r in rows) if y}, reverse=True)
    return FilterOptions(
        clusters=clusters,
        branches=branches,
        months=months,
        years=years,
        specialities=specialities,
    )
