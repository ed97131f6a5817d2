import unittest
from datetime import date

from gmb_dashboard.core.months import (
    in_period,
    latest_month,
    latest_period,
    month_index,
    previous_calendar_month,
    sort_months,
)
from support import insight


class MonthOrderingTests(unittest.TestCase):
    def test_month_index_is_calendar_position(self) -> None:
        self.assertEqual(0, month_index("Jan"))
        self.assertEqual(11, month_index("Dec"))

    def test_unknown_month_sorts_first(self) -> None:
        self.assertEqual(-1, month_index("Sept"))
        self.assertEqual(["Sept", "Jan", "Mar"], sort_months(["Mar", "Sept", "Jan"]))

    def test_sort_months_calendar_not_alphabetical(self) -> None:
        self.assertEqual(["Jan", "Feb", "Apr", "Aug"], sort_months(["Aug", "Apr", "Feb", "Jan"]))
        self.assertEqual(["Dec", "Nov", "Jan"], sort_months(["Jan", "Dec", "Nov"], reverse=True))


class LatestMonthTests(unittest.TestCase):
    def test_latest_month_by_calendar_order(self) -> None:
        rows = [insight("A", "Jan"), insight("A", "Mar"), insight("B", "Feb")]
        self.assertEqual("Mar", latest_month(rows))

    def test_year_breaks_ties_across_boundary(self) -> None:
        rows = [
            insight("A", "Dec", date="2024-12-01"),
            insight("A", "Jan", date="2025-01-01"),
        ]
        self.assertEqual(("Jan", 2025), latest_period(rows))

    def test_empty_rows_fall_back_to_previous_calendar_month(self) -> None:
        self.assertEqual(previous_calendar_month(), latest_month([]))

    def test_previous_calendar_month_wraps_in_january(self) -> None:
        self.assertEqual("Dec", previous_calendar_month(date(2025, 1, 15)))
        self.assertEqual("Feb", previous_calendar_month(date(2025, 3, 1)))


class InPeriodTests(unittest.TestCase):
    def test_month_and_year_must_both_match(self) -> None:
        row = insight("A", "Jan", date="2025-01-01")
        self.assertTrue(in_period(row, ("Jan", 2025)))
        self.assertFalse(in_period(row, ("Jan", 2024)))
        self.assertFalse(in_period(row, ("Feb", 2025)))
        self.assertTrue(in_period(insight("B", "Jan"), ("Jan", 0)))
