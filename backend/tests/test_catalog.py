from datetime import datetime, timezone
import pytest
from freedomgate.catalog import SUBSCRIPTION_PLANS, get_plan, add_plan_duration, plan_summary


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_catalog_ids():
    assert [p.id for p in SUBSCRIPTION_PLANS] == ["weekly", "monthly", "quarterly", "biannual", "annual"]
    assert [p.id for p in SUBSCRIPTION_PLANS if p.popular] == ["monthly"]


def test_get_plan_unknown():
    assert get_plan("lifetime") is None


@pytest.mark.parametrize("plan_id,start,expected", [
    ("weekly", utc(2024, 1, 1), utc(2024, 1, 8)),
    ("monthly", utc(2024, 3, 15, 10, 30), utc(2024, 4, 15, 10, 30)),
    ("quarterly", utc(2024, 11, 30), utc(2025, 2, 28)),
    ("biannual", utc(2024, 8, 31), utc(2025, 2, 28)),
    ("annual", utc(2024, 2, 29), utc(2025, 2, 28)),
])
def test_plan_durations(plan_id, start, expected):
    assert add_plan_duration(start, plan_id) == expected


def test_month_end_clamps_in_leap_year():
    assert get_plan("monthly").extend(utc(2024, 1, 31)) == utc(2024, 2, 29)


def test_unknown_plan_falls_back_to_one_month():
    assert add_plan_duration(utc(2024, 5, 10), "gone") == utc(2024, 6, 10)


def test_plan_summary():
    assert plan_summary("annual")["price"] == 119.99
    assert plan_summary("annual")["durationInDays"] == 365
    assert plan_summary("gone") == {"id": "gone", "name": "Unknown Plan", "price": 0, "duration": "1 month"}
