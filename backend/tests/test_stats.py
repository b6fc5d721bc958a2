from datetime import datetime, timedelta, timezone
from decimal import Decimal
import pytest
from freedomgate.core.security import hash_password
from freedomgate.models import User, Subscription, SubscriptionStatus, Transaction, TransactionStatus
from freedomgate.services.stats import month_starts, bucket_revenue, dashboard_stats
from conftest import bearer

NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


def test_month_starts_oldest_first():
    starts = month_starts(NOW, 3)
    assert starts == [
        datetime(2024, 1, 1, tzinfo=timezone.utc),
        datetime(2024, 2, 1, tzinfo=timezone.utc),
        datetime(2024, 3, 1, tzinfo=timezone.utc),
    ]
    assert len(month_starts(NOW)) == 12
    assert month_starts(NOW)[0] == datetime(2023, 4, 1, tzinfo=timezone.utc)


def test_bucket_revenue_groups_by_calendar_month():
    starts = month_starts(NOW, 3)
    rows = [
        (datetime(2024, 1, 31, 23, 59), Decimal("15.99")),
        (datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc), Decimal("4.99")),
        (datetime(2024, 3, 14, tzinfo=timezone.utc), Decimal("119.99")),
    ]
    assert bucket_revenue(rows, starts) == [
        {"month": "Jan 2024", "revenue": 15.99},
        {"month": "Feb 2024", "revenue": 0},
        {"month": "Mar 2024", "revenue": 124.98},
    ]


async def seed_activity(db):
    users = [
        User(name="Old User", email="old@example.com", password_hash="x", created_at=NOW - timedelta(days=90)),
        User(name="New User", email="new@example.com", password_hash="x", created_at=NOW - timedelta(days=2)),
    ]
    db.add_all(users)
    await db.flush()
    db.add_all([
        Subscription(user_id=users[0].id, plan_id="monthly", status=SubscriptionStatus.expired,
                     start_date=NOW - timedelta(days=90), end_date=NOW - timedelta(days=60)),
        Subscription(user_id=users[1].id, plan_id="weekly", status=SubscriptionStatus.active,
                     start_date=NOW, end_date=NOW + timedelta(days=7)),
    ])
    db.add_all([
        Transaction(user_id=users[0].id, amount=15.99, payment_method="usdt-trc20", wallet_address="T",
                    status=TransactionStatus.completed, order_ref="A", expires_at=NOW,
                    created_at=NOW - timedelta(days=90)),
        Transaction(user_id=users[1].id, amount=4.99, payment_method="usdt-trc20", wallet_address="T",
                    status=TransactionStatus.completed, order_ref="B", expires_at=NOW,
                    created_at=NOW - timedelta(days=1)),
        Transaction(user_id=users[1].id, amount=39.99, payment_method="usdt-erc20", wallet_address="0x",
                    status=TransactionStatus.pending, order_ref="C", expires_at=NOW, created_at=NOW),
    ])
    await db.commit()


@pytest.mark.asyncio
async def test_dashboard_stats(session_factory):
    async with session_factory() as db:
        await seed_activity(db)
        stats = await dashboard_stats(db, now=NOW)

    assert stats["overview"] == {
        "totalUsers": 2,
        "totalActiveSubscriptions": 1,
        "totalRevenue": pytest.approx(20.98),
        "recentUsers": 1,
        "recentTransactions": 1,
    }
    assert stats["subscriptions"] == {"active": 1, "expired": 1, "total": 2}
    assert stats["transactions"] == {"pending": 1, "completed": 2, "total": 3}
    assert [u["email"] for u in stats["recentActivity"]["users"]] == ["new@example.com", "old@example.com"]
    assert stats["recentActivity"]["transactions"][0]["orderRef"] == "C"
    assert stats["recentActivity"]["transactions"][0]["user"]["name"] == "New User"

    revenue = stats["charts"]["monthlyRevenue"]
    assert len(revenue) == 12
    assert revenue[-1] == {"month": "Mar 2024", "revenue": 4.99}
    assert {"month": "Dec 2023", "revenue": 15.99} in revenue


@pytest.mark.asyncio
async def test_dashboard_endpoint_requires_admin(client, admin_token, user):
    r = await client.get("/api/admin/dashboard/stats", headers=bearer(user["token"]))
    assert r.status_code == 401

    r = await client.get("/api/admin/dashboard/stats", headers=bearer(admin_token))
    assert r.status_code == 200
    assert r.json()["stats"]["overview"]["totalUsers"] == 1
