from datetime import datetime, timedelta, timezone
from unittest.mock import patch
import pytest
from sqlalchemy import select
from freedomgate.core.security import hash_password
from freedomgate.main import create_app
from freedomgate.models import User, Subscription, SubscriptionStatus
from freedomgate.services.expiry import expire_subscriptions, run_expiry_sweep
from conftest import make_settings

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)
PW_HASH = hash_password("Passw0rd!")
# past the end of every seeded subscription
LATER = NOW + timedelta(days=400)


async def seed_subscriptions(db):
    users = [User(name=f"U{i}", email=f"u{i}@example.com", password_hash=PW_HASH) for i in range(4)]
    db.add_all(users)
    await db.flush()
    db.add_all([
        Subscription(user_id=users[0].id, plan_id="monthly", status=SubscriptionStatus.active,
                     start_date=NOW - timedelta(days=40), end_date=NOW - timedelta(days=10)),
        Subscription(user_id=users[1].id, plan_id="weekly", status=SubscriptionStatus.active,
                     start_date=NOW - timedelta(days=8), end_date=NOW - timedelta(minutes=1)),
        Subscription(user_id=users[2].id, plan_id="annual", status=SubscriptionStatus.active,
                     start_date=NOW, end_date=NOW + timedelta(days=365)),
        Subscription(user_id=users[3].id, plan_id="monthly", status=SubscriptionStatus.pending,
                     start_date=NOW - timedelta(days=60), end_date=NOW - timedelta(days=30)),
    ])
    await db.commit()


@pytest.mark.asyncio
async def test_sweep_expires_only_past_due_active(session_factory):
    async with session_factory() as db:
        await seed_subscriptions(db)

    async with session_factory() as db:
        assert await expire_subscriptions(db, now=NOW) == 2

    async with session_factory() as db:
        statuses = list(await db.scalars(select(Subscription.status).order_by(Subscription.id)))
    assert statuses == ["expired", "expired", "active", "pending"]


@pytest.mark.asyncio
async def test_sweep_is_idempotent(session_factory):
    async with session_factory() as db:
        await seed_subscriptions(db)
        assert await expire_subscriptions(db, now=NOW) == 2
        assert await expire_subscriptions(db, now=NOW) == 0


@pytest.mark.asyncio
async def test_run_expiry_sweep_uses_fresh_session(session_factory):
    async with session_factory() as db:
        await seed_subscriptions(db)
    with patch("freedomgate.services.expiry.utcnow", return_value=LATER):
        assert await run_expiry_sweep(session_factory) == 3
    with patch("freedomgate.services.expiry.utcnow", return_value=NOW):
        assert await run_expiry_sweep(session_factory) == 0


@pytest.mark.asyncio
async def test_check_expiry_endpoint(client, session_factory):
    async with session_factory() as db:
        await seed_subscriptions(db)

    with patch("freedomgate.services.expiry.utcnow", return_value=NOW):
        r = await client.post("/api/subscriptions/check-expiry")
        assert r.status_code == 200
        assert r.json() == {"success": True, "updated": 2, "message": "Updated 2 expired subscriptions"}

        r = await client.post("/api/subscriptions/check-expiry")
        assert r.json()["updated"] == 0


@pytest.mark.asyncio
async def test_lifespan_schedules_sweep():
    app = create_app(make_settings(EXPIRY_SWEEP_INTERVAL_MINUTES=15))
    with patch("freedomgate.main.AsyncIOScheduler") as Scheduler:
        scheduler = Scheduler.return_value
        scheduler.running = True
        async with app.router.lifespan_context(app):
            pass
    _, kwargs = scheduler.add_job.call_args
    assert scheduler.add_job.call_args.args[0] is run_expiry_sweep
    assert kwargs["minutes"] == 15
    scheduler.start.assert_called_once()
    scheduler.shutdown.assert_called_once()


@pytest.mark.asyncio
async def test_lifespan_without_sweep():
    app = create_app(make_settings())
    with patch("freedomgate.main.AsyncIOScheduler") as Scheduler:
        async with app.router.lifespan_context(app):
            pass
    Scheduler.return_value.add_job.assert_not_called()
