from collections import defaultdict
from datetime import datetime, timedelta
from typing import Optional
from dateutil.relativedelta import relativedelta
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from freedomgate.core.timeutil import utcnow, as_utc, isoformat
from freedomgate.models import User, Subscription, SubscriptionStatus, Transaction, TransactionStatus
from freedomgate.serializers import user_ref

REVENUE_MONTHS = 12


def month_starts(now: datetime, months: int = REVENUE_MONTHS) -> list[datetime]:
    """First instant of each of the last ``months`` calendar months, oldest first."""
    current = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return [current - relativedelta(months=i) for i in range(months - 1, -1, -1)]


def bucket_revenue(rows, starts: list[datetime]) -> list[dict]:
    """Sum ``(created_at, amount)`` rows into the calendar months in ``starts``."""
    totals = defaultdict(float)
    for created_at, amount in rows:
        created_at = as_utc(created_at)
        totals[(created_at.year, created_at.month)] += float(amount or 0)
    return [
        {"month": s.strftime("%b %Y"), "revenue": round(totals[(s.year, s.month)], 2)}
        for s in starts
    ]


async def _count(db: AsyncSession, model, *where) -> int:
    return await db.scalar(select(func.count(model.id)).where(*where)) or 0


async def dashboard_stats(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    thirty_days_ago = now - timedelta(days=30)

    total_users = await _count(db, User)
    recent_users = await _count(db, User, User.created_at >= thirty_days_ago)
    active_subs = await _count(db, Subscription, Subscription.status == SubscriptionStatus.active)
    expired_subs = await _count(db, Subscription, Subscription.status == SubscriptionStatus.expired)
    pending_txns = await _count(db, Transaction, Transaction.status == TransactionStatus.pending)
    completed_txns = await _count(db, Transaction, Transaction.status == TransactionStatus.completed)
    recent_txns = await _count(
        db, Transaction,
        Transaction.status == TransactionStatus.completed,
        Transaction.created_at >= thirty_days_ago,
    )
    total_revenue = await db.scalar(
        select(func.sum(Transaction.amount)).where(Transaction.status == TransactionStatus.completed)
    )

    latest_users = list(await db.scalars(
        select(User).order_by(User.created_at.desc(), User.id.desc()).limit(5)
    ))
    latest_txns = list(await db.scalars(
        select(Transaction)
        .options(selectinload(Transaction.user))
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(5)
    ))

    starts = month_starts(now)
    revenue_rows = (await db.execute(
        select(Transaction.created_at, Transaction.amount).where(
            Transaction.status == TransactionStatus.completed,
            Transaction.created_at >= starts[0],
        )
    )).all()

    return {
        "overview": {
            "totalUsers": total_users,
            "totalActiveSubscriptions": active_subs,
            "totalRevenue": float(total_revenue) if total_revenue else 0,
            "recentUsers": recent_users,
            "recentTransactions": recent_txns,
        },
        "subscriptions": {
            "active": active_subs,
            "expired": expired_subs,
            "total": active_subs + expired_subs,
        },
        "transactions": {
            "pending": pending_txns,
            "completed": completed_txns,
            "total": pending_txns + completed_txns,
        },
        "recentActivity": {
            "users": [
                {**user_ref(u), "createdAt": isoformat(u.created_at)} for u in latest_users
            ],
            "transactions": [
                {
                    "id": t.id,
                    "amount": float(t.amount),
                    "currency": t.currency,
                    "status": t.status,
                    "orderRef": t.order_ref,
                    "createdAt": isoformat(t.created_at),
                    "user": user_ref(t.user),
                }
                for t in latest_txns
            ],
        },
        "charts": {"monthlyRevenue": bucket_revenue(revenue_rows, starts)},
    }
