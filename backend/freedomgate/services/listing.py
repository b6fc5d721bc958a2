"""Paginated admin listings.

Each listing takes an explicit filter object; ``status="all"`` (or empty)
means no status filter and ``search`` is a case-insensitive substring match.
"""
import math
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from freedomgate.models import User, Subscription, SubscriptionStatus, Transaction, TransactionStatus
from freedomgate.services.exceptions import InvalidRequest


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def pagination(self, total: int) -> dict:
        total_pages = math.ceil(total / self.limit) if self.limit else 0
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "totalPages": total_pages,
            "hasNext": self.page < total_pages,
            "hasPrev": self.page > 1,
        }


def _status_or_none(status: Optional[str], allowed: tuple) -> Optional[str]:
    if not status or status == "all":
        return None
    if status not in allowed:
        raise InvalidRequest(f"Invalid status filter '{status}'")
    return status


@dataclass(frozen=True)
class UserFilter:
    search: str = ""
    verified: Optional[bool] = None

    @classmethod
    def from_query(cls, search: str = "", status: str = "all") -> "UserFilter":
        s = _status_or_none(status, ("verified", "unverified"))
        return cls(search=search.strip(), verified=None if s is None else s == "verified")

    def apply(self, stmt: Select) -> Select:
        if self.search:
            stmt = stmt.where(or_(
                User.name.icontains(self.search, autoescape=True),
                User.email.icontains(self.search, autoescape=True),
            ))
        if self.verified is not None:
            stmt = stmt.where(User.is_verified == self.verified)
        return stmt


@dataclass(frozen=True)
class SubscriptionFilter:
    search: str = ""
    status: Optional[str] = None

    @classmethod
    def from_query(cls, search: str = "", status: str = "all") -> "SubscriptionFilter":
        return cls(search=search.strip(), status=_status_or_none(status, SubscriptionStatus.ALL))

    def apply(self, stmt: Select) -> Select:
        stmt = stmt.join(User, Subscription.user_id == User.id)
        if self.search:
            stmt = stmt.where(or_(
                User.name.icontains(self.search, autoescape=True),
                Subscription.plan_id.icontains(self.search, autoescape=True),
            ))
        if self.status:
            stmt = stmt.where(Subscription.status == self.status)
        return stmt


@dataclass(frozen=True)
class TransactionFilter:
    search: str = ""
    status: Optional[str] = None

    @classmethod
    def from_query(cls, search: str = "", status: str = "all") -> "TransactionFilter":
        return cls(search=search.strip(), status=_status_or_none(status, TransactionStatus.ALL))

    def apply(self, stmt: Select) -> Select:
        stmt = stmt.join(User, Transaction.user_id == User.id)
        if self.search:
            stmt = stmt.where(or_(
                User.name.icontains(self.search, autoescape=True),
                User.email.icontains(self.search, autoescape=True),
                Transaction.order_ref.icontains(self.search, autoescape=True),
                Transaction.transaction_hash.icontains(self.search, autoescape=True),
            ))
        if self.status:
            stmt = stmt.where(Transaction.status == self.status)
        return stmt


async def _count(db: AsyncSession, stmt: Select) -> int:
    return await db.scalar(select(func.count()).select_from(stmt.subquery())) or 0


async def list_users(db: AsyncSession, flt: UserFilter, page: PageRequest) -> tuple[list[tuple], int]:
    """Users newest first as ``(user, active_subscription, transaction_count)`` rows."""
    total = await _count(db, flt.apply(select(User.id)))

    tx_count = (
        select(func.count(Transaction.id))
        .where(Transaction.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    rows = (await db.execute(
        flt.apply(select(User, tx_count))
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(page.offset)
        .limit(page.limit)
    )).all()

    user_ids = [u.id for u, _ in rows]
    active = {}
    if user_ids:
        subs = await db.scalars(
            select(Subscription)
            .where(Subscription.user_id.in_(user_ids), Subscription.status == SubscriptionStatus.active)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        )
        for sub in subs:
            active.setdefault(sub.user_id, sub)
    return [(user, active.get(user.id), count or 0) for user, count in rows], total


async def list_subscriptions(
    db: AsyncSession, flt: SubscriptionFilter, page: PageRequest,
) -> tuple[list[Subscription], int]:
    total = await _count(db, flt.apply(select(Subscription.id)))
    subs = await db.scalars(
        flt.apply(select(Subscription))
        .options(selectinload(Subscription.user))
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .offset(page.offset)
        .limit(page.limit)
    )
    return list(subs), total


async def list_transactions(
    db: AsyncSession, flt: TransactionFilter, page: PageRequest,
) -> tuple[list[Transaction], int]:
    total = await _count(db, flt.apply(select(Transaction.id)))
    txns = await db.scalars(
        flt.apply(select(Transaction))
        .options(selectinload(Transaction.user), selectinload(Transaction.subscription))
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .offset(page.offset)
        .limit(page.limit)
    )
    return list(txns), total
