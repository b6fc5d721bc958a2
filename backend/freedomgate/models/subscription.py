from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from freedomgate.core.timeutil import utcnow
from freedomgate.database import Base


class SubscriptionStatus:
    active = "active"
    expired = "expired"
    pending = "pending"
    cancelled = "cancelled"

    ALL = (active, expired, pending, cancelled)


_ACTIVE_ONLY = text("status = 'active'")


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        # at most one active subscription per user
        Index(
            "uq_subscriptions_user_active",
            "user_id",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default=SubscriptionStatus.pending)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    auto_renew = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="subscriptions")
    transactions = relationship("Transaction", back_populates="subscription", passive_deletes=True)
