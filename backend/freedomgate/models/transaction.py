from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from freedomgate.core.timeutil import utcnow
from freedomgate.database import Base


class TransactionStatus:
    pending = "pending"
    completed = "completed"
    failed = "failed"
    expired = "expired"

    ALL = (pending, completed, failed, expired)


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(10), nullable=False, default="USDT")
    payment_method = Column(String(20), nullable=False)
    wallet_address = Column(String, nullable=False)
    transaction_hash = Column(String, nullable=True)
    status = Column(String(20), nullable=False, default=TransactionStatus.pending)
    order_ref = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="transactions")
    subscription = relationship("Subscription", back_populates="transactions")
