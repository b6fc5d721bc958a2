from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from freedomgate.core.timeutil import utcnow
from freedomgate.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(50), nullable=False)
    password_hash = Column(String, nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String, nullable=True)
    reset_token = Column(String, nullable=True)
    reset_token_expiry = Column(DateTime(timezone=True), nullable=True)
    language = Column(String(5), nullable=False, default="en")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    subscriptions = relationship(
        "Subscription", back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )
    transactions = relationship(
        "Transaction", back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )
