from typing import Optional
from pydantic import EmailStr, Field, field_validator
from freedomgate.schemas.auth import CamelModel, LoginRequest, ProfileUpdateRequest, normalize_email


class AdminLoginRequest(LoginRequest):
    pass


class UserUpdateData(ProfileUpdateRequest):
    email: Optional[EmailStr] = None

    @field_validator("email")
    @classmethod
    def email_format(cls, v: Optional[EmailStr]) -> Optional[str]:
        return normalize_email(v) if v is not None else v


class UserActionRequest(CamelModel):
    user_id: int
    action: str
    data: Optional[UserUpdateData] = None


class SubscriptionActionRequest(CamelModel):
    subscription_id: int
    action: str
    new_status: Optional[str] = None
    new_plan: Optional[str] = None


class TransactionActionRequest(CamelModel):
    transaction_id: int
    action: str
    new_status: Optional[str] = None
    transaction_hash: Optional[str] = Field(default=None, max_length=128)
