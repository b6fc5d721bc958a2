from typing import Literal, Optional
from pydantic import Field
from freedomgate.schemas.auth import CamelModel


class PaymentCompleteRequest(CamelModel):
    plan_id: str = Field(min_length=1)
    payment_method: Literal["usdt-trc20", "usdt-erc20"]
    wallet_address: str = Field(min_length=1, max_length=128)
    transaction_hash: Optional[str] = Field(default=None, max_length=128)
    order_ref: str = Field(min_length=1, max_length=64)
