from fastapi import APIRouter
from freedomgate.catalog import SUBSCRIPTION_PLANS, PAYMENT_METHODS

router = APIRouter(prefix="/api/plans", tags=["plans"])


@router.get("")
async def list_plans():
    return {
        "success": True,
        "plans": [p.to_dict() for p in SUBSCRIPTION_PLANS],
        "paymentMethods": PAYMENT_METHODS,
    }
