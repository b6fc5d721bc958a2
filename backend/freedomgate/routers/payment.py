from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from freedomgate.catalog import get_plan
from freedomgate.database import get_db
from freedomgate.core.deps import get_current_user
from freedomgate.core.timeutil import isoformat
from freedomgate.models.user import User
from freedomgate.schemas.payment import PaymentCompleteRequest
from freedomgate.services.exceptions import PaymentProcessingError
from freedomgate.services.reconciliation import complete_payment

router = APIRouter(prefix="/api/payment", tags=["payment"])


@router.post("/complete")
async def complete(
    body: PaymentCompleteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Client asserts the transfer is done; record it and activate the plan."""
    plan = get_plan(body.plan_id)
    if not plan:
        raise HTTPException(400, "Invalid plan")

    user_id = user.id
    try:
        txn, sub = await complete_payment(
            db,
            user_id=user_id,
            plan=plan,
            payment_method=body.payment_method,
            wallet_address=body.wallet_address,
            transaction_hash=body.transaction_hash,
            order_ref=body.order_ref,
        )
    except PaymentProcessingError as e:
        raise HTTPException(500, e.message)

    return {
        "success": True,
        "message": "Payment completed and subscription activated",
        "subscription": {
            "id": sub.id,
            "status": sub.status,
            "startDate": isoformat(sub.start_date),
            "endDate": isoformat(sub.end_date),
            "plan": plan.to_dict(),
        },
        "transaction": {
            "id": txn.id,
            "status": txn.status,
            "orderRef": txn.order_ref,
            "transactionHash": txn.transaction_hash,
        },
    }
