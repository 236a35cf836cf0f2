"""
Payment provider webhook.

The provider delivers at least once; a redelivered capture lands on the same
ledger idempotency key and is acknowledged without changing balances.
"""
import json
from fastapi import APIRouter, Depends, Header, HTTPException, status, Request
from sqlalchemy.orm import Session
from reelpay import config
from reelpay.api.deps import get_db, get_request_id
from reelpay.models.schemas.base import ResponseBase
from reelpay.services import deposits
from reelpay.utils import get_logger

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/payments",
    response_model=ResponseBase,
    summary="Payment provider callback",
    description="HMAC-SHA256 signed with the shared webhook secret (X-Webhook-Signature)"
)
async def payment_webhook(
    request: Request,
    x_webhook_signature: str = Header("", alias="X-Webhook-Signature"),
    db: Session = Depends(get_db)
) -> ResponseBase:
    request_id = get_request_id(request)
    body = await request.body()

    secret = config.PAYMENT_WEBHOOK_SECRET
    if secret:
        if not deposits.verify_webhook_signature(body, x_webhook_signature, secret):
            logger.warning("Webhook rejected: bad signature", request_id=request_id)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid webhook signature"
            )
    else:
        logger.warning("Webhook secret not configured; signature not checked", request_id=request_id)

    try:
        event = json.loads(body or b"{}")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook body is not valid JSON"
        )
    if not isinstance(event, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook body must be a JSON object"
        )

    result = deposits.deposit_from_payment_event(db, event)
    if result is None:
        return ResponseBase(message="Event ignored", data={"event": event.get("event")})

    logger.info(
        "Payment webhook processed",
        campaign_id=result.account.campaign_id,
        applied=result.applied,
        request_id=request_id
    )
    return ResponseBase(
        message="Deposit applied" if result.applied else "Deposit already applied",
        data={
            "campaign_id": result.account.campaign_id,
            "applied": result.applied,
            "total_paise": result.account.total_paise,
        },
    )
