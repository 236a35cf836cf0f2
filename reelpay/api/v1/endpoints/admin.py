"""
Admin endpoints: verification queue, approve/reject, payouts and housekeeping.

The authenticated admin's id is handed to the core as the acting admin.
"""
import time
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status, Request
from sqlalchemy.orm import Session
from reelpay.api.deps import get_db, get_request_id, get_pagination_params, require_admin
from reelpay.models.db import User
from reelpay.models.db.enums import PayoutStatus, SubmissionStatus
from reelpay.models.schemas.base import ResponseBase
from reelpay.models.schemas.payouts import PayoutCreate, PayoutMarkPaid, PayoutRead
from reelpay.models.schemas.submissions import AdminVerifyRequest, SubmissionRead, VerificationOutcomeRead
from reelpay.services import payouts, submissions, verification
from reelpay.utils import get_logger, log_performance

router = APIRouter()
logger = get_logger(__name__)

@router.get(
    "/submissions",
    response_model=List[SubmissionRead],
    summary="Verification queue",
    description="Submissions filtered by status, oldest first"
)
async def list_submissions(
    status_filter: Optional[SubmissionStatus] = Query(None, alias="status"),
    pagination: dict = Depends(get_pagination_params),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> List[SubmissionRead]:
    rows = submissions.list_submissions(db, status_filter, **pagination)
    return [SubmissionRead.model_validate(s) for s in rows]

@router.post(
    "/submissions/{submission_id}/verify",
    response_model=VerificationOutcomeRead,
    summary="Approve or reject a submission",
    description="Approval reserves campaign budget for newly payable views"
)
async def verify_submission(
    submission_id: int,
    verify_data: AdminVerifyRequest,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> VerificationOutcomeRead:
    start_time = time.time()
    request_id = get_request_id(request)
    logger.info(
        "Admin verification started",
        submission_id=submission_id,
        admin_id=admin.id,
        approved=verify_data.approved,
        verified_views_total=verify_data.verified_views_total,
        request_id=request_id
    )
    outcome = verification.admin_verify(
        db,
        submission_id,
        admin.id,
        approved=verify_data.approved,
        verified_views_total=verify_data.verified_views_total,
        proof_note=verify_data.proof_note,
        proof_url=verify_data.proof_url,
    )
    log_performance(
        operation="admin_verify",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"submission_id": submission_id, "reserved_delta_paise": outcome.reserved_delta_paise}
    )
    return VerificationOutcomeRead.model_validate(outcome)

@router.post(
    "/submissions/close-lapsed",
    response_model=ResponseBase,
    summary="Close lapsed submissions",
    description="End submissions past their eligibility window with nothing outstanding"
)
async def close_lapsed(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ResponseBase:
    closed = submissions.close_lapsed_submissions(db)
    return ResponseBase(
        message=f"Closed {len(closed)} submissions",
        data={"closed_submission_ids": [s.id for s in closed]},
    )

@router.get(
    "/payouts",
    response_model=List[PayoutRead],
    summary="List payouts"
)
async def list_payouts(
    creator_id: Optional[int] = Query(None, gt=0),
    status_filter: Optional[PayoutStatus] = Query(None, alias="status"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> List[PayoutRead]:
    return [PayoutRead.model_validate(p) for p in payouts.list_payouts(db, creator_id, status_filter)]

@router.post(
    "/payouts",
    response_model=PayoutRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create payout batch",
    description="Batch a creator's verified, unpaid earnings into one PENDING payout"
)
async def create_payout(
    payout_data: PayoutCreate,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> PayoutRead:
    logger.info(
        "Payout batch requested",
        creator_id=payout_data.creator_id,
        admin_id=admin.id,
        request_id=get_request_id(request)
    )
    payout = payouts.create_payout_batch(db, payout_data.creator_id, admin.id)
    return PayoutRead.model_validate(payout)

@router.get(
    "/payouts/{payout_id}",
    response_model=PayoutRead,
    summary="Get payout"
)
async def get_payout(
    payout_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> PayoutRead:
    return PayoutRead.model_validate(payouts.get_payout(db, payout_id))

@router.post(
    "/payouts/{payout_id}/mark-paid",
    response_model=PayoutRead,
    summary="Settle payout",
    description="Move reserved budget to spent and advance paid views; once per payout"
)
async def mark_payout_paid(
    payout_id: int,
    settle_data: PayoutMarkPaid,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> PayoutRead:
    start_time = time.time()
    payout = payouts.settle_payout(db, payout_id, admin.id, settle_data.reference_id)
    log_performance(
        operation="settle_payout",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"payout_id": payout_id, "request_id": get_request_id(request)}
    )
    return PayoutRead.model_validate(payout)
