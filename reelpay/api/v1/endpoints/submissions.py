"""
Creator submission endpoints.
"""
from typing import List
from fastapi import APIRouter, Depends, status, Request
from sqlalchemy.orm import Session
from reelpay.api.deps import get_db, get_request_id, require_creator
from reelpay.models.db import User
from reelpay.models.schemas.submissions import SubmissionRead, VerificationRequestRead
from reelpay.services import submissions
from reelpay.utils import get_logger

router = APIRouter()
logger = get_logger(__name__)

@router.get(
    "/me",
    response_model=List[SubmissionRead],
    summary="My submissions"
)
async def list_my_submissions(
    creator: User = Depends(require_creator),
    db: Session = Depends(get_db)
) -> List[SubmissionRead]:
    return [SubmissionRead.model_validate(s) for s in submissions.list_creator_submissions(db, creator.id)]

@router.post(
    "/{submission_id}/reverify",
    response_model=VerificationRequestRead,
    status_code=status.HTTP_201_CREATED,
    summary="Request re-verification",
    description="At most one request per submission per verification cycle"
)
async def request_reverification(
    submission_id: int,
    request: Request,
    creator: User = Depends(require_creator),
    db: Session = Depends(get_db)
) -> VerificationRequestRead:
    logger.info(
        "Re-verification request received",
        submission_id=submission_id,
        creator_id=creator.id,
        request_id=get_request_id(request)
    )
    ticket = submissions.request_reverification(db, submission_id, creator.id)
    return VerificationRequestRead.model_validate(ticket)
