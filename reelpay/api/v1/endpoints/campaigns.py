"""
Campaign endpoints: lifecycle, funding, ledger, and creator join / submit.

Every rule lives in the services; handlers translate transport to core calls
and let ReelpayError propagate to the application's exception handler.
"""
import time
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, status, Request
from sqlalchemy.orm import Session
from reelpay.api.deps import (
    get_db, get_request_id, get_current_user, require_creator, require_host, require_host_or_admin,
)
from reelpay.config import DEPOSIT_SETTINGS
from reelpay.exceptions import Forbidden, InvalidAmount
from reelpay.models.db import User
from reelpay.models.db.enums import UserRole
from reelpay.models.schemas.campaigns import (
    CampaignCreate, CampaignRead, CycleInfoRead, DepositCreate, DepositRead,
    BudgetRead, JoinCampaignRequest, ParticipationRead,
)
from reelpay.models.schemas.payouts import LedgerEntryRead
from reelpay.models.schemas.submissions import SubmitContentRequest, SubmissionRead
from reelpay.services import campaigns as campaign_service
from reelpay.services import deposits, submissions
from reelpay.utils import get_logger, log_performance

router = APIRouter()
logger = get_logger(__name__)

def _campaign_read(db: Session, campaign_id: int) -> CampaignRead:
    return CampaignRead.model_validate(campaign_service.get_campaign(db, campaign_id))

@router.post(
    "/",
    response_model=CampaignRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create campaign",
    description="Create a DRAFT campaign with an optional seeded budget"
)
async def create_campaign(
    campaign_data: CampaignCreate,
    request: Request,
    host: User = Depends(require_host),
    db: Session = Depends(get_db)
) -> CampaignRead:
    start_time = time.time()
    request_id = get_request_id(request)
    logger.info(
        "Campaign creation started",
        host_id=host.id,
        platforms=[p.value for p in campaign_data.platforms],
        rate_per_1k_views_paise=campaign_data.rate_per_1k_views_paise,
        request_id=request_id
    )
    campaign = campaign_service.create_campaign(
        db,
        host_id=host.id,
        title=campaign_data.title,
        platforms=campaign_data.platforms,
        rate_per_1k_views_paise=campaign_data.rate_per_1k_views_paise,
        budget_total_paise=campaign_data.budget_total_paise,
        start_at=campaign_data.start_at,
        end_at=campaign_data.end_at,
        cycle_hours=campaign_data.cycle_hours,
        submission_eligibility_days=campaign_data.submission_eligibility_days,
    )
    log_performance(
        operation="create_campaign",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"campaign_id": campaign.id}
    )
    return _campaign_read(db, campaign.id)

@router.get(
    "/{campaign_id}",
    response_model=CampaignRead,
    summary="Get campaign with budget"
)
async def get_campaign(
    campaign_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> CampaignRead:
    return _campaign_read(db, campaign_id)

@router.post("/{campaign_id}/activate", response_model=CampaignRead, summary="Activate a DRAFT campaign")
async def activate_campaign(
    campaign_id: int,
    host: User = Depends(require_host),
    db: Session = Depends(get_db)
) -> CampaignRead:
    campaign_service.activate_campaign(db, campaign_id, host.id)
    return _campaign_read(db, campaign_id)

@router.post("/{campaign_id}/pause", response_model=CampaignRead, summary="Pause an ACTIVE campaign")
async def pause_campaign(
    campaign_id: int,
    host: User = Depends(require_host),
    db: Session = Depends(get_db)
) -> CampaignRead:
    campaign_service.pause_campaign(db, campaign_id, host.id)
    return _campaign_read(db, campaign_id)

@router.post("/{campaign_id}/resume", response_model=CampaignRead, summary="Resume a PAUSED campaign")
async def resume_campaign(
    campaign_id: int,
    host: User = Depends(require_host),
    db: Session = Depends(get_db)
) -> CampaignRead:
    campaign_service.resume_campaign(db, campaign_id, host.id)
    return _campaign_read(db, campaign_id)

@router.post(
    "/{campaign_id}/end",
    response_model=CampaignRead,
    summary="End campaign",
    description="Owner host or admin; closes submissions with nothing outstanding"
)
async def end_campaign(
    campaign_id: int,
    current_user: User = Depends(require_host_or_admin),
    db: Session = Depends(get_db)
) -> CampaignRead:
    campaign = campaign_service.get_campaign(db, campaign_id)
    if current_user.role == UserRole.HOST and campaign.host_id != current_user.id:
        raise Forbidden("Campaign belongs to another host", {"campaign_id": campaign_id})
    campaign_service.end_campaign(db, campaign_id, current_user.id)
    return _campaign_read(db, campaign_id)

@router.get(
    "/{campaign_id}/cycle",
    response_model=CycleInfoRead,
    summary="Current verification cycle"
)
async def get_cycle(campaign_id: int, db: Session = Depends(get_db)) -> CycleInfoRead:
    return CycleInfoRead.model_validate(campaign_service.get_cycle_info(db, campaign_id))

@router.post(
    "/{campaign_id}/deposits",
    response_model=DepositRead,
    summary="Add funds",
    description="Idempotent per Idempotency-Key header; a repeat returns applied=false"
)
async def add_funds(
    campaign_id: int,
    deposit_data: DepositCreate,
    request: Request,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=200),
    host: User = Depends(require_host),
    db: Session = Depends(get_db)
) -> DepositRead:
    start_time = time.time()
    request_id = get_request_id(request)

    campaign = campaign_service.get_campaign(db, campaign_id)
    if campaign.host_id != host.id:
        raise Forbidden("Campaign belongs to another host", {"campaign_id": campaign_id})
    min_amount = int(DEPOSIT_SETTINGS["min_manual_deposit_paise"])
    if deposit_data.amount_paise < min_amount:
        raise InvalidAmount(
            f"Minimum deposit is {min_amount} paise",
            {"amount_paise": deposit_data.amount_paise, "min_paise": min_amount},
        )
    if not idempotency_key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Idempotency-Key header is required"
        )

    logger.info(
        "Manual deposit requested",
        campaign_id=campaign_id,
        host_id=host.id,
        amount_paise=deposit_data.amount_paise,
        idempotency_key=idempotency_key,
        request_id=request_id
    )
    result = deposits.deposit(db, campaign_id, deposit_data.amount_paise, idempotency_key, actor_id=host.id)
    log_performance(
        operation="deposit",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"campaign_id": campaign_id, "applied": result.applied}
    )
    return DepositRead(
        campaign_id=campaign_id,
        applied=result.applied,
        ledger_entry_id=result.ledger_entry_id,
        budget=BudgetRead.model_validate(result.account),
    )

@router.get(
    "/{campaign_id}/ledger",
    response_model=List[LedgerEntryRead],
    summary="Campaign ledger",
    description="Every monetary movement for the campaign, oldest first"
)
async def get_ledger(
    campaign_id: int,
    current_user: User = Depends(require_host_or_admin),
    db: Session = Depends(get_db)
) -> List[LedgerEntryRead]:
    campaign = campaign_service.get_campaign(db, campaign_id)
    if current_user.role == UserRole.HOST and campaign.host_id != current_user.id:
        raise Forbidden("Campaign belongs to another host", {"campaign_id": campaign_id})
    return [LedgerEntryRead.model_validate(e) for e in campaign_service.campaign_ledger(db, campaign_id)]

@router.post(
    "/{campaign_id}/join",
    response_model=ParticipationRead,
    summary="Join campaign",
    description="Register platforms and handles; re-joining replaces them"
)
async def join_campaign(
    campaign_id: int,
    join_data: JoinCampaignRequest,
    request: Request,
    creator: User = Depends(require_creator),
    db: Session = Depends(get_db)
) -> ParticipationRead:
    logger.info(
        "Join requested",
        campaign_id=campaign_id,
        creator_id=creator.id,
        request_id=get_request_id(request)
    )
    participation = submissions.join_campaign(
        db, campaign_id, creator.id, join_data.platforms, join_data.handles
    )
    return ParticipationRead.model_validate(participation)

@router.post(
    "/{campaign_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit content"
)
async def submit_content(
    campaign_id: int,
    submission_data: SubmitContentRequest,
    request: Request,
    creator: User = Depends(require_creator),
    db: Session = Depends(get_db)
) -> SubmissionRead:
    start_time = time.time()
    submission = submissions.submit_content(
        db, campaign_id, creator.id, submission_data.platform, submission_data.reel_url
    )
    log_performance(
        operation="submit_content",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"submission_id": submission.id, "request_id": get_request_id(request)}
    )
    return SubmissionRead.model_validate(submission)
