"""Creator-side submission flows: join, submit content, request re-verification.

Also closes submissions whose eligibility window has lapsed. Every operation
runs in one ``atomic`` unit; uniqueness races (participation upsert, one
re-verification request per cycle) are settled by the database constraints.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reelpay.config import CAMPAIGN_SETTINGS
from reelpay.database import atomic
from reelpay.exceptions import (
    AlreadyRequested,
    CampaignNotFound,
    DuplicateSubmission,
    EligibilityExpired,
    Forbidden,
    HandleMissing,
    InvalidState,
    NotParticipating,
    PlatformNotSelected,
    SubmissionNotFound,
)
from reelpay.models.db.campaigns import Campaign
from reelpay.models.db.enums import (
    CampaignStatus,
    ParticipationStatus,
    PayoutStatus,
    Platform,
    SubmissionStatus,
    VerificationRequestStatus,
)
from reelpay.models.db.participations import Participation
from reelpay.models.db.payouts import Payout, PayoutItem
from reelpay.models.db.submissions import Submission
from reelpay.models.db.verification import VerificationRequest
from reelpay.services import cycles, submission_state
from reelpay.utils import get_logger, log_business_event
from reelpay.utils.time import days_from, ensure_utc, utc_now

logger = get_logger(__name__)

CLOSABLE_STATES = frozenset({SubmissionStatus.PENDING_HOST_APPROVAL, SubmissionStatus.SUSPENDED})


def _get_campaign(session: Session, campaign_id: int) -> Campaign:
    campaign = session.query(Campaign).filter(Campaign.id == campaign_id).first()
    if campaign is None:
        raise CampaignNotFound(campaign_id)
    return campaign


def _require_active(campaign: Campaign, action: str) -> None:
    if campaign.status != CampaignStatus.ACTIVE:
        raise InvalidState(
            f"Only active campaigns can be {action}",
            {"campaign_id": campaign.id, "status": campaign.status.value},
        )


def _eligible_until(campaign: Campaign, now: datetime) -> datetime:
    return days_from(now, campaign.submission_eligibility_days or CAMPAIGN_SETTINGS["default_submission_eligibility_days"])


def _find_participation(session: Session, campaign_id: int, creator_id: int) -> Optional[Participation]:
    return session.query(Participation).filter(
        Participation.campaign_id == campaign_id,
        Participation.creator_id == creator_id,
    ).first()


def _apply_join(
    participation: Participation,
    platforms: List[str],
    handles: Dict[str, str],
    eligible_until: datetime,
) -> None:
    participation.platforms = platforms
    participation.handles = handles
    participation.eligible_until = eligible_until
    participation.status = ParticipationStatus.ACTIVE


def join_campaign(
    session: Session,
    campaign_id: int,
    creator_id: int,
    platforms: Iterable[Platform | str],
    handles: Mapping[Platform | str, str],
    now: Optional[datetime] = None,
) -> Participation:
    """Register (or re-register) the creator's platforms and handles."""
    now = now or utc_now()
    selected = list(dict.fromkeys(Platform.normalize(p).value for p in platforms))
    cleaned_handles = {
        Platform.normalize(p).value: handle.strip()
        for p, handle in handles.items()
        if handle and handle.strip()
    }

    with atomic(session):
        campaign = _get_campaign(session, campaign_id)
        _require_active(campaign, "joined")
        offered = set(campaign.platforms or [])
        not_offered = [p for p in selected if p not in offered]
        if not selected or not_offered:
            raise InvalidState(
                "Selected platforms are not offered by this campaign",
                {"campaign_id": campaign_id, "platforms": not_offered or selected},
            )
        eligible_until = _eligible_until(campaign, now)

        participation = _find_participation(session, campaign_id, creator_id)
        if participation is not None:
            _apply_join(participation, selected, cleaned_handles, eligible_until)
        else:
            participation = Participation(campaign_id=campaign_id, creator_id=creator_id)
            _apply_join(participation, selected, cleaned_handles, eligible_until)
            session.add(participation)
            try:
                session.flush()
            except IntegrityError:
                # A concurrent join created the row first; update it instead.
                session.rollback()
                participation = _find_participation(session, campaign_id, creator_id)
                if participation is None:
                    raise
                _apply_join(participation, selected, cleaned_handles, eligible_until)

    logger.info(
        "Creator joined campaign",
        campaign_id=campaign_id,
        creator_id=creator_id,
        platforms=selected,
        eligible_until=eligible_until.isoformat(),
    )
    return participation


def submit_content(
    session: Session,
    campaign_id: int,
    creator_id: int,
    platform: Platform | str,
    reel_url: str,
    now: Optional[datetime] = None,
) -> Submission:
    """Create a PENDING_HOST_APPROVAL submission for a joined platform."""
    now = now or utc_now()
    platform = Platform.normalize(platform)

    with atomic(session):
        campaign = _get_campaign(session, campaign_id)
        _require_active(campaign, "submitted to")

        participation = _find_participation(session, campaign_id, creator_id)
        if participation is None:
            raise NotParticipating(
                "You must join the campaign first",
                {"campaign_id": campaign_id, "creator_id": creator_id},
            )
        if platform.value not in (participation.platforms or []):
            raise PlatformNotSelected(
                "Platform not selected at join",
                {"campaign_id": campaign_id, "platform": platform.value},
            )
        handle = (participation.handles or {}).get(platform.value) or ""
        if not handle:
            raise HandleMissing(
                "Handle not set for this platform",
                {"campaign_id": campaign_id, "platform": platform.value},
            )

        duplicate = session.query(Submission.id).filter(
            Submission.campaign_id == campaign_id,
            Submission.creator_id == creator_id,
            Submission.reel_url == reel_url,
        ).first()
        if duplicate is not None:
            raise DuplicateSubmission(
                "Duplicate submission URL for this campaign",
                {"campaign_id": campaign_id, "submission_id": duplicate.id},
            )

        submission = Submission(
            campaign_id=campaign_id,
            creator_id=creator_id,
            participation_id=participation.id,
            platform=platform,
            handle=handle,
            reel_url=reel_url,
            status=SubmissionStatus.PENDING_HOST_APPROVAL,
            eligible_until=_eligible_until(campaign, now),
        )
        session.add(submission)
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            raise DuplicateSubmission(
                "Duplicate submission URL for this campaign",
                {"campaign_id": campaign_id, "reel_url": reel_url},
            )

    log_business_event(
        event_type="content_submitted",
        details={
            "submission_id": submission.id,
            "campaign_id": campaign_id,
            "platform": platform.value,
            "reel_url": reel_url,
        },
        actor_id=creator_id,
    )
    return submission


def request_reverification(
    session: Session,
    submission_id: int,
    creator_id: int,
    now: Optional[datetime] = None,
) -> VerificationRequest:
    """Open the single re-verification ticket allowed per submission per cycle."""
    now = ensure_utc(now or utc_now())

    with atomic(session):
        submission = session.query(Submission).filter(Submission.id == submission_id).first()
        if submission is None:
            raise SubmissionNotFound(submission_id)
        if submission.creator_id != creator_id:
            raise Forbidden("Submission belongs to another creator", {"submission_id": submission_id})
        if submission.status != SubmissionStatus.ACTIVE:
            raise InvalidState(
                "Only active submissions can be re-verified",
                {"submission_id": submission_id, "status": submission.status.value},
            )
        if submission.eligible_until is not None and now > ensure_utc(submission.eligible_until):
            raise EligibilityExpired(
                "Eligibility window ended",
                {"submission_id": submission_id, "eligible_until": submission.eligible_until.isoformat()},
            )

        campaign = submission.campaign
        cycle = cycles.require_started_cycle(campaign.start_at, now, campaign.cycle_hours)

        request = VerificationRequest(
            submission_id=submission_id,
            cycle_index=cycle,
            status=VerificationRequestStatus.PENDING,
        )
        session.add(request)
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            raise AlreadyRequested(
                "Already requested for this cycle",
                {"submission_id": submission_id, "cycle_index": cycle},
            )

    logger.info(
        "Re-verification requested",
        submission_id=submission_id,
        creator_id=creator_id,
        cycle_index=cycle,
    )
    return request


def submissions_on_pending_payouts(session: Session, submission_ids: Iterable[int] | None = None) -> set[int]:
    """Ids of submissions that sit on a payout not yet settled."""
    query = session.query(PayoutItem.submission_id).join(Payout, PayoutItem.payout_id == Payout.id).filter(
        Payout.status == PayoutStatus.PENDING
    )
    if submission_ids is not None:
        ids = list(submission_ids)
        if not ids:
            return set()
        query = query.filter(PayoutItem.submission_id.in_(ids))
    return {row.submission_id for row in query.all()}


def _has_outstanding_money(submission: Submission, on_pending_payout: set[int]) -> bool:
    return submission.reserved_paise > 0 or submission.id in on_pending_payout


def close_submissions(session: Session, submissions: List[Submission]) -> List[Submission]:
    """End the given submissions unless money is still reserved or in flight.

    PENDING_HOST_APPROVAL and SUSPENDED always close. ACTIVE closes only with
    nothing reserved and no pending payout item. Caller owns the transaction.
    """
    on_pending = submissions_on_pending_payouts(session, [s.id for s in submissions])
    closed = []
    for submission in submissions:
        if submission.status == SubmissionStatus.ENDED:
            continue
        if submission.status == SubmissionStatus.ACTIVE and _has_outstanding_money(submission, on_pending):
            continue
        submission_state.transition(submission, SubmissionStatus.ENDED)
        closed.append(submission)
    return closed


def close_lapsed_submissions(session: Session, now: Optional[datetime] = None) -> List[Submission]:
    """End submissions whose eligibility window has passed."""
    now = now or utc_now()
    with atomic(session):
        candidates = session.query(Submission).filter(
            Submission.status != SubmissionStatus.ENDED,
            Submission.eligible_until.is_not(None),
            Submission.eligible_until < now,
        ).order_by(Submission.id.asc()).all()
        closed = close_submissions(session, candidates)

    if closed:
        logger.info(
            "Closed lapsed submissions",
            closed_count=len(closed),
            submission_ids=[s.id for s in closed],
        )
    return closed


def list_submissions(
    session: Session,
    status: Optional[SubmissionStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Submission]:
    query = session.query(Submission)
    if status is not None:
        query = query.filter(Submission.status == status)
    return query.order_by(Submission.created_at.asc(), Submission.id.asc()).offset(offset).limit(limit).all()


def list_creator_submissions(session: Session, creator_id: int) -> List[Submission]:
    return session.query(Submission).filter(
        Submission.creator_id == creator_id
    ).order_by(Submission.id.desc()).all()


__all__ = [
    "join_campaign",
    "submit_content",
    "request_reverification",
    "submissions_on_pending_payouts",
    "close_submissions",
    "close_lapsed_submissions",
    "list_submissions",
    "list_creator_submissions",
]
