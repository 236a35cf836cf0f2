"""Campaign lifecycle: create, activate, pause, resume, end.

A campaign is created in DRAFT together with its budget account. Hosts move
their own campaigns between states; ending a campaign also closes the
submissions that have no money outstanding.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from reelpay.config import CAMPAIGN_SETTINGS, VERIFICATION_SETTINGS
from reelpay.database import atomic
from reelpay.exceptions import CampaignNotFound, Forbidden, InvalidAmount, InvalidState
from reelpay.models.db.campaigns import Campaign
from reelpay.models.db.enums import AuditAction, CampaignStatus, Platform
from reelpay.models.db.ledger import LedgerEntry
from reelpay.models.db.submissions import Submission
from reelpay.services import budget, cycles, ledger
from reelpay.services.audit import record_audit
from reelpay.services.cycles import CycleWindow
from reelpay.services.submissions import close_submissions
from reelpay.utils import get_logger, log_business_event
from reelpay.utils.time import days_from, utc_now

logger = get_logger(__name__)


def get_campaign(session: Session, campaign_id: int) -> Campaign:
    campaign = session.query(Campaign).filter(Campaign.id == campaign_id).first()
    if campaign is None:
        raise CampaignNotFound(campaign_id)
    return campaign


def _owned_campaign(session: Session, campaign_id: int, host_id: int) -> Campaign:
    campaign = get_campaign(session, campaign_id)
    if campaign.host_id != host_id:
        raise Forbidden("Campaign belongs to another host", {"campaign_id": campaign_id})
    return campaign


def _require_status(campaign: Campaign, expected: CampaignStatus, action: str) -> None:
    if campaign.status != expected:
        raise InvalidState(
            f"Only {expected.value.lower()} campaigns can be {action}",
            {"campaign_id": campaign.id, "status": campaign.status.value},
        )


def create_campaign(
    session: Session,
    host_id: int,
    title: str,
    platforms: Iterable[Platform | str],
    rate_per_1k_views_paise: int,
    budget_total_paise: int = 0,
    start_at: Optional[datetime] = None,
    end_at: Optional[datetime] = None,
    cycle_hours: Optional[int] = None,
    submission_eligibility_days: Optional[int] = None,
) -> Campaign:
    """Create a DRAFT campaign; ``budget_total_paise`` seeds the account total."""
    min_rate = CAMPAIGN_SETTINGS["min_rate_per_1k_views_paise"]
    max_rate = CAMPAIGN_SETTINGS["max_rate_per_1k_views_paise"]
    if not min_rate <= rate_per_1k_views_paise <= max_rate:
        raise InvalidAmount(
            "Rate per 1k views out of range",
            {"rate_per_1k_views_paise": rate_per_1k_views_paise, "min": min_rate, "max": max_rate},
        )
    if budget_total_paise < 0:
        raise InvalidAmount("Budget cannot be negative", {"budget_total_paise": budget_total_paise})
    if start_at and end_at and end_at <= start_at:
        raise InvalidState("Campaign must end after it starts", {"start_at": start_at.isoformat()})

    with atomic(session):
        campaign = Campaign(
            host_id=host_id,
            title=title,
            platforms=list(dict.fromkeys(Platform.normalize(p).value for p in platforms)),
            rate_per_1k_views_paise=rate_per_1k_views_paise,
            status=CampaignStatus.DRAFT,
            start_at=start_at,
            end_at=end_at,
            cycle_hours=cycle_hours or VERIFICATION_SETTINGS["default_cycle_hours"],
            submission_eligibility_days=(
                submission_eligibility_days or CAMPAIGN_SETTINGS["default_submission_eligibility_days"]
            ),
        )
        session.add(campaign)
        session.flush()
        budget.open_account(session, campaign.id, seed_total_paise=budget_total_paise)

    logger.info(
        "Campaign created",
        campaign_id=campaign.id,
        host_id=host_id,
        rate_per_1k_views_paise=rate_per_1k_views_paise,
        seeded_budget_paise=budget_total_paise,
    )
    return campaign


def activate_campaign(session: Session, campaign_id: int, host_id: int, now: Optional[datetime] = None) -> Campaign:
    now = now or utc_now()
    with atomic(session):
        campaign = _owned_campaign(session, campaign_id, host_id)
        _require_status(campaign, CampaignStatus.DRAFT, "activated")
        if budget.get_account(session, campaign_id).total_paise <= 0:
            raise InvalidState("Campaign must have budget to activate", {"campaign_id": campaign_id})
        if not (campaign.title or "").strip() or not campaign.platforms:
            raise InvalidState("Campaign must have a title and platforms", {"campaign_id": campaign_id})
        campaign.start_at = campaign.start_at or now
        campaign.end_at = campaign.end_at or days_from(now, CAMPAIGN_SETTINGS["default_duration_days"])
        campaign.status = CampaignStatus.ACTIVE

    log_business_event(
        event_type="campaign_activated",
        details={"campaign_id": campaign_id, "start_at": campaign.start_at, "end_at": campaign.end_at},
        actor_id=host_id,
    )
    return campaign


def pause_campaign(session: Session, campaign_id: int, host_id: int) -> Campaign:
    with atomic(session):
        campaign = _owned_campaign(session, campaign_id, host_id)
        _require_status(campaign, CampaignStatus.ACTIVE, "paused")
        campaign.status = CampaignStatus.PAUSED
    logger.info("Campaign paused", campaign_id=campaign_id, host_id=host_id)
    return campaign


def resume_campaign(session: Session, campaign_id: int, host_id: int) -> Campaign:
    with atomic(session):
        campaign = _owned_campaign(session, campaign_id, host_id)
        _require_status(campaign, CampaignStatus.PAUSED, "resumed")
        campaign.status = CampaignStatus.ACTIVE
    logger.info("Campaign resumed", campaign_id=campaign_id, host_id=host_id)
    return campaign


def end_campaign(session: Session, campaign_id: int, actor_id: int) -> Campaign:
    """End the campaign and close submissions with nothing reserved or in flight.

    Callers decide who may end a campaign; ``actor_id`` is recorded in the audit log.
    """
    with atomic(session):
        campaign = get_campaign(session, campaign_id)
        if campaign.status == CampaignStatus.ENDED:
            raise InvalidState("Campaign already ended", {"campaign_id": campaign_id})
        previous = campaign.status
        campaign.status = CampaignStatus.ENDED

        submissions = session.query(Submission).filter(
            Submission.campaign_id == campaign_id
        ).order_by(Submission.id.asc()).all()
        closed = close_submissions(session, submissions)
        record_audit(
            session,
            actor_id=actor_id,
            action=AuditAction.CAMPAIGN_END,
            target_type="Campaign",
            target_id=campaign_id,
            details={"previous_status": previous.value, "closed_submission_ids": [s.id for s in closed]},
        )

    log_business_event(
        event_type="campaign_ended",
        details={"campaign_id": campaign_id, "closed_submissions": len(closed)},
        actor_id=actor_id,
    )
    return campaign


def get_cycle_info(session: Session, campaign_id: int, now: Optional[datetime] = None) -> CycleWindow:
    campaign = get_campaign(session, campaign_id)
    return cycles.cycle_window(campaign.start_at, now or utc_now(), campaign.cycle_hours)


def campaign_ledger(session: Session, campaign_id: int) -> List[LedgerEntry]:
    get_campaign(session, campaign_id)
    return ledger.entries_for_campaign(session, campaign_id)


__all__ = [
    "get_campaign",
    "create_campaign",
    "activate_campaign",
    "pause_campaign",
    "resume_campaign",
    "end_campaign",
    "get_cycle_info",
    "campaign_ledger",
]
