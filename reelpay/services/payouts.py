"""Payout engine: batch a creator's verified earnings, then settle the batch.

Settlement is the only place ``paid_views_total`` advances. A submission that
already sits on a PENDING payout is left out of new batches, so a payable
delta is never batched twice.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from reelpay.config import VERIFICATION_SETTINGS
from reelpay.database import atomic
from reelpay.exceptions import (
    AlreadyPaid,
    NoPayableAmount,
    NoUnpaidSubmissions,
    PayoutConflict,
    PayoutNotFound,
)
from reelpay.models.db.enums import AuditAction, PayoutStatus, SubmissionPayoutStatus, SubmissionStatus
from reelpay.models.db.payouts import Payout, PayoutItem
from reelpay.models.db.submissions import Submission
from reelpay.services import budget
from reelpay.services.audit import record_audit
from reelpay.services.submissions import submissions_on_pending_payouts
from reelpay.services.verification import payable_paise
from reelpay.utils import get_logger, log_business_event
from reelpay.utils.time import utc_now

logger = get_logger(__name__)


@dataclass(frozen=True)
class EarningsSummary:
    creator_id: int
    pending_paise: int
    in_flight_paise: int
    total_paid_paise: int


def views_for_amount(amount_paise: int, rate_per_1k_views_paise: int) -> int:
    """Views covered by ``amount_paise`` at the campaign rate, rounded down."""
    return amount_paise * int(VERIFICATION_SETTINGS["views_per_unit"]) // rate_per_1k_views_paise


def _submission_payable(submission: Submission) -> int:
    return payable_paise(
        submission.last_verified_views_total,
        submission.paid_views_total,
        submission.campaign.rate_per_1k_views_paise,
    )


def _unpaid_active_submissions(session: Session, creator_id: int, lock: bool = False) -> List[Submission]:
    query = (
        session.query(Submission)
        .options(selectinload(Submission.campaign))
        .filter(
            Submission.creator_id == creator_id,
            Submission.status == SubmissionStatus.ACTIVE,
            Submission.payout_status == SubmissionPayoutStatus.UNPAID,
        )
        .order_by(Submission.id.asc())
    )
    if lock:
        query = query.with_for_update().populate_existing()
    return query.all()


def get_payout(session: Session, payout_id: int) -> Payout:
    payout = (
        session.query(Payout)
        .options(selectinload(Payout.items))
        .filter(Payout.id == payout_id)
        .first()
    )
    if payout is None:
        raise PayoutNotFound(payout_id)
    return payout


def list_payouts(
    session: Session,
    creator_id: Optional[int] = None,
    status: Optional[PayoutStatus] = None,
) -> List[Payout]:
    query = session.query(Payout).options(selectinload(Payout.items))
    if creator_id is not None:
        query = query.filter(Payout.creator_id == creator_id)
    if status is not None:
        query = query.filter(Payout.status == status)
    return query.order_by(Payout.id.desc()).all()


def create_payout_batch(session: Session, creator_id: int, admin_id: int) -> Payout:
    """Create one PENDING payout covering the creator's payable submissions."""
    with atomic(session):
        # Row locks first; the pending-payout check only holds while they do.
        candidates = _unpaid_active_submissions(session, creator_id, lock=True)
        on_pending = submissions_on_pending_payouts(session, [s.id for s in candidates])
        candidates = [s for s in candidates if s.id not in on_pending]
        if not candidates:
            raise NoUnpaidSubmissions(
                "No unpaid approved submissions",
                {"creator_id": creator_id, "skipped_pending": sorted(on_pending)},
            )

        lines = []
        for submission in candidates:
            amount = _submission_payable(submission)
            if amount <= 0:
                continue
            lines.append((submission, amount))

        total = sum(amount for _, amount in lines)
        if total == 0:
            raise NoPayableAmount("No payable amount", {"creator_id": creator_id})

        payout = Payout(
            creator_id=creator_id,
            amount_paise=total,
            status=PayoutStatus.PENDING,
            created_by_id=admin_id,
        )
        submission_ids = [s.id for s, _ in lines]
        session.add(payout)
        session.flush()
        for submission, amount in lines:
            session.add(
                PayoutItem(
                    payout_id=payout.id,
                    submission_id=submission.id,
                    open_submission_id=submission.id,
                    amount_paise=amount,
                )
            )
        try:
            session.flush()
        except IntegrityError:
            # Another batch claimed one of these submissions after our check
            session.rollback()
            raise PayoutConflict(
                "Submission already on a pending payout",
                {"creator_id": creator_id, "submission_ids": submission_ids},
            )

        record_audit(
            session,
            actor_id=admin_id,
            action=AuditAction.PAYOUT_CREATE,
            target_type="Payout",
            target_id=payout.id,
            details={
                "creator_id": creator_id,
                "amount_paise": total,
                "submission_ids": submission_ids,
            },
        )
        session.flush()
        payout_id = payout.id

    log_business_event(
        event_type="payout_created",
        details={"payout_id": payout_id, "creator_id": creator_id, "amount_paise": total, "items": len(lines)},
        actor_id=admin_id,
    )
    return get_payout(session, payout_id)


def settle_payout(
    session: Session,
    payout_id: int,
    admin_id: int,
    reference_id: str,
    now: Optional[datetime] = None,
) -> Payout:
    """Mark a PENDING payout PAID, moving each item from reserved to spent."""
    now = now or utc_now()

    with atomic(session):
        payout = (
            session.query(Payout)
            .filter(Payout.id == payout_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if payout is None:
            raise PayoutNotFound(payout_id)
        if payout.status == PayoutStatus.PAID:
            raise AlreadyPaid(
                "Payout already marked paid",
                {"payout_id": payout_id, "reference_id": payout.reference_id},
            )

        for item in payout.items:
            submission = (
                session.query(Submission)
                .filter(Submission.id == item.submission_id)
                .with_for_update()
                .populate_existing()
                .one()
            )
            campaign = submission.campaign
            account = budget.lock_account(session, campaign.id)
            budget.settle_spend(
                session,
                account,
                item.amount_paise,
                submission_id=submission.id,
                payout_id=payout.id,
                actor_id=admin_id,
            )

            views_paid = views_for_amount(item.amount_paise, campaign.rate_per_1k_views_paise)
            submission.paid_views_total += views_paid
            submission.reserved_paise = max(0, submission.reserved_paise - item.amount_paise)
            # A re-verification after batching can leave a fresh reservation behind.
            submission.payout_status = (
                SubmissionPayoutStatus.UNPAID if submission.reserved_paise > 0 else SubmissionPayoutStatus.PAID
            )
            item.open_submission_id = None

        payout.status = PayoutStatus.PAID
        payout.reference_id = reference_id
        payout.paid_at = now
        record_audit(
            session,
            actor_id=admin_id,
            action=AuditAction.PAYOUT_MARK_PAID,
            target_type="Payout",
            target_id=payout.id,
            details={"reference_id": reference_id, "amount_paise": payout.amount_paise},
        )
        amount_paise = payout.amount_paise
        creator_id = payout.creator_id

    log_business_event(
        event_type="payout_settled",
        details={
            "payout_id": payout_id,
            "creator_id": creator_id,
            "amount_paise": amount_paise,
            "reference_id": reference_id,
        },
        actor_id=admin_id,
    )
    return get_payout(session, payout_id)


def creator_earnings(session: Session, creator_id: int) -> EarningsSummary:
    """Batchable, in-flight and paid totals for one creator."""
    candidates = _unpaid_active_submissions(session, creator_id)
    on_pending = submissions_on_pending_payouts(session, [s.id for s in candidates])
    pending = sum(_submission_payable(s) for s in candidates if s.id not in on_pending)

    totals = dict(
        session.query(Payout.status, func.coalesce(func.sum(Payout.amount_paise), 0))
        .filter(Payout.creator_id == creator_id)
        .group_by(Payout.status)
        .all()
    )
    return EarningsSummary(
        creator_id=creator_id,
        pending_paise=pending,
        in_flight_paise=int(totals.get(PayoutStatus.PENDING, 0)),
        total_paid_paise=int(totals.get(PayoutStatus.PAID, 0)),
    )


__all__ = [
    "EarningsSummary",
    "views_for_amount",
    "get_payout",
    "list_payouts",
    "create_payout_batch",
    "settle_payout",
    "creator_earnings",
]
