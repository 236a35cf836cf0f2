"""Admin verification workflow.

An approval converts attested views into reserved budget. The reservation is
recomputed from ``paid_views_total`` on every call and compared with what the
submission already holds (``Submission.reserved_paise``), so repeating an
approval with the same view count reserves nothing more. ``paid_views_total``
itself only moves on payout settlement.

Everything for one call happens in a single ``atomic`` unit: budget change,
ledger entry, verification check, submission state and audit row commit
together or not at all.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from reelpay.config import VERIFICATION_SETTINGS
from reelpay.database import atomic
from reelpay.exceptions import InvalidState, RegressionNotAllowed, SubmissionNotFound
from reelpay.models.db.enums import AuditAction, SubmissionPayoutStatus, SubmissionStatus
from reelpay.models.db.submissions import Submission
from reelpay.models.db.verification import VerificationCheck
from reelpay.services import budget, cycles, submission_state
from reelpay.services.audit import record_audit
from reelpay.services.submissions import submissions_on_pending_payouts
from reelpay.utils import get_logger, log_business_event
from reelpay.utils.time import utc_now

logger = get_logger(__name__)


@dataclass(frozen=True)
class VerificationOutcome:
    submission: Submission
    approved: bool
    cycle_index: int
    previous_status: SubmissionStatus
    reserved_delta_paise: int = 0
    verification_check_id: Optional[int] = None


def payable_paise(verified_views_total: int, paid_views_total: int, rate_per_1k_views_paise: int) -> int:
    """Whole payable units between paid and attested views, priced at the campaign rate."""
    units = max(0, verified_views_total - paid_views_total) // int(VERIFICATION_SETTINGS["views_per_unit"])
    return units * rate_per_1k_views_paise


def _adjust_reservation(session: Session, submission: Submission, target_paise: int, admin_id: int) -> int:
    delta = target_paise - submission.reserved_paise
    if delta == 0:
        return 0

    account = budget.lock_account(session, submission.campaign_id)
    if delta > 0:
        budget.reserve(session, account, delta, submission_id=submission.id, actor_id=admin_id)
        submission.reserved_paise += delta
        submission.payout_status = SubmissionPayoutStatus.UNPAID
        return delta

    if submissions_on_pending_payouts(session, [submission.id]):
        raise InvalidState(
            "Cannot lower verified views while a payout for this submission is pending",
            {"submission_id": submission.id},
        )
    budget.release(session, account, -delta, submission_id=submission.id, actor_id=admin_id)
    submission.reserved_paise += delta
    return delta


def admin_verify(
    session: Session,
    submission_id: int,
    admin_id: int,
    approved: bool,
    verified_views_total: Optional[int] = None,
    proof_note: Optional[str] = None,
    proof_url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> VerificationOutcome:
    """Approve or reject a submission on behalf of ``admin_id``.

    Approval reserves budget for newly payable views (``InsufficientBudget``
    when the campaign cannot cover it) and always records a verification
    check. Rejection suspends a pending submission and leaves an active one
    as it is.
    """
    now = now or utc_now()

    with atomic(session):
        submission = (
            session.query(Submission)
            .filter(Submission.id == submission_id)
            .with_for_update()
            .first()
        )
        if submission is None:
            raise SubmissionNotFound(submission_id)
        if submission.status not in submission_state.VERIFIABLE_STATES:
            raise InvalidState(
                "Submission not in verifiable state",
                {"submission_id": submission_id, "status": submission.status.value},
            )

        campaign = submission.campaign
        previous_status = submission.status

        if not approved:
            # Rejection does not need a started window
            cycle = cycles.cycle_window(campaign.start_at, now, campaign.cycle_hours).cycle_index
            submission_state.transition(submission, submission_state.rejection_target(previous_status))
            record_audit(
                session,
                actor_id=admin_id,
                action=AuditAction.VERIFY_REJECT,
                target_type="Submission",
                target_id=submission.id,
                details={"proof_note": proof_note, "previous_status": previous_status.value},
            )
            outcome = VerificationOutcome(
                submission=submission,
                approved=False,
                cycle_index=cycle,
                previous_status=previous_status,
            )
        else:
            cycle = cycles.require_started_cycle(campaign.start_at, now, campaign.cycle_hours)
            views = submission.last_verified_views_total if verified_views_total is None else verified_views_total
            if views < submission.paid_views_total:
                raise RegressionNotAllowed(
                    "Verified views cannot be lower than already paid views",
                    {
                        "submission_id": submission_id,
                        "verified_views_total": views,
                        "paid_views_total": submission.paid_views_total,
                    },
                )

            target = payable_paise(views, submission.paid_views_total, campaign.rate_per_1k_views_paise)
            delta = _adjust_reservation(session, submission, target, admin_id)

            check = VerificationCheck(
                submission_id=submission.id,
                cycle_index=cycle,
                verified_views_total=views,
                admin_id=admin_id,
                proof_note=proof_note,
                proof_url=proof_url,
            )
            session.add(check)

            submission_state.transition(submission, SubmissionStatus.ACTIVE)
            submission.last_verified_views_total = views
            submission.last_verified_cycle_index = cycle
            record_audit(
                session,
                actor_id=admin_id,
                action=AuditAction.VERIFY_APPROVE,
                target_type="Submission",
                target_id=submission.id,
                details={"verified_views_total": views, "amount_paise": delta, "cycle_index": cycle},
            )
            session.flush()
            outcome = VerificationOutcome(
                submission=submission,
                approved=True,
                cycle_index=cycle,
                previous_status=previous_status,
                reserved_delta_paise=delta,
                verification_check_id=check.id,
            )

    log_business_event(
        event_type="submission_verified" if approved else "submission_rejected",
        details={
            "submission_id": submission_id,
            "campaign_id": outcome.submission.campaign_id,
            "cycle_index": outcome.cycle_index,
            "previous_status": outcome.previous_status.value,
            "status": outcome.submission.status.value,
            "reserved_delta_paise": outcome.reserved_delta_paise,
        },
        actor_id=admin_id,
    )
    return outcome


__all__ = ["VerificationOutcome", "payable_paise", "admin_verify"]
