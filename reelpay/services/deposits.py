"""Deposit intake: the single idempotent entry point for adding campaign funds.

Two callers funnel into ``deposit``:

* a host "add funds" action, with a caller-supplied idempotency key;
* the payment provider's ``payment.captured`` webhook, delivered at least
  once, keyed by the provider payment id (``deposit_from_payment_event``).

Idempotency is insert-then-catch: the DEPOSIT ledger row carrying the key is
inserted before any balance change, and the unique constraint on
``ledger_entries.idempotency_key`` rejects a repeat. The resulting
``IntegrityError`` rolls the transaction back and the call returns the
current balances with ``applied=False``. A repeat is a success, not an error.
"""
from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reelpay.config import DEPOSIT_SETTINGS
from reelpay.database import atomic
from reelpay.exceptions import CampaignNotFound, InvalidAmount, InvalidState
from reelpay.models.db.campaigns import Campaign
from reelpay.models.db.enums import CampaignStatus
from reelpay.services import budget, ledger
from reelpay.services.budget import BudgetSnapshot
from reelpay.utils import get_logger, log_business_event

logger = get_logger(__name__)

FUNDABLE_STATES = frozenset({CampaignStatus.DRAFT, CampaignStatus.ACTIVE})


@dataclass(frozen=True)
class DepositResult:
    account: BudgetSnapshot
    applied: bool
    ledger_entry_id: Optional[int] = None


def _skips_seed_echo(campaign: Campaign, total_paise: int, amount_paise: int) -> bool:
    # A DRAFT created with a pre-set budget gets that same amount confirmed by
    # checkout; the seed is already in total_paise.
    return (
        bool(DEPOSIT_SETTINGS.get("skip_draft_seed_echo", True))
        and campaign.status == CampaignStatus.DRAFT
        and total_paise > 0
        and total_paise == amount_paise
    )


def deposit(
    session: Session,
    campaign_id: int,
    amount_paise: int,
    idempotency_key: Optional[str],
    actor_id: Optional[int] = None,
) -> DepositResult:
    """Add ``amount_paise`` to the campaign's total budget exactly once per key."""
    if amount_paise <= 0:
        raise InvalidAmount("Deposit amount must be positive", {"amount_paise": amount_paise})

    with atomic(session):
        campaign = session.query(Campaign).filter(Campaign.id == campaign_id).first()
        if campaign is None:
            raise CampaignNotFound(campaign_id)
        if campaign.status not in FUNDABLE_STATES:
            raise InvalidState(
                "Campaign cannot receive funds",
                {"campaign_id": campaign_id, "status": campaign.status.value},
            )

        account = budget.lock_account(session, campaign_id)
        skip_increment = _skips_seed_echo(campaign, account.total_paise, amount_paise)
        try:
            entry = budget.credit_deposit(
                session,
                account,
                amount_paise,
                idempotency_key=idempotency_key,
                actor_id=actor_id,
                apply_to_total=not skip_increment,
            )
        except IntegrityError:
            session.rollback()
            if not idempotency_key or ledger.find_by_idempotency_key(session, idempotency_key) is None:
                raise
            logger.info(
                "Deposit already applied; returning current balances",
                campaign_id=campaign_id,
                idempotency_key=idempotency_key,
            )
            return DepositResult(account=budget.snapshot(budget.get_account(session, campaign_id)), applied=False)

        session.flush()
        result = DepositResult(account=budget.snapshot(account), applied=True, ledger_entry_id=entry.id)

    if skip_increment:
        logger.warning(
            "Deposit matched DRAFT seed budget; total left unchanged",
            campaign_id=campaign_id,
            amount_paise=amount_paise,
        )
    log_business_event(
        event_type="deposit_applied",
        details={
            "campaign_id": campaign_id,
            "amount_paise": amount_paise,
            "idempotency_key": idempotency_key,
            "total_paise": result.account.total_paise,
            "ledger_entry_id": result.ledger_entry_id,
        },
        actor_id=actor_id,
    )
    return result


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return parsed if parsed > 0 else None


def deposit_from_payment_event(session: Session, event: Dict[str, Any]) -> Optional[DepositResult]:
    """Apply a provider ``payment.captured`` event; other events are ignored.

    Campaign id comes from the payment notes, the amount from the payment
    entity, and the idempotency key from the provider payment id, so a
    redelivered event lands on the same key.
    """
    if event.get("event") != DEPOSIT_SETTINGS["provider_capture_event"]:
        logger.debug("Ignoring payment event", payment_event=event.get("event"))
        return None

    payment = ((event.get("payload") or {}).get("payment") or {}).get("entity") or {}
    notes = payment.get("notes") or {}
    raw_campaign_id = notes.get("campaignId") or notes.get("campaign_id")
    raw_amount = payment.get("amount")
    payment_id = payment.get("id")
    campaign_id = _positive_int(raw_campaign_id)
    amount_paise = _positive_int(raw_amount)

    if campaign_id is None or not payment_id or amount_paise is None:
        logger.warning(
            "Payment event missing or malformed campaign, payment id or amount; skipped",
            payment_id=payment_id,
            campaign_id=raw_campaign_id,
            amount_paise=raw_amount,
        )
        return None

    idempotency_key = f"{DEPOSIT_SETTINGS['provider_key_prefix']}{payment_id}"
    return deposit(session, campaign_id, amount_paise, idempotency_key)


def sign_payload(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_webhook_signature(body: bytes, signature: str, secret: str) -> bool:
    """HMAC-SHA256 of the raw body, compared in constant time."""
    if not signature:
        return False
    return hmac.compare_digest(sign_payload(body, secret), signature)


__all__ = [
    "FUNDABLE_STATES",
    "DepositResult",
    "deposit",
    "deposit_from_payment_event",
    "sign_payload",
    "verify_webhook_signature",
]
