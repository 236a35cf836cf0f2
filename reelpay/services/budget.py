"""Campaign budget account operations.

Every balance change here is paired with exactly one ledger entry, inside the
caller's transaction. Callers obtain the account through ``lock_account`` so
the read-modify-write of the balances runs under a row lock
(``SELECT ... FOR UPDATE``; SQLite serialises writers instead).

Invariant kept by every function: reserved + spent <= total, no balance
negative. The database check constraints on ``campaign_budget_accounts`` back
this up.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from reelpay.exceptions import CampaignNotFound, InsufficientBudget, InvalidState
from reelpay.models.db.budget_accounts import CampaignBudgetAccount
from reelpay.models.db.enums import LedgerEntryType
from reelpay.models.db.ledger import LedgerEntry
from reelpay.services import ledger


@dataclass(frozen=True)
class BudgetSnapshot:
    campaign_id: int
    total_paise: int
    reserved_paise: int
    spent_paise: int
    available_paise: int


def snapshot(account: CampaignBudgetAccount) -> BudgetSnapshot:
    return BudgetSnapshot(
        campaign_id=account.campaign_id,
        total_paise=account.total_paise,
        reserved_paise=account.reserved_paise,
        spent_paise=account.spent_paise,
        available_paise=account.available_paise,
    )


def open_account(session: Session, campaign_id: int, seed_total_paise: int = 0) -> CampaignBudgetAccount:
    account = CampaignBudgetAccount(
        campaign_id=campaign_id,
        total_paise=seed_total_paise,
        reserved_paise=0,
        spent_paise=0,
    )
    session.add(account)
    return account


def get_account(session: Session, campaign_id: int) -> CampaignBudgetAccount:
    account = session.query(CampaignBudgetAccount).filter(
        CampaignBudgetAccount.campaign_id == campaign_id
    ).one_or_none()
    if account is None:
        raise CampaignNotFound(campaign_id)
    return account


def lock_account(session: Session, campaign_id: int) -> CampaignBudgetAccount:
    # Pending changes must reach the DB before populate_existing reloads the row.
    session.flush()
    account = (
        session.query(CampaignBudgetAccount)
        .filter(CampaignBudgetAccount.campaign_id == campaign_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if account is None:
        raise CampaignNotFound(campaign_id)
    return account


def credit_deposit(
    session: Session,
    account: CampaignBudgetAccount,
    amount_paise: int,
    *,
    idempotency_key: Optional[str] = None,
    actor_id: Optional[int] = None,
    apply_to_total: bool = True,
) -> LedgerEntry:
    """Write the DEPOSIT entry first, then raise ``total_paise``.

    The entry insert is what trips the idempotency unique constraint, so it
    must come before any balance change.
    """
    entry = ledger.record_entry(
        session,
        entry_type=LedgerEntryType.DEPOSIT,
        campaign_id=account.campaign_id,
        amount_paise=amount_paise,
        idempotency_key=idempotency_key,
        actor_id=actor_id,
    )
    if apply_to_total:
        account.total_paise += amount_paise
    return entry


def reserve(
    session: Session,
    account: CampaignBudgetAccount,
    amount_paise: int,
    *,
    submission_id: int,
    actor_id: Optional[int] = None,
) -> LedgerEntry:
    if amount_paise > account.available_paise:
        raise InsufficientBudget(
            "Insufficient campaign budget",
            {
                "campaign_id": account.campaign_id,
                "requested_paise": amount_paise,
                "available_paise": account.available_paise,
            },
        )
    account.reserved_paise += amount_paise
    return ledger.record_entry(
        session,
        entry_type=LedgerEntryType.RESERVE,
        campaign_id=account.campaign_id,
        amount_paise=amount_paise,
        submission_id=submission_id,
        actor_id=actor_id,
    )


def release(
    session: Session,
    account: CampaignBudgetAccount,
    amount_paise: int,
    *,
    submission_id: int,
    actor_id: Optional[int] = None,
) -> LedgerEntry:
    account.reserved_paise = max(0, account.reserved_paise - amount_paise)
    return ledger.record_entry(
        session,
        entry_type=LedgerEntryType.RELEASE_RESERVE,
        campaign_id=account.campaign_id,
        amount_paise=amount_paise,
        submission_id=submission_id,
        actor_id=actor_id,
    )


def settle_spend(
    session: Session,
    account: CampaignBudgetAccount,
    amount_paise: int,
    *,
    submission_id: int,
    payout_id: int,
    actor_id: Optional[int] = None,
) -> LedgerEntry:
    """Move ``amount_paise`` from reserved to spent (reserved floored at 0)."""
    new_reserved = max(0, account.reserved_paise - amount_paise)
    new_spent = account.spent_paise + amount_paise
    if new_reserved + new_spent > account.total_paise:
        raise InvalidState(
            "Settlement would exceed the campaign budget",
            {
                "campaign_id": account.campaign_id,
                "amount_paise": amount_paise,
                "reserved_paise": account.reserved_paise,
            },
        )
    account.reserved_paise = new_reserved
    account.spent_paise = new_spent
    return ledger.record_entry(
        session,
        entry_type=LedgerEntryType.PAYOUT_PAID,
        campaign_id=account.campaign_id,
        amount_paise=amount_paise,
        submission_id=submission_id,
        payout_id=payout_id,
        actor_id=actor_id,
    )


__all__ = [
    "BudgetSnapshot",
    "snapshot",
    "open_account",
    "get_account",
    "lock_account",
    "credit_deposit",
    "reserve",
    "release",
    "settle_spend",
]
