"""Append-only ledger of monetary movements.

Entries are only ever inserted. ``record_entry`` flushes immediately so that a
duplicate ``idempotency_key`` surfaces as an ``IntegrityError`` at the call
site, which Deposit Intake treats as "already applied".

``replay_balances`` rebuilds a campaign's balances from its entries in order
and is used to cross-check the mutable budget account.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from reelpay.exceptions import InvalidAmount
from reelpay.models.db.ledger import LedgerEntry
from reelpay.models.db.enums import LedgerEntryType


@dataclass(frozen=True)
class ReplayedBalances:
    total_paise: int
    reserved_paise: int
    spent_paise: int


def record_entry(
    session: Session,
    *,
    entry_type: LedgerEntryType,
    campaign_id: int,
    amount_paise: int,
    submission_id: Optional[int] = None,
    payout_id: Optional[int] = None,
    idempotency_key: Optional[str] = None,
    actor_id: Optional[int] = None,
) -> LedgerEntry:
    if amount_paise <= 0:
        raise InvalidAmount(
            "Ledger amounts are positive magnitudes",
            {"entry_type": entry_type.value, "amount_paise": amount_paise},
        )
    entry = LedgerEntry(
        type=entry_type,
        campaign_id=campaign_id,
        amount_paise=amount_paise,
        submission_id=submission_id,
        payout_id=payout_id,
        idempotency_key=idempotency_key or None,
        created_by_id=actor_id,
    )
    session.add(entry)
    session.flush()
    return entry


def find_by_idempotency_key(session: Session, idempotency_key: str) -> LedgerEntry | None:
    return session.query(LedgerEntry).filter(LedgerEntry.idempotency_key == idempotency_key).first()


def entries_for_campaign(
    session: Session,
    campaign_id: int,
    *,
    entry_type: LedgerEntryType | None = None,
) -> List[LedgerEntry]:
    query = session.query(LedgerEntry).filter(LedgerEntry.campaign_id == campaign_id)
    if entry_type is not None:
        query = query.filter(LedgerEntry.type == entry_type)
    return query.order_by(LedgerEntry.id.asc()).all()


def replay_balances(entries: List[LedgerEntry]) -> ReplayedBalances:
    """Fold entries (oldest first) into total / reserved / spent.

    FEE is charged against the budget like a payout. PAYOUT_PAID floors the
    reservation at zero, mirroring settlement.
    """
    total = reserved = spent = 0
    for entry in entries:
        amount = entry.amount_paise
        if entry.type == LedgerEntryType.DEPOSIT:
            total += amount
        elif entry.type == LedgerEntryType.RESERVE:
            reserved += amount
        elif entry.type == LedgerEntryType.RELEASE_RESERVE:
            reserved = max(0, reserved - amount)
        elif entry.type == LedgerEntryType.PAYOUT_PAID:
            reserved = max(0, reserved - amount)
            spent += amount
        elif entry.type == LedgerEntryType.FEE:
            spent += amount
    return ReplayedBalances(total_paise=total, reserved_paise=reserved, spent_paise=spent)


__all__ = [
    "ReplayedBalances",
    "record_entry",
    "find_by_idempotency_key",
    "entries_for_campaign",
    "replay_balances",
]
