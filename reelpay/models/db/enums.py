"""Central Enum definitions for core domain states.

Every lifecycle field is one of these closed sets; transition logic matches
on members, never on raw strings.
"""
from __future__ import annotations
import enum


class UserRole(str, enum.Enum):
    CREATOR = "CREATOR"
    HOST = "HOST"
    ADMIN = "ADMIN"


class Platform(str, enum.Enum):
    YOUTUBE = "YOUTUBE"
    INSTAGRAM = "INSTAGRAM"
    FACEBOOK = "FACEBOOK"

    @classmethod
    def normalize(cls, value: "str | Platform") -> "Platform":
        """Accept 'youtube', 'YT', 'ig', ... Raises ValueError for anything else."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper()
        return cls(_PLATFORM_ALIASES.get(key, key))


_PLATFORM_ALIASES = {"YT": "YOUTUBE", "IG": "INSTAGRAM", "FB": "FACEBOOK"}


class CampaignStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    ENDED = "ENDED"


class ParticipationStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"

# ------------------ Submission / Verification / Payout ------------------ #

class SubmissionStatus(str, enum.Enum):
    PENDING_HOST_APPROVAL = "PENDING_HOST_APPROVAL"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    ENDED = "ENDED"


class SubmissionPayoutStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"


class VerificationRequestStatus(str, enum.Enum):
    PENDING = "PENDING"


class PayoutStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"

# ------------------------------ Ledger / Audit ------------------------------ #

class LedgerEntryType(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    RESERVE = "RESERVE"
    RELEASE_RESERVE = "RELEASE_RESERVE"
    PAYOUT_PAID = "PAYOUT_PAID"
    FEE = "FEE"


class AuditAction(str, enum.Enum):
    VERIFY_APPROVE = "VERIFY_APPROVE"
    VERIFY_REJECT = "VERIFY_REJECT"
    PAYOUT_CREATE = "PAYOUT_CREATE"
    PAYOUT_MARK_PAID = "PAYOUT_MARK_PAID"
    CAMPAIGN_END = "CAMPAIGN_END"

__all__ = [
    "UserRole",
    "Platform",
    "CampaignStatus",
    "ParticipationStatus",
    "SubmissionStatus",
    "SubmissionPayoutStatus",
    "VerificationRequestStatus",
    "PayoutStatus",
    "LedgerEntryType",
    "AuditAction",
]
