from .users import User
from .campaigns import Campaign
from .budget_accounts import CampaignBudgetAccount
from .ledger import LedgerEntry
from .participations import Participation
from .submissions import Submission
from .verification import VerificationCheck, VerificationRequest
from .payouts import Payout, PayoutItem
from .audit_logs import AuditLog

__all__ = [
    "User",
    "Campaign",
    "CampaignBudgetAccount",
    "LedgerEntry",
    "Participation",
    "Submission",
    "VerificationCheck",
    "VerificationRequest",
    "Payout",
    "PayoutItem",
    "AuditLog",
]
