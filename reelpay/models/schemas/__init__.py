from .base import ResponseBase
from .users import UserCreate, UserRead, EarningsRead
from .campaigns import (
    CampaignCreate, CampaignRead, BudgetRead, CycleInfoRead,
    DepositCreate, DepositRead, JoinCampaignRequest, ParticipationRead,
)
from .submissions import (
    SubmitContentRequest, SubmissionRead, VerificationRequestRead,
    AdminVerifyRequest, VerificationOutcomeRead,
)
from .payouts import PayoutCreate, PayoutMarkPaid, PayoutItemRead, PayoutRead, LedgerEntryRead

__all__ = [
    # Base
    "ResponseBase",

    # Users
    "UserCreate",
    "UserRead",
    "EarningsRead",

    # Campaigns
    "CampaignCreate",
    "CampaignRead",
    "BudgetRead",
    "CycleInfoRead",
    "DepositCreate",
    "DepositRead",
    "JoinCampaignRequest",
    "ParticipationRead",

    # Submissions
    "SubmitContentRequest",
    "SubmissionRead",
    "VerificationRequestRead",
    "AdminVerifyRequest",
    "VerificationOutcomeRead",

    # Payouts / ledger
    "PayoutCreate",
    "PayoutMarkPaid",
    "PayoutItemRead",
    "PayoutRead",
    "LedgerEntryRead",
]
