"""Domain error taxonomy.

Services raise these; the HTTP shell maps them to responses through a single
exception handler (see ``reelpay.main``). Each class carries a stable ``code``
for clients and the HTTP status the shell should use. None of them is retried
inside the core.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ReelpayError(Exception):
    """Base class for business-rule violations surfaced to callers."""

    code: str = "REELPAY_ERROR"
    http_status: int = 400

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)


# ------------------------------- Not found -------------------------------- #

class NotFound(ReelpayError):
    code = "NOT_FOUND"
    http_status = 404


class CampaignNotFound(NotFound):
    def __init__(self, campaign_id: int):
        super().__init__(f"Campaign {campaign_id} not found", {"campaign_id": campaign_id})


class SubmissionNotFound(NotFound):
    def __init__(self, submission_id: int):
        super().__init__(f"Submission {submission_id} not found", {"submission_id": submission_id})


class PayoutNotFound(NotFound):
    def __init__(self, payout_id: int):
        super().__init__(f"Payout {payout_id} not found", {"payout_id": payout_id})


# ----------------------------- Invalid state ------------------------------ #

class InvalidState(ReelpayError):
    """Operation not allowed in the target's current lifecycle state."""

    code = "INVALID_STATE"
    http_status = 409


class InvalidAmount(InvalidState):
    code = "INVALID_AMOUNT"
    http_status = 400


class NotParticipating(InvalidState):
    code = "NOT_PARTICIPATING"
    http_status = 400


class PlatformNotSelected(InvalidState):
    code = "PLATFORM_NOT_SELECTED"
    http_status = 400


class HandleMissing(InvalidState):
    code = "HANDLE_MISSING"
    http_status = 400


class Forbidden(ReelpayError):
    code = "FORBIDDEN"
    http_status = 403


class DuplicateSubmission(ReelpayError):
    code = "DUPLICATE_SUBMISSION"
    http_status = 409


# ----------------------------- Business rules ----------------------------- #

class InsufficientBudget(ReelpayError):
    """Retryable by the caller once more funds are deposited."""

    code = "INSUFFICIENT_BUDGET"
    http_status = 409


class RegressionNotAllowed(ReelpayError):
    code = "REGRESSION_NOT_ALLOWED"
    http_status = 422


class AlreadyRequested(ReelpayError):
    code = "ALREADY_REQUESTED"
    http_status = 409


class EligibilityExpired(ReelpayError):
    code = "ELIGIBILITY_EXPIRED"
    http_status = 422


class NoPayableAmount(ReelpayError):
    code = "NO_PAYABLE_AMOUNT"
    http_status = 422


class NoUnpaidSubmissions(ReelpayError):
    code = "NO_UNPAID_SUBMISSIONS"
    http_status = 422


class PayoutConflict(ReelpayError):
    """A concurrent batch put one of the submissions on another pending payout."""

    code = "PAYOUT_CONFLICT"
    http_status = 409


class AlreadyPaid(ReelpayError):
    code = "ALREADY_PAID"
    http_status = 409


class CampaignNotStarted(ReelpayError):
    code = "CAMPAIGN_NOT_STARTED"
    http_status = 422


__all__ = [
    "ReelpayError",
    "NotFound",
    "CampaignNotFound",
    "SubmissionNotFound",
    "PayoutNotFound",
    "InvalidState",
    "InvalidAmount",
    "NotParticipating",
    "PlatformNotSelected",
    "HandleMissing",
    "Forbidden",
    "DuplicateSubmission",
    "InsufficientBudget",
    "RegressionNotAllowed",
    "AlreadyRequested",
    "EligibilityExpired",
    "NoPayableAmount",
    "NoUnpaidSubmissions",
    "PayoutConflict",
    "AlreadyPaid",
    "CampaignNotStarted",
]
