"""Submission lifecycle transitions.

    PENDING_HOST_APPROVAL -> ACTIVE | SUSPENDED | ENDED
    ACTIVE                -> ACTIVE | ENDED
    SUSPENDED             -> ENDED
    ENDED                 (terminal)

SUSPENDED is only reachable from PENDING_HOST_APPROVAL: rejecting an ACTIVE
submission leaves it ACTIVE. Side effects (ledger, audit) stay in the
services; this module only validates and applies the state change.
"""
from __future__ import annotations

from reelpay.exceptions import InvalidState
from reelpay.models.db.enums import SubmissionStatus
from reelpay.models.db.submissions import Submission

_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.PENDING_HOST_APPROVAL: frozenset({
        SubmissionStatus.ACTIVE,
        SubmissionStatus.SUSPENDED,
        SubmissionStatus.ENDED,
    }),
    SubmissionStatus.ACTIVE: frozenset({SubmissionStatus.ACTIVE, SubmissionStatus.ENDED}),
    SubmissionStatus.SUSPENDED: frozenset({SubmissionStatus.ENDED}),
    SubmissionStatus.ENDED: frozenset(),
}

VERIFIABLE_STATES = frozenset({SubmissionStatus.PENDING_HOST_APPROVAL, SubmissionStatus.ACTIVE})


def can_transition(current: SubmissionStatus, target: SubmissionStatus) -> bool:
    return target in _TRANSITIONS[current]


def transition(submission: Submission, target: SubmissionStatus) -> SubmissionStatus:
    """Apply ``target`` or raise InvalidState. Returns the previous status."""
    current = submission.status
    if not can_transition(current, target):
        allowed = ", ".join(sorted(s.value for s in _TRANSITIONS[current])) or "none"
        raise InvalidState(
            f"Invalid submission transition: {current.value} -> {target.value}. Allowed: [{allowed}]",
            {"submission_id": submission.id, "status": current.value},
        )
    submission.status = target
    return current


def rejection_target(current: SubmissionStatus) -> SubmissionStatus:
    """Status after an admin rejection."""
    if current == SubmissionStatus.PENDING_HOST_APPROVAL:
        return SubmissionStatus.SUSPENDED
    if current == SubmissionStatus.ACTIVE:
        return SubmissionStatus.ACTIVE
    raise InvalidState(f"Cannot reject a {current.value} submission", {"status": current.value})


__all__ = ["VERIFIABLE_STATES", "can_transition", "transition", "rejection_target"]
