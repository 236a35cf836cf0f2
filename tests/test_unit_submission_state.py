import pytest

from reelpay.exceptions import InvalidState
from reelpay.models.db import Submission
from reelpay.models.db.enums import Platform, SubmissionStatus
from reelpay.services.submission_state import can_transition, rejection_target, transition


def _submission(status: SubmissionStatus) -> Submission:
    return Submission(id=1, status=status)


def test_transition_table():
    assert can_transition(SubmissionStatus.PENDING_HOST_APPROVAL, SubmissionStatus.ACTIVE)
    assert can_transition(SubmissionStatus.PENDING_HOST_APPROVAL, SubmissionStatus.SUSPENDED)
    assert can_transition(SubmissionStatus.ACTIVE, SubmissionStatus.ACTIVE)
    assert can_transition(SubmissionStatus.SUSPENDED, SubmissionStatus.ENDED)
    assert not can_transition(SubmissionStatus.ACTIVE, SubmissionStatus.SUSPENDED)
    assert not can_transition(SubmissionStatus.SUSPENDED, SubmissionStatus.ACTIVE)
    assert not can_transition(SubmissionStatus.ENDED, SubmissionStatus.ACTIVE)


def test_transition_applies_and_returns_previous():
    sub = _submission(SubmissionStatus.PENDING_HOST_APPROVAL)
    previous = transition(sub, SubmissionStatus.ACTIVE)
    assert previous == SubmissionStatus.PENDING_HOST_APPROVAL
    assert sub.status == SubmissionStatus.ACTIVE


def test_illegal_transition_raises_and_leaves_status():
    sub = _submission(SubmissionStatus.ENDED)
    with pytest.raises(InvalidState):
        transition(sub, SubmissionStatus.ACTIVE)
    assert sub.status == SubmissionStatus.ENDED


def test_rejection_target():
    assert rejection_target(SubmissionStatus.PENDING_HOST_APPROVAL) == SubmissionStatus.SUSPENDED
    # Rejecting an active, payable submission does not suspend it
    assert rejection_target(SubmissionStatus.ACTIVE) == SubmissionStatus.ACTIVE
    with pytest.raises(InvalidState):
        rejection_target(SubmissionStatus.SUSPENDED)


@pytest.mark.parametrize("raw,expected", [
    ("youtube", Platform.YOUTUBE),
    ("YT", Platform.YOUTUBE),
    ("ig", Platform.INSTAGRAM),
    (" Facebook ", Platform.FACEBOOK),
    (Platform.INSTAGRAM, Platform.INSTAGRAM),
])
def test_platform_normalize(raw, expected):
    assert Platform.normalize(raw) == expected


def test_platform_normalize_rejects_unknown():
    with pytest.raises(ValueError):
        Platform.normalize("tiktok")
