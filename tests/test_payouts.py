import pytest

from reelpay.database import SessionLocal
from reelpay.exceptions import AlreadyPaid, NoPayableAmount, NoUnpaidSubmissions, PayoutConflict, PayoutNotFound
from reelpay.models.db import AuditLog, Submission
from reelpay.models.db.enums import (
    AuditAction,
    LedgerEntryType,
    PayoutStatus,
    SubmissionPayoutStatus,
    UserRole,
)
from reelpay.services import budget, payouts
from reelpay.services.ledger import entries_for_campaign, replay_balances
from reelpay.services.verification import admin_verify


def _approved(db_session, submission_factory, campaign, admin, views, creator=None, **kwargs):
    submission = submission_factory(campaign, creator=creator, **kwargs)
    admin_verify(db_session, submission.id, admin.id, approved=True, verified_views_total=views)
    return submission


def _assert_account_matches_ledger(db_session, campaign_id):
    account = budget.get_account(db_session, campaign_id)
    replayed = replay_balances(entries_for_campaign(db_session, campaign_id))
    assert (replayed.total_paise, replayed.reserved_paise, replayed.spent_paise) == (
        account.total_paise,
        account.reserved_paise,
        account.spent_paise,
    )
    assert account.reserved_paise + account.spent_paise <= account.total_paise


def test_views_for_amount():
    assert payouts.views_for_amount(6000, 3000) == 2000
    assert payouts.views_for_amount(5000, 3000) == 1666


def test_batch_and_settle_single_submission(db_session, campaign_factory, submission_factory, admin):
    campaign = campaign_factory(rate=3000)
    submission = _approved(db_session, submission_factory, campaign, admin, 2000)

    payout = payouts.create_payout_batch(db_session, submission.creator_id, admin.id)
    assert payout.status == PayoutStatus.PENDING
    assert payout.amount_paise == 6000
    assert [(i.submission_id, i.amount_paise) for i in payout.items] == [(submission.id, 6000)]

    before = budget.get_account(db_session, campaign.id)
    reserved_before, spent_before = before.reserved_paise, before.spent_paise

    settled = payouts.settle_payout(db_session, payout.id, admin.id, "UTR123")
    assert settled.status == PayoutStatus.PAID
    assert settled.reference_id == "UTR123"
    assert settled.paid_at is not None

    after = budget.get_account(db_session, campaign.id)
    assert after.reserved_paise == reserved_before - 6000
    assert after.spent_paise == spent_before + 6000

    refreshed = db_session.get(Submission, submission.id)
    assert refreshed.paid_views_total == 2000
    assert refreshed.reserved_paise == 0
    assert refreshed.payout_status == SubmissionPayoutStatus.PAID

    paid_entries = entries_for_campaign(db_session, campaign.id, entry_type=LedgerEntryType.PAYOUT_PAID)
    assert [(e.amount_paise, e.payout_id) for e in paid_entries] == [(6000, payout.id)]
    _assert_account_matches_ledger(db_session, campaign.id)


def test_second_settlement_fails_without_side_effects(db_session, campaign_factory, submission_factory, admin):
    campaign = campaign_factory(rate=3000)
    submission = _approved(db_session, submission_factory, campaign, admin, 2000)
    payout = payouts.create_payout_batch(db_session, submission.creator_id, admin.id)
    payouts.settle_payout(db_session, payout.id, admin.id, "UTR123")

    account = budget.get_account(db_session, campaign.id)
    snapshot = (account.total_paise, account.reserved_paise, account.spent_paise)

    with pytest.raises(AlreadyPaid):
        payouts.settle_payout(db_session, payout.id, admin.id, "UTR999")

    account = budget.get_account(db_session, campaign.id)
    assert (account.total_paise, account.reserved_paise, account.spent_paise) == snapshot
    assert payouts.get_payout(db_session, payout.id).reference_id == "UTR123"
    assert db_session.get(Submission, submission.id).paid_views_total == 2000


def test_batch_spans_campaigns_and_skips_zero_lines(
    db_session, campaign_factory, submission_factory, user_factory, admin
):
    creator = user_factory(UserRole.CREATOR)
    cheap = campaign_factory(rate=3000)
    pricey = campaign_factory(rate=10000)
    first = _approved(db_session, submission_factory, cheap, admin, 2500, creator=creator)
    second = _approved(db_session, submission_factory, pricey, admin, 1000, creator=creator)
    _approved(db_session, submission_factory, cheap, admin, 400, creator=creator)

    payout = payouts.create_payout_batch(db_session, creator.id, admin.id)
    assert payout.amount_paise == 6000 + 10000
    assert sorted(i.submission_id for i in payout.items) == sorted([first.id, second.id])

    payouts.settle_payout(db_session, payout.id, admin.id, "UTR-MULTI")
    _assert_account_matches_ledger(db_session, cheap.id)
    _assert_account_matches_ledger(db_session, pricey.id)
    assert budget.get_account(db_session, pricey.id).spent_paise == 10000


def test_no_unpaid_submissions(db_session, user_factory, admin):
    creator = user_factory(UserRole.CREATOR)
    with pytest.raises(NoUnpaidSubmissions):
        payouts.create_payout_batch(db_session, creator.id, admin.id)


def test_no_payable_amount(db_session, campaign_factory, submission_factory, admin):
    campaign = campaign_factory()
    submission = _approved(db_session, submission_factory, campaign, admin, 500)

    with pytest.raises(NoPayableAmount):
        payouts.create_payout_batch(db_session, submission.creator_id, admin.id)
    assert payouts.list_payouts(db_session, creator_id=submission.creator_id) == []


def test_pending_payout_excludes_submission_until_settled(db_session, campaign_factory, submission_factory, admin):
    campaign = campaign_factory(rate=3000)
    submission = _approved(db_session, submission_factory, campaign, admin, 2500)
    first = payouts.create_payout_batch(db_session, submission.creator_id, admin.id)
    assert first.amount_paise == 6000

    # Views grow while the first payout is still pending
    admin_verify(db_session, submission.id, admin.id, approved=True, verified_views_total=3500)
    with pytest.raises(NoUnpaidSubmissions):
        payouts.create_payout_batch(db_session, submission.creator_id, admin.id)

    payouts.settle_payout(db_session, first.id, admin.id, "UTR-1")
    refreshed = db_session.get(Submission, submission.id)
    assert refreshed.paid_views_total == 2000
    assert refreshed.reserved_paise == 3000
    assert refreshed.payout_status == SubmissionPayoutStatus.UNPAID

    follow_up = payouts.create_payout_batch(db_session, submission.creator_id, admin.id)
    assert follow_up.amount_paise == 3000
    payouts.settle_payout(db_session, follow_up.id, admin.id, "UTR-2")

    account = budget.get_account(db_session, campaign.id)
    assert account.reserved_paise == 0
    assert account.spent_paise == 9000
    assert db_session.get(Submission, submission.id).paid_views_total == 3000
    _assert_account_matches_ledger(db_session, campaign.id)


def _batch_in_other_session(creator_id, admin_id):
    other = SessionLocal()
    try:
        return payouts.create_payout_batch(other, creator_id, admin_id).id
    finally:
        other.close()


@pytest.mark.parametrize("competing_first", [True, False])
def test_concurrent_batches_pay_submission_once(
    db_session, campaign_factory, submission_factory, admin, monkeypatch, competing_first
):
    campaign = campaign_factory(rate=3000)
    submission = _approved(db_session, submission_factory, campaign, admin, 2000)
    creator_id, admin_id = submission.creator_id, admin.id
    real_lookup = payouts.submissions_on_pending_payouts
    state = {"raced": False}
    competing = []

    def lookup_with_competing_batch(session, submission_ids=None):
        # A second admin batches the same creator around our pending-payout check
        if state["raced"]:
            return real_lookup(session, submission_ids)
        state["raced"] = True
        if competing_first:
            competing.append(_batch_in_other_session(creator_id, admin_id))
            return real_lookup(session, submission_ids)
        found = real_lookup(session, submission_ids)
        competing.append(_batch_in_other_session(creator_id, admin_id))
        return found

    monkeypatch.setattr(payouts, "submissions_on_pending_payouts", lookup_with_competing_batch)
    expected = NoUnpaidSubmissions if competing_first else PayoutConflict
    with pytest.raises(expected):
        payouts.create_payout_batch(db_session, creator_id, admin_id)
    monkeypatch.undo()

    pending = payouts.list_payouts(db_session, creator_id=creator_id, status=PayoutStatus.PENDING)
    assert [(p.id, p.amount_paise) for p in pending] == [(competing[0], 6000)]

    payouts.settle_payout(db_session, competing[0], admin_id, "UTR-RACE")
    refreshed = db_session.get(Submission, submission.id)
    assert refreshed.paid_views_total == 2000
    assert refreshed.reserved_paise == 0
    account = budget.get_account(db_session, campaign.id)
    assert account.spent_paise == 6000
    _assert_account_matches_ledger(db_session, campaign.id)


def test_settlement_releases_open_item_marker(db_session, campaign_factory, submission_factory, admin):
    campaign = campaign_factory(rate=3000)
    submission = _approved(db_session, submission_factory, campaign, admin, 2000)
    payout = payouts.create_payout_batch(db_session, submission.creator_id, admin.id)
    assert [i.open_submission_id for i in payout.items] == [submission.id]

    settled = payouts.settle_payout(db_session, payout.id, admin.id, "UTR-OPEN")
    assert [i.open_submission_id for i in settled.items] == [None]


def test_creator_earnings_progression(db_session, campaign_factory, submission_factory, admin):
    campaign = campaign_factory(rate=3000)
    submission = _approved(db_session, submission_factory, campaign, admin, 2500)
    creator_id = submission.creator_id

    earnings = payouts.creator_earnings(db_session, creator_id)
    assert (earnings.pending_paise, earnings.in_flight_paise, earnings.total_paid_paise) == (6000, 0, 0)

    payout = payouts.create_payout_batch(db_session, creator_id, admin.id)
    earnings = payouts.creator_earnings(db_session, creator_id)
    assert (earnings.pending_paise, earnings.in_flight_paise, earnings.total_paid_paise) == (0, 6000, 0)

    payouts.settle_payout(db_session, payout.id, admin.id, "UTR-E")
    earnings = payouts.creator_earnings(db_session, creator_id)
    assert (earnings.pending_paise, earnings.in_flight_paise, earnings.total_paid_paise) == (0, 0, 6000)


def test_payout_audit_trail(db_session, campaign_factory, submission_factory, admin):
    campaign = campaign_factory()
    submission = _approved(db_session, submission_factory, campaign, admin, 1000)
    payout = payouts.create_payout_batch(db_session, submission.creator_id, admin.id)
    payouts.settle_payout(db_session, payout.id, admin.id, "UTR-A")

    actions = [
        a.action_type
        for a in db_session.query(AuditLog).filter_by(target_type="Payout", target_id=payout.id).order_by(AuditLog.id)
    ]
    assert actions == [AuditAction.PAYOUT_CREATE, AuditAction.PAYOUT_MARK_PAID]


def test_list_and_get_payouts(db_session, campaign_factory, submission_factory, admin):
    campaign = campaign_factory()
    submission = _approved(db_session, submission_factory, campaign, admin, 1000)
    payout = payouts.create_payout_batch(db_session, submission.creator_id, admin.id)

    assert [p.id for p in payouts.list_payouts(db_session, status=PayoutStatus.PENDING)] == [payout.id]
    assert payouts.list_payouts(db_session, status=PayoutStatus.PAID) == []
    with pytest.raises(PayoutNotFound):
        payouts.get_payout(db_session, payout.id + 100)
    with pytest.raises(PayoutNotFound):
        payouts.settle_payout(db_session, payout.id + 100, admin.id, "UTR-X")
