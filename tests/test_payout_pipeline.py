"""Tests for fee accrual, earnings and payout cycles."""
from datetime import datetime, timezone

import pytest

from conftest import make_form
from core.exceptions import InvalidStateError, NotFoundError, PermissionDeniedError
from models.review.schema_definition import CycleStatus, CycleType


def _review(workflow, reviewer, n, decision="approved"):
    for _ in range(n):
        record = workflow.submit(make_form())
        kwargs = {"denial_reason": "not suitable"} if decision == "denied" else {}
        workflow.reviews.decide(record.id, reviewer.id, decision, **kwargs)


def test_decisions_accrue_into_one_open_cycle(workflow, reviewer):
    _review(workflow, reviewer, 2)
    _review(workflow, reviewer, 1, decision="denied")

    cycles = workflow.store.list_cycles(reviewer_id=reviewer.id)
    assert len(cycles) == 1
    cycle = cycles[0]
    assert cycle.status is CycleStatus.OPEN
    assert cycle.cycle_type is CycleType.WEEKLY
    assert cycle.total_reviews == 3
    assert cycle.total_amount == 15.0


def test_earnings_summary(workflow, reviewer):
    _review(workflow, reviewer, 2)
    _review(workflow, reviewer, 1, decision="denied")

    earnings = workflow.payouts.earnings(reviewer.id)

    assert earnings["total_earnings"] == 15.0
    assert earnings["paid_out"] == 0
    assert earnings["pending_balance"] == 15.0
    assert earnings["total_reviews"] == 3
    assert earnings["approved_count"] == 2
    assert earnings["denied_count"] == 1
    assert earnings["fee_per_review"] == 5.0
    assert len(earnings["recent_payments"]) == 3


def test_this_month_earnings_only_counts_current_month(workflow, reviewer):
    _review(workflow, reviewer, 2)
    payments = workflow.store.list_payments(reviewer_id=reviewer.id)
    now = max(p.created_at for p in payments)

    assert workflow.payouts.earnings(reviewer.id, now=now)["this_month_earnings"] == 10.0
    later = datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)
    assert workflow.payouts.earnings(reviewer.id, now=later)["this_month_earnings"] == 0


def test_mark_cycle_paid_settles_payments(workflow, reviewer, admin):
    _review(workflow, reviewer, 2)
    cycle = workflow.store.find_open_cycle(reviewer.id)

    paid = workflow.payouts.mark_cycle_paid(cycle.id, admin.id, notes="ACH batch 7")

    assert paid.status is CycleStatus.PAID
    assert paid.paid_by == admin.id
    assert paid.payment_notes == "ACH batch 7"
    assert all(p.is_paid for p in workflow.store.list_payments(cycle_id=cycle.id))

    earnings = workflow.payouts.earnings(reviewer.id)
    assert earnings["paid_out"] == 10.0
    assert earnings["pending_balance"] == 0
    assert workflow.store.audit_log(cycle.id)[-1].action == "mark_cycle_paid"


def test_accrual_after_payout_opens_new_cycle(workflow, reviewer, admin):
    _review(workflow, reviewer, 1)
    first = workflow.store.find_open_cycle(reviewer.id)
    workflow.payouts.mark_cycle_paid(first.id, admin.id)

    _review(workflow, reviewer, 1)

    second = workflow.store.find_open_cycle(reviewer.id)
    assert second is not None
    assert second.id != first.id
    assert second.total_reviews == 1
    assert workflow.payouts.earnings(reviewer.id)["pending_balance"] == 5.0


def test_cycle_type_follows_settings(workflow, reviewer, admin):
    workflow.reviewers.update_settings(admin.id, payout_cycle_type="monthly")
    _review(workflow, reviewer, 1)
    assert workflow.store.find_open_cycle(reviewer.id).cycle_type is CycleType.MONTHLY


def test_cannot_pay_twice(workflow, reviewer, admin):
    _review(workflow, reviewer, 1)
    cycle = workflow.store.find_open_cycle(reviewer.id)
    workflow.payouts.mark_cycle_paid(cycle.id, admin.id)

    with pytest.raises(InvalidStateError):
        workflow.payouts.mark_cycle_paid(cycle.id, admin.id)


def test_only_admin_marks_paid(workflow, reviewer):
    _review(workflow, reviewer, 1)
    cycle = workflow.store.find_open_cycle(reviewer.id)
    with pytest.raises(PermissionDeniedError):
        workflow.payouts.mark_cycle_paid(cycle.id, reviewer.id)


def test_unknown_cycle(workflow, admin):
    with pytest.raises(NotFoundError):
        workflow.payouts.mark_cycle_paid("missing", admin.id)


def test_list_cycles_by_status(workflow, reviewer, admin):
    _review(workflow, reviewer, 1)
    cycle = workflow.store.find_open_cycle(reviewer.id)
    workflow.payouts.mark_cycle_paid(cycle.id, admin.id)
    _review(workflow, reviewer, 1)

    assert len(workflow.payouts.list_cycles(admin.id)) == 2
    assert len(workflow.payouts.list_cycles(admin.id, status="paid")) == 1
    assert len(workflow.payouts.list_cycles(admin.id, status=CycleStatus.OPEN)) == 1
