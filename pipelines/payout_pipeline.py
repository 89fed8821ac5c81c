"""
Intake Review – Payout Pipeline
================================
Fee accrual and payout-cycle bookkeeping for reviewers.

Each reviewer has at most one open cycle. Recorded decisions accrue the
reviewer's per-review fee into it; marking the cycle paid closes it and the
next accrual opens a fresh one.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from core.exceptions import InvalidStateError, PermissionDeniedError
from core.logging_utils import log_pipeline_event
from core.store import InMemoryStore
from models.review.schema_definition import (
    AuditEntry,
    CycleStatus,
    Decision,
    PayoutCycle,
    Reviewer,
    ReviewPayment,
)

logger = logging.getLogger(__name__)

RECENT_CYCLES = 12
RECENT_PAYMENTS = 20


class PayoutPipeline:
    """Accrues review fees and settles payout cycles."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    def accrue(
        self,
        reviewer: Reviewer,
        assessment_id: str,
        decision: Decision,
    ) -> Optional[ReviewPayment]:
        """Record the reviewer's fee for one decision; None when no fee is set."""
        if reviewer.fee_per_review <= 0:
            return None

        with self.store.transaction():
            cycle = self.store.find_open_cycle(reviewer.id)
            if cycle is None:
                cycle = PayoutCycle(
                    reviewer_id=reviewer.id,
                    cycle_type=self.store.get_settings().payout_cycle_type,
                )

            payment = ReviewPayment(
                assessment_id=assessment_id,
                reviewer_id=reviewer.id,
                amount=reviewer.fee_per_review,
                decision=decision,
                cycle_id=cycle.id,
            )
            cycle.total_reviews += 1
            cycle.total_amount = round(cycle.total_amount + payment.amount, 2)

            self.store.save_payment(payment)
            self.store.save_cycle(cycle)

        log_pipeline_event(logger, "payout", "fee accrued", {
            "reviewer_id": reviewer.id,
            "assessment_id": assessment_id,
            "amount": payment.amount,
            "cycle_id": cycle.id,
        })
        return payment

    def mark_cycle_paid(
        self,
        cycle_id: str,
        admin_id: str,
        notes: Optional[str] = None,
    ) -> PayoutCycle:
        """Settle a cycle and every payment in it."""
        admin = self.store.get_reviewer(admin_id)
        if not admin.is_admin:
            raise PermissionDeniedError("Admin access required")

        now = datetime.now(timezone.utc)
        with self.store.transaction():
            cycle = self.store.get_cycle(cycle_id)
            if cycle.status is CycleStatus.PAID:
                raise InvalidStateError(f"Payout cycle {cycle_id} is already paid")

            cycle.status = CycleStatus.PAID
            cycle.paid_at = now
            cycle.paid_by = admin.id
            cycle.payment_notes = notes or None
            self.store.save_cycle(cycle)

            for payment in self.store.list_payments(cycle_id=cycle_id):
                payment.is_paid = True
                payment.paid_at = now
                self.store.save_payment(payment)

            self.store.append_audit(AuditEntry(
                action="mark_cycle_paid",
                entity_type="payoutCycle",
                entity_id=cycle_id,
                actor_id=admin.id,
                details={
                    "totalAmount": cycle.total_amount,
                    "totalReviews": cycle.total_reviews,
                    "reviewerId": cycle.reviewer_id,
                },
            ))

        log_pipeline_event(logger, "payout", "cycle paid", {
            "cycle_id": cycle_id,
            "total_amount": cycle.total_amount,
        })
        return cycle

    def earnings(self, reviewer_id: str, now: Optional[datetime] = None) -> dict:
        """Earnings overview for one reviewer; the month total is in UTC."""
        reviewer = self.store.get_reviewer(reviewer_id)
        payments = sorted(
            self.store.list_payments(reviewer_id=reviewer_id),
            key=lambda p: p.created_at,
            reverse=True,
        )
        cycles = sorted(
            self.store.list_cycles(reviewer_id=reviewer_id),
            key=lambda c: c.created_at,
            reverse=True,
        )

        total = round(sum(p.amount for p in payments), 2)
        paid_out = round(sum(p.amount for p in payments if p.is_paid), 2)
        now = now or datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        this_month = round(sum(p.amount for p in payments if p.created_at >= month_start), 2)

        return {
            "total_earnings": total,
            "paid_out": paid_out,
            "pending_balance": round(total - paid_out, 2),
            "total_reviews": len(payments),
            "approved_count": sum(1 for p in payments if p.decision is Decision.APPROVED),
            "denied_count": sum(1 for p in payments if p.decision is Decision.DENIED),
            "this_month_earnings": this_month,
            "fee_per_review": reviewer.fee_per_review,
            "cycles": cycles[:RECENT_CYCLES],
            "recent_payments": payments[:RECENT_PAYMENTS],
        }

    def list_cycles(
        self,
        admin_id: str,
        status: Optional[CycleStatus] = None,
    ) -> List[PayoutCycle]:
        admin = self.store.get_reviewer(admin_id)
        if not admin.is_admin:
            raise PermissionDeniedError("Admin access required")
        if status is not None:
            status = CycleStatus(status)
        cycles = [c for c in self.store.list_cycles() if status is None or c.status is status]
        return sorted(cycles, key=lambda c: c.created_at, reverse=True)
