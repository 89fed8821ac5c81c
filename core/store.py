"""
Intake Review – In-Memory Store
================================
Thread-safe repository for assessments, reviewers, payments, payout cycles,
settings and the audit trail. Reads return copies; callers persist changes
with the matching ``save_*`` method, ideally inside ``transaction()`` when a
read-modify-write must be atomic.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from core.exceptions import NotFoundError
from models.review.schema_definition import (
    AssessmentRecord,
    AuditEntry,
    CycleStatus,
    PayoutCycle,
    Reviewer,
    ReviewPayment,
    SystemSettings,
)


class InMemoryStore:
    def __init__(self, settings: Optional[SystemSettings] = None):
        self._lock = threading.RLock()
        self._assessments: Dict[str, AssessmentRecord] = {}
        self._reviewers: Dict[str, Reviewer] = {}
        self._payments: Dict[str, ReviewPayment] = {}
        self._cycles: Dict[str, PayoutCycle] = {}
        self._settings = settings or SystemSettings()
        self._audit: List[AuditEntry] = []

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        """Hold the store lock across several reads and writes."""
        with self._lock:
            yield self

    # ── Assessments ─────────────────────────────────────────────────────

    def save_assessment(self, record: AssessmentRecord) -> AssessmentRecord:
        with self._lock:
            self._assessments[record.id] = record.model_copy(deep=True)
        return record

    def get_assessment(self, assessment_id: str) -> AssessmentRecord:
        with self._lock:
            record = self._assessments.get(assessment_id)
            if record is None:
                raise NotFoundError(f"Assessment {assessment_id} not found")
            return record.model_copy(deep=True)

    def list_assessments(self) -> List[AssessmentRecord]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._assessments.values()]

    # ── Reviewers ───────────────────────────────────────────────────────

    def save_reviewer(self, reviewer: Reviewer) -> Reviewer:
        with self._lock:
            self._reviewers[reviewer.id] = reviewer.model_copy(deep=True)
        return reviewer

    def get_reviewer(self, reviewer_id: str) -> Reviewer:
        with self._lock:
            reviewer = self._reviewers.get(reviewer_id)
            if reviewer is None:
                raise NotFoundError(f"Reviewer {reviewer_id} not found")
            return reviewer.model_copy(deep=True)

    def find_reviewer_by_email(self, email: str) -> Optional[Reviewer]:
        email = email.lower()
        with self._lock:
            for reviewer in self._reviewers.values():
                if reviewer.email == email:
                    return reviewer.model_copy(deep=True)
        return None

    def list_reviewers(self) -> List[Reviewer]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._reviewers.values()]

    # ── Payments & cycles ───────────────────────────────────────────────

    def save_payment(self, payment: ReviewPayment) -> ReviewPayment:
        with self._lock:
            self._payments[payment.id] = payment.model_copy(deep=True)
        return payment

    def list_payments(
        self,
        reviewer_id: Optional[str] = None,
        cycle_id: Optional[str] = None,
    ) -> List[ReviewPayment]:
        with self._lock:
            return [
                p.model_copy(deep=True)
                for p in self._payments.values()
                if (reviewer_id is None or p.reviewer_id == reviewer_id)
                and (cycle_id is None or p.cycle_id == cycle_id)
            ]

    def save_cycle(self, cycle: PayoutCycle) -> PayoutCycle:
        with self._lock:
            self._cycles[cycle.id] = cycle.model_copy(deep=True)
        return cycle

    def get_cycle(self, cycle_id: str) -> PayoutCycle:
        with self._lock:
            cycle = self._cycles.get(cycle_id)
            if cycle is None:
                raise NotFoundError(f"Payout cycle {cycle_id} not found")
            return cycle.model_copy(deep=True)

    def find_open_cycle(self, reviewer_id: str) -> Optional[PayoutCycle]:
        with self._lock:
            for cycle in self._cycles.values():
                if cycle.reviewer_id == reviewer_id and cycle.status is CycleStatus.OPEN:
                    return cycle.model_copy(deep=True)
        return None

    def list_cycles(self, reviewer_id: Optional[str] = None) -> List[PayoutCycle]:
        with self._lock:
            return [
                c.model_copy(deep=True)
                for c in self._cycles.values()
                if reviewer_id is None or c.reviewer_id == reviewer_id
            ]

    # ── Settings & audit ────────────────────────────────────────────────

    def get_settings(self) -> SystemSettings:
        with self._lock:
            return self._settings.model_copy()

    def save_settings(self, settings: SystemSettings) -> SystemSettings:
        with self._lock:
            self._settings = settings.model_copy()
        return settings

    def append_audit(self, entry: AuditEntry) -> None:
        with self._lock:
            self._audit.append(entry)

    def audit_log(self, entity_id: Optional[str] = None) -> List[AuditEntry]:
        with self._lock:
            return [e for e in self._audit if entity_id is None or e.entity_id == entity_id]
