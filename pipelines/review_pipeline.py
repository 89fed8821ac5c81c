"""
Intake Review – Review Pipeline
================================
Reviewer-facing operations on stored assessments: the queue, the detail view,
approve/deny decisions (with fee accrual) and shipment of approved orders.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from core.exceptions import (
    InvalidRequestError,
    InvalidStateError,
    PermissionDeniedError,
)
from core.logging_utils import log_pipeline_event
from core.validation import validate_risk_result
from core.store import InMemoryStore
from models.review.schema_definition import (
    SECTION_NAMES,
    AssessmentRecord,
    AssessmentStatus,
    AuditEntry,
    Decision,
    Reviewer,
)
from models.risk.schema_definition import FlagType, RiskAnalysisResult
from pipelines.payout_pipeline import PayoutPipeline

logger = logging.getLogger(__name__)


class ReviewPipeline:
    """Queue, decision and fulfilment workflow for licensed reviewers."""

    def __init__(
        self,
        store: InMemoryStore,
        payout_pipeline: Optional[PayoutPipeline] = None,
    ):
        self.store = store
        self.payout_pipeline = payout_pipeline or PayoutPipeline(store)

    # ── Queue & detail ──────────────────────────────────────────────────

    def queue(
        self,
        reviewer_id: str,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> dict:
        """
        List assessments newest first, with per-status counts.

        ``status`` of None or ``"all"`` disables status filtering; ``search``
        matches patient name or email, case-insensitively.
        """
        reviewer = self._require_reviewer(reviewer_id)
        records = self.store.list_assessments()

        counts = {s.value: 0 for s in AssessmentStatus}
        for record in records:
            counts[record.status.value] += 1
        counts["all"] = len(records)

        if status and status != "all":
            try:
                wanted = AssessmentStatus(status)
            except ValueError:
                raise InvalidRequestError(f"Unknown assessment status '{status}'") from None
            records = [r for r in records if r.status is wanted]

        if search:
            needle = search.strip().lower()
            records = [r for r in records if needle in _patient_label(r).lower()]

        ordered = [
            r for _, r in sorted(
                enumerate(records),
                key=lambda pair: (pair[1].created_at, pair[0]),
                reverse=True,
            )
        ]

        self.store.append_audit(AuditEntry(
            action="view_queue",
            entity_type="assessment",
            actor_id=reviewer.id,
            details={"status": status, "search": search},
        ))

        return {
            "assessments": [self._queue_entry(r) for r in ordered],
            "counts": counts,
        }

    def get_assessment(self, assessment_id: str, reviewer_id: str) -> dict:
        """Full assessment with sections and flags decoded."""
        reviewer = self._require_reviewer(reviewer_id)
        record = self.store.get_assessment(assessment_id)

        self.store.append_audit(AuditEntry(
            action="view",
            entity_type="assessment",
            entity_id=record.id,
            actor_id=reviewer.id,
        ))

        detail = record.model_dump(exclude=set(SECTION_NAMES) | {"risk_flags"})
        for name in SECTION_NAMES:
            detail[name] = record.section(name)
        analysis = _decode_risk_analysis(record)
        detail["risk_flags"] = analysis["flags"]
        detail["risk_summary"] = analysis["summary"]
        return detail

    # ── Decisions ───────────────────────────────────────────────────────

    def decide(
        self,
        assessment_id: str,
        reviewer_id: str,
        decision: str,
        notes: Optional[str] = None,
        denial_reason: Optional[str] = None,
    ) -> dict:
        """
        Approve or deny a pending assessment.

        Returns
        -------
        dict with the updated ``assessment`` summary and the accrued
        ``payment`` (None when the reviewer has no fee configured).
        """
        if not assessment_id:
            raise InvalidRequestError("Assessment ID is required")
        try:
            verdict = Decision(decision)
        except ValueError:
            raise InvalidRequestError(
                'Invalid decision. Must be "approved" or "denied"'
            ) from None
        if verdict is Decision.DENIED and not denial_reason:
            raise InvalidRequestError("Denial reason is required when denying an assessment")

        reviewer = self._require_reviewer(reviewer_id)

        with self.store.transaction():
            record = self.store.get_assessment(assessment_id)
            if record.status is not AssessmentStatus.PENDING:
                raise InvalidStateError(f"Assessment has already been {record.status.value}")
            if verdict is Decision.APPROVED and record.is_auto_disqualified:
                raise InvalidStateError("Auto-disqualified assessments can only be denied")

            now = datetime.now(timezone.utc)
            record.status = AssessmentStatus(verdict.value)
            record.reviewer_id = reviewer.id
            record.reviewer_notes = notes or None
            record.denial_reason = denial_reason if verdict is Decision.DENIED else None
            record.decision_timestamp = now
            record.updated_at = now
            self.store.save_assessment(record)

            payment = self.payout_pipeline.accrue(reviewer, record.id, verdict)

            self.store.append_audit(AuditEntry(
                action="approve" if verdict is Decision.APPROVED else "deny",
                entity_type="assessment",
                entity_id=record.id,
                actor_id=reviewer.id,
                details={
                    "notes": notes,
                    "denialReason": record.denial_reason,
                    "paymentAmount": payment.amount if payment else 0,
                },
            ))

        log_pipeline_event(logger, "review", f"assessment {verdict.value}", {
            "assessment_id": record.id,
            "reviewer_id": reviewer.id,
        })

        return {
            "assessment": {
                "id": record.id,
                "status": record.status.value,
                "decision_timestamp": record.decision_timestamp,
            },
            "payment": {
                "amount": payment.amount,
                "cycle_id": payment.cycle_id,
            } if payment else None,
        }

    def mark_shipped(
        self,
        assessment_id: str,
        admin_id: str,
        tracking_number: Optional[str] = None,
    ) -> AssessmentRecord:
        """Move an approved assessment to shipped."""
        admin = self.store.get_reviewer(admin_id)
        if not admin.is_admin:
            raise PermissionDeniedError("Only admins can mark orders as shipped")

        with self.store.transaction():
            record = self.store.get_assessment(assessment_id)
            if record.status is not AssessmentStatus.APPROVED:
                raise InvalidStateError("Only approved assessments can be marked as shipped")

            now = datetime.now(timezone.utc)
            record.status = AssessmentStatus.SHIPPED
            record.shipped_at = now
            record.tracking_number = tracking_number or None
            record.updated_at = now
            self.store.save_assessment(record)

            self.store.append_audit(AuditEntry(
                action="ship",
                entity_type="assessment",
                entity_id=record.id,
                actor_id=admin.id,
                details={"trackingNumber": tracking_number},
            ))

        log_pipeline_event(logger, "review", "assessment shipped", {"assessment_id": record.id})
        return record

    # ── Helpers ─────────────────────────────────────────────────────────

    def _require_reviewer(self, reviewer_id: str) -> Reviewer:
        reviewer = self.store.get_reviewer(reviewer_id)
        if not reviewer.can_review:
            raise PermissionDeniedError(
                f"Reviewer {reviewer_id} is not approved and active"
            )
        return reviewer

    @staticmethod
    def _queue_entry(record: AssessmentRecord) -> dict:
        patient = record.section("patient_info")
        flags: List[dict] = record.flags()
        return {
            "id": record.id,
            "created_at": record.created_at,
            "patient_name": f"{patient.get('firstName', '')} {patient.get('lastName', '')}".strip(),
            "patient_email": patient.get("email"),
            "status": record.status.value,
            "is_auto_disqualified": record.is_auto_disqualified,
            "risk_flags": flags,
            "risk_summary": {
                "disqualifiers": sum(1 for f in flags if f.get("type") == FlagType.DISQUALIFIER.value),
                "cautions": sum(1 for f in flags if f.get("type") == FlagType.CAUTION.value),
            },
            "reviewer_id": record.reviewer_id,
            "decision_timestamp": record.decision_timestamp,
        }


def _patient_label(record: AssessmentRecord) -> str:
    patient = record.section("patient_info")
    return " ".join(
        str(patient.get(key) or "") for key in ("firstName", "lastName", "email")
    )


def _decode_risk_analysis(record: AssessmentRecord) -> dict:
    """Validate the stored flag blob and rebuild its summary counts."""
    analysis, errors = validate_risk_result({
        "flags": record.flags(),
        "isAutoDisqualified": record.is_auto_disqualified,
        "requiresReview": record.requires_review,
    })
    if analysis is None:
        raise InvalidStateError(
            f"Stored risk flags for assessment {record.id} are invalid: {'; '.join(errors)}"
        )
    return RiskAnalysisResult.from_flags(analysis.flags).to_dict()
