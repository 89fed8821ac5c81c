"""
Intake Review – Reviewer Roster Pipeline
=========================================
Registration and admin management of licensed reviewers, plus the system
settings that seed new reviewers' fees.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import datetime, timezone
from typing import Any, List, Optional

from core.exceptions import InvalidRequestError, InvalidStateError, PermissionDeniedError
from core.logging_utils import log_pipeline_event
from core.store import InMemoryStore
from core.validation import (
    parse_float_like,
    validate_registration,
    validate_settings_update,
)
from models.review.schema_definition import (
    AuditEntry,
    Reviewer,
    ReviewerRole,
    ReviewerStatus,
    SystemSettings,
)

logger = logging.getLogger(__name__)


class ReviewerPipeline:
    """Reviewer accounts and system settings."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    # ── Registration ────────────────────────────────────────────────────

    def register(
        self,
        name: str,
        email: str,
        license_number: Optional[str] = None,
    ) -> Reviewer:
        """Create a pending, inactive reviewer awaiting admin approval."""
        request, errors = validate_registration({
            "name": name,
            "email": email,
            "license_number": license_number,
        })
        if request is None:
            raise InvalidRequestError("; ".join(errors))

        with self.store.transaction():
            if self.store.find_reviewer_by_email(request.email) is not None:
                raise InvalidRequestError("An account with this email already exists")
            reviewer = Reviewer(
                name=request.name,
                email=request.email,
                license_number=request.license_number or None,
                fee_per_review=self.store.get_settings().default_fee_per_review,
            )
            self.store.save_reviewer(reviewer)

        log_pipeline_event(logger, "roster", "reviewer registered", {
            "reviewer_id": reviewer.id,
            "email": reviewer.email,
        })
        return reviewer

    def bootstrap_admin(self, name: str, email: str) -> Reviewer:
        """Create (or return) an approved, active admin account."""
        with self.store.transaction():
            existing = self.store.find_reviewer_by_email(email)
            if existing is not None:
                return existing
            admin = Reviewer(
                name=name,
                email=email.lower(),
                role=ReviewerRole.ADMIN,
                status=ReviewerStatus.APPROVED,
                is_active=True,
                approved_at=datetime.now(timezone.utc),
            )
            self.store.save_reviewer(admin)
        logger.info("Admin account %s created", admin.email)
        return admin

    # ── Admin actions ───────────────────────────────────────────────────

    def approve(self, reviewer_id: str, admin_id: str) -> Reviewer:
        admin = self._require_admin(admin_id)
        with self.store.transaction():
            reviewer = self.store.get_reviewer(reviewer_id)
            reviewer.status = ReviewerStatus.APPROVED
            reviewer.is_active = True
            reviewer.approved_at = datetime.now(timezone.utc)
            reviewer.approved_by_id = admin.id
            reviewer.fee_per_review = self.store.get_settings().default_fee_per_review
            self.store.save_reviewer(reviewer)
            self._audit("approve_physician", reviewer.id, admin.id, {"approvedReviewer": reviewer.email})
        log_pipeline_event(logger, "roster", "reviewer approved", {"reviewer_id": reviewer.id})
        return reviewer

    def deny(self, reviewer_id: str, admin_id: str) -> Reviewer:
        admin = self._require_admin(admin_id)
        with self.store.transaction():
            reviewer = self.store.get_reviewer(reviewer_id)
            if reviewer.status is ReviewerStatus.APPROVED:
                raise InvalidStateError("Approved reviewers must be deactivated, not denied")
            reviewer.status = ReviewerStatus.DENIED
            reviewer.is_active = False
            self.store.save_reviewer(reviewer)
            self._audit("deny_physician", reviewer.id, admin.id, {"deniedReviewer": reviewer.email})
        log_pipeline_event(logger, "roster", "reviewer denied", {"reviewer_id": reviewer.id})
        return reviewer

    def set_active(self, reviewer_id: str, admin_id: str, is_active: bool) -> Reviewer:
        admin = self._require_admin(admin_id)
        if is_active is None:
            raise InvalidRequestError("is_active is required")
        with self.store.transaction():
            reviewer = self.store.get_reviewer(reviewer_id)
            reviewer.is_active = bool(is_active)
            self.store.save_reviewer(reviewer)
            action = "activate_physician" if reviewer.is_active else "deactivate_physician"
            self._audit(action, reviewer.id, admin.id, {"reviewerEmail": reviewer.email})
        return reviewer

    def update_fee(self, reviewer_id: str, admin_id: str, fee_per_review: Any) -> Reviewer:
        admin = self._require_admin(admin_id)
        fee = parse_float_like(fee_per_review)
        if not math.isfinite(fee) or fee < 0:
            raise InvalidRequestError("Invalid fee amount")
        with self.store.transaction():
            reviewer = self.store.get_reviewer(reviewer_id)
            reviewer.fee_per_review = fee
            self.store.save_reviewer(reviewer)
            self._audit("update_fee", reviewer.id, admin.id, {"newFee": fee})
        return reviewer

    def list_reviewers(
        self,
        admin_id: str,
        status: Optional[ReviewerStatus] = None,
    ) -> List[dict]:
        """Roster newest first, with each reviewer's decision and payment counts."""
        self._require_admin(admin_id)
        if status is not None:
            status = ReviewerStatus(status)
        reviewers = [r for r in self.store.list_reviewers() if status is None or r.status is status]

        assessments = Counter(a.reviewer_id for a in self.store.list_assessments() if a.reviewer_id)
        payments = Counter(p.reviewer_id for p in self.store.list_payments())

        return [
            {
                **r.model_dump(),
                "assessment_count": assessments[r.id],
                "payment_count": payments[r.id],
            }
            for r in sorted(reviewers, key=lambda r: r.created_at, reverse=True)
        ]

    # ── Settings ────────────────────────────────────────────────────────

    def get_settings(self, admin_id: str) -> SystemSettings:
        self._require_admin(admin_id)
        return self.store.get_settings()

    def update_settings(self, admin_id: str, **changes: Any) -> SystemSettings:
        admin = self._require_admin(admin_id)
        if "default_fee_per_review" in changes and changes["default_fee_per_review"] is not None:
            changes["default_fee_per_review"] = parse_float_like(changes["default_fee_per_review"])
            if not math.isfinite(changes["default_fee_per_review"]):
                raise InvalidRequestError("Invalid default fee amount")

        update, errors = validate_settings_update(changes)
        if update is None:
            raise InvalidRequestError("; ".join(errors))

        applied = update.model_dump(exclude_none=True)
        with self.store.transaction():
            settings = self.store.get_settings().model_copy(update=applied)
            self.store.save_settings(settings)
            self.store.append_audit(AuditEntry(
                action="update_settings",
                entity_type="system",
                actor_id=admin.id,
                details=update.model_dump(mode="json", exclude_none=True),
            ))
        log_pipeline_event(logger, "roster", "settings updated", applied)
        return settings

    # ── Helpers ─────────────────────────────────────────────────────────

    def _require_admin(self, admin_id: str) -> Reviewer:
        admin = self.store.get_reviewer(admin_id)
        if not admin.is_admin:
            raise PermissionDeniedError("Admin access required")
        return admin

    def _audit(self, action: str, reviewer_id: str, admin_id: str, details: dict) -> None:
        self.store.append_audit(AuditEntry(
            action=action,
            entity_type="physician",
            entity_id=reviewer_id,
            actor_id=admin_id,
            details=details,
        ))
