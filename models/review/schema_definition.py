"""
Intake Review – Workflow Records
=================================
Pydantic models for everything that happens after the risk engine runs:
  AssessmentRecord  – persisted submission (sections + risk output + decision)
  Reviewer          – licensed reviewer / admin account
  ReviewPayment     – fee accrued for one recorded decision
  PayoutCycle       – open/paid bucket of a reviewer's payments
  SystemSettings    – default fee and payout cadence
  AuditEntry        – append-only trail of workflow actions
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Enums ───────────────────────────────────────────────────────────────────


class AssessmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    SHIPPED = "shipped"


class Decision(str, Enum):
    APPROVED = "approved"
    DENIED = "denied"


class ReviewerRole(str, Enum):
    PHYSICIAN = "physician"
    ADMIN = "admin"


class ReviewerStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class CycleType(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class CycleStatus(str, Enum):
    OPEN = "open"
    PAID = "paid"


# ── Assessments ─────────────────────────────────────────────────────────────


SECTION_NAMES = (
    "patient_info",
    "medical_history",
    "medications",
    "sexual_health",
    "contraindications",
    "pt141_section",
    "oxytocin_section",
)


class AssessmentRecord(BaseModel):
    """A stored submission. Section and flag fields hold JSON strings."""
    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    patient_info: str = "{}"
    medical_history: str = "{}"
    medications: str = "{}"
    sexual_health: str = "{}"
    contraindications: str = "{}"
    pt141_section: str = "{}"
    oxytocin_section: str = "{}"

    consent_signed: bool = False
    signature_data: Optional[str] = None
    consent_timestamp: Optional[datetime] = None

    risk_flags: str = "[]"
    is_auto_disqualified: bool = False
    requires_review: bool = True
    status: AssessmentStatus = AssessmentStatus.PENDING

    reviewer_id: Optional[str] = None
    reviewer_notes: Optional[str] = None
    denial_reason: Optional[str] = None
    decision_timestamp: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    tracking_number: Optional[str] = None

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def section(self, name: str) -> Dict[str, Any]:
        return json.loads(getattr(self, name))

    def flags(self) -> List[Dict[str, Any]]:
        return json.loads(self.risk_flags)


# ── Reviewers & settings ────────────────────────────────────────────────────


class Reviewer(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    email: str
    license_number: Optional[str] = None
    role: ReviewerRole = ReviewerRole.PHYSICIAN
    status: ReviewerStatus = ReviewerStatus.PENDING
    is_active: bool = False
    fee_per_review: float = 0.0
    approved_at: Optional[datetime] = None
    approved_by_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)

    @property
    def is_admin(self) -> bool:
        return self.role is ReviewerRole.ADMIN

    @property
    def can_review(self) -> bool:
        return self.is_active and self.status is ReviewerStatus.APPROVED


class ReviewerRegistration(BaseModel):
    """Self-service registration request."""
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    license_number: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class SystemSettings(BaseModel):
    default_fee_per_review: float = 5.0
    payout_cycle_type: CycleType = CycleType.WEEKLY


class SettingsUpdate(BaseModel):
    default_fee_per_review: Optional[float] = Field(default=None, ge=0)
    payout_cycle_type: Optional[CycleType] = None


# ── Payouts ─────────────────────────────────────────────────────────────────


class ReviewPayment(BaseModel):
    id: str = Field(default_factory=_new_id)
    assessment_id: str
    reviewer_id: str
    amount: float
    decision: Decision
    cycle_id: str
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_now)


class PayoutCycle(BaseModel):
    id: str = Field(default_factory=_new_id)
    reviewer_id: str
    cycle_type: CycleType = CycleType.WEEKLY
    status: CycleStatus = CycleStatus.OPEN
    total_reviews: int = 0
    total_amount: float = 0.0
    paid_at: Optional[datetime] = None
    paid_by: Optional[str] = None
    payment_notes: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)


# ── Audit ───────────────────────────────────────────────────────────────────


class AuditEntry(BaseModel):
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    actor_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)
