"""
Intake Review – Risk Schema Definitions
========================================
Pydantic models for the risk flag engine output:
  RiskFlag            – one detected safety flag
  RiskSummary         – per-tier counts derived from the flags
  RiskAnalysisResult  – flags + auto-disqualification / review verdicts

Serialised field names match the persisted JSON blob read by the reviewer UI
(``isAutoDisqualified``, ``requiresReview``, ``totalFlags``).
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ── Enums ───────────────────────────────────────────────────────────────────


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class FlagType(str, Enum):
    DISQUALIFIER = "disqualifier"    # auto-fail, cannot proceed
    CAUTION = "caution"              # licensed reviewer must weigh in
    INFO = "info"                    # context only

    @property
    def severity(self) -> Severity:
        return _SEVERITY_BY_TYPE[self]


_SEVERITY_BY_TYPE = {
    FlagType.DISQUALIFIER: Severity.CRITICAL,
    FlagType.CAUTION: Severity.WARNING,
    FlagType.INFO: Severity.INFO,
}


# ── Output records ──────────────────────────────────────────────────────────


class RiskFlag(BaseModel):
    """A single safety flag raised by one rule."""
    model_config = ConfigDict(frozen=True)

    type: FlagType
    code: str
    message: str
    details: Optional[str] = None
    severity: Severity

    @model_validator(mode="after")
    def _check_pairing(self) -> "RiskFlag":
        if self.severity != self.type.severity:
            raise ValueError(
                f"{self.type.value} flags must have severity "
                f"'{self.type.severity.value}', got '{self.severity.value}'"
            )
        return self

    @classmethod
    def build(
        cls,
        flag_type: FlagType,
        code: str,
        message: str,
        details: Optional[str] = None,
    ) -> "RiskFlag":
        """Create a flag with the severity implied by its type."""
        return cls(
            type=flag_type,
            code=code,
            message=message,
            details=details,
            severity=flag_type.severity,
        )


class RiskSummary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_flags: int = Field(default=0, alias="totalFlags")
    disqualifiers: int = 0
    cautions: int = 0
    info: int = 0


class RiskAnalysisResult(BaseModel):
    """Complete output of the risk flag engine for one questionnaire."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    flags: List[RiskFlag] = Field(default_factory=list)
    is_auto_disqualified: bool = Field(default=False, alias="isAutoDisqualified")
    requires_review: bool = Field(default=True, alias="requiresReview")
    summary: RiskSummary = Field(default_factory=RiskSummary)

    @classmethod
    def from_flags(cls, flags: Sequence[RiskFlag]) -> "RiskAnalysisResult":
        """Derive verdicts and summary counts from an ordered flag list."""
        flags = list(flags)
        disqualifiers = sum(1 for f in flags if f.type is FlagType.DISQUALIFIER)
        cautions = sum(1 for f in flags if f.type is FlagType.CAUTION)
        info = sum(1 for f in flags if f.type is FlagType.INFO)

        return cls(
            flags=flags,
            is_auto_disqualified=disqualifiers > 0,
            # Clean questionnaires still go through a reviewer before approval
            requires_review=True,
            summary=RiskSummary(
                total_flags=len(flags),
                disqualifiers=disqualifiers,
                cautions=cautions,
                info=info,
            ),
        )

    def codes(self) -> List[str]:
        return [f.code for f in self.flags]

    def to_dict(self) -> dict:
        """JSON-ready dict using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict) -> "RiskAnalysisResult":
        return cls.model_validate(data)
