"""
Intake Review – Risk Rule Table
================================
Each rule maps a ``QuestionnaireAnswers`` to at most one ``RiskFlag``.
The engine runs them in table order; that order is the order flags are shown
to reviewers, so new rules are appended within their tier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple

from core.validation import format_reading
from models.intake.questionnaire import QuestionnaireAnswers
from models.risk.schema_definition import FlagType, RiskFlag

Rule = Callable[[QuestionnaireAnswers], Optional[RiskFlag]]


@dataclass(frozen=True)
class BloodPressureThresholds:
    """Strict limits: a reading must exceed / fall below these to flag."""
    high_systolic: int = 150
    high_diastolic: int = 95
    low_systolic: int = 90
    low_diastolic: int = 60

    @classmethod
    def from_config(cls, cfg: Optional[Mapping[str, Any]]) -> "BloodPressureThresholds":
        cfg = cfg or {}
        high = cfg.get("high", {}) or {}
        low = cfg.get("low", {}) or {}
        default = cls()
        return cls(
            high_systolic=int(high.get("systolic", default.high_systolic)),
            high_diastolic=int(high.get("diastolic", default.high_diastolic)),
            low_systolic=int(low.get("systolic", default.low_systolic)),
            low_diastolic=int(low.get("diastolic", default.low_diastolic)),
        )


@dataclass(frozen=True)
class IndicatorRule:
    """Flags when a single yes/no answer is set."""
    code: str
    flag_type: FlagType
    field: str
    message: str
    detail_field: Optional[str] = None
    default_detail: Optional[str] = None

    def __call__(self, answers: QuestionnaireAnswers) -> Optional[RiskFlag]:
        if not getattr(answers, self.field):
            return None
        details = None
        if self.detail_field:
            details = getattr(answers, self.detail_field) or self.default_detail
        return RiskFlag.build(self.flag_type, self.code, self.message, details)


@dataclass(frozen=True)
class HighBloodPressureRule:
    thresholds: BloodPressureThresholds = BloodPressureThresholds()
    code: str = "HIGH_BP"

    def __call__(self, answers: QuestionnaireAnswers) -> Optional[RiskFlag]:
        systolic = answers.current_bp_systolic
        diastolic = answers.current_bp_diastolic
        t = self.thresholds
        # NaN compares false both ways, so a missing reading never flags
        if not (systolic > t.high_systolic or diastolic > t.high_diastolic):
            return None
        return RiskFlag.build(
            FlagType.CAUTION,
            self.code,
            f"Blood pressure elevated: {format_reading(systolic)}/{format_reading(diastolic)}",
            f"BP above {t.high_systolic}/{t.high_diastolic} threshold",
        )


@dataclass(frozen=True)
class LowBloodPressureRule:
    thresholds: BloodPressureThresholds = BloodPressureThresholds()
    code: str = "LOW_BP"

    def __call__(self, answers: QuestionnaireAnswers) -> Optional[RiskFlag]:
        systolic = answers.current_bp_systolic
        diastolic = answers.current_bp_diastolic
        t = self.thresholds
        if not (systolic < t.low_systolic or diastolic < t.low_diastolic):
            return None
        return RiskFlag.build(
            FlagType.CAUTION,
            self.code,
            f"Blood pressure low: {format_reading(systolic)}/{format_reading(diastolic)}",
            f"BP below {t.low_systolic}/{t.low_diastolic} threshold",
        )


# ── Rule table ──────────────────────────────────────────────────────────────

DISQUALIFIER_RULES: Tuple[Rule, ...] = (
    IndicatorRule(
        "NITRATE_USE", FlagType.DISQUALIFIER, "takes_nitrates",
        "Patient uses nitrate medications",
        detail_field="nitrate_details", default_detail="Nitrates specified",
    ),
    IndicatorRule(
        "MEDICAL_RESTRICTION", FlagType.DISQUALIFIER, "doctor_advised_no_sex",
        "Doctor has advised against sexual activity",
    ),
    IndicatorRule(
        "SEVERE_CARDIAC", FlagType.DISQUALIFIER, "severe_cardiac_condition",
        "Patient has severe/unstable cardiac condition",
    ),
    # Applies to every treatment track, not only the two it rules out
    IndicatorRule(
        "PREGNANCY", FlagType.DISQUALIFIER, "is_pregnant",
        "Patient is pregnant - disqualified for PT-141 and Oxytocin",
    ),
)

HISTORY_CAUTION_RULES: Tuple[Rule, ...] = (
    IndicatorRule(
        "HEART_ATTACK_HISTORY", FlagType.CAUTION, "has_heart_attack",
        "History of heart attack",
    ),
    IndicatorRule(
        "STROKE_HISTORY", FlagType.CAUTION, "has_stroke",
        "History of stroke or TIA",
    ),
    IndicatorRule(
        "NAION_RISK", FlagType.CAUTION, "has_eye_disorder",
        "History of eye disorder (potential NAION risk)",
    ),
    IndicatorRule(
        "SSRI_USE", FlagType.CAUTION, "takes_ssris",
        "Uses SSRIs or psychiatric medications",
        detail_field="ssri_details", default_detail="SSRIs specified",
    ),
    IndicatorRule(
        "PRIAPISM_HISTORY", FlagType.CAUTION, "has_priapism",
        "History of priapism",
    ),
    IndicatorRule(
        "KIDNEY_IMPAIRMENT", FlagType.CAUTION, "has_kidney_disease",
        "Kidney disease or impairment",
    ),
    IndicatorRule(
        "LIVER_IMPAIRMENT", FlagType.CAUTION, "has_liver_disease",
        "Liver disease or impairment",
    ),
    IndicatorRule(
        "HEART_CONDITION", FlagType.CAUTION, "has_heart_condition",
        "History of heart disease or condition",
    ),
    IndicatorRule(
        "BP_MEDICATION", FlagType.CAUTION, "takes_blood_pressure_meds",
        "Takes blood pressure medication",
        detail_field="blood_pressure_med_details", default_detail="BP meds specified",
    ),
    IndicatorRule(
        "BREASTFEEDING", FlagType.CAUTION, "is_breastfeeding",
        "Patient is breastfeeding",
    ),
    IndicatorRule(
        "OXYTOCIN_ALLERGY", FlagType.CAUTION, "oxytocin_allergy",
        "Known allergy to oxytocin",
    ),
    IndicatorRule(
        "UTERINE_CONDITIONS", FlagType.CAUTION, "uterine_conditions",
        "Has uterine conditions or prior uterine surgery",
    ),
)

INFO_RULES: Tuple[Rule, ...] = (
    IndicatorRule("DIABETES", FlagType.INFO, "has_diabetes", "Patient has diabetes"),
    IndicatorRule("TTC", FlagType.INFO, "trying_to_conceive", "Patient is trying to conceive"),
)


def build_rules(thresholds: Optional[BloodPressureThresholds] = None) -> Tuple[Rule, ...]:
    """Full ordered rule table for the given blood-pressure limits."""
    thresholds = thresholds or BloodPressureThresholds()
    return (
        DISQUALIFIER_RULES
        + (HighBloodPressureRule(thresholds), LowBloodPressureRule(thresholds))
        + HISTORY_CAUTION_RULES
        + INFO_RULES
    )


DEFAULT_RULES = build_rules()
