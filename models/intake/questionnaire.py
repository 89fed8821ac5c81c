"""
Intake Review – Questionnaire Model
====================================
Immutable view of the patient's answers that the risk flag engine consumes.

The intake form posts loosely typed JSON: booleans may arrive as strings or
numbers and the blood-pressure readings as free text. Everything is coerced
here so that building a ``QuestionnaireAnswers`` from a mapping never fails.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.validation import NAN, js_truthy, parse_int_like

_INDICATOR_FIELDS = (
    "takes_nitrates",
    "doctor_advised_no_sex",
    "severe_cardiac_condition",
    "is_pregnant",
    "has_heart_attack",
    "has_stroke",
    "has_eye_disorder",
    "takes_ssris",
    "has_priapism",
    "has_kidney_disease",
    "has_liver_disease",
    "has_heart_condition",
    "takes_blood_pressure_meds",
    "is_breastfeeding",
    "oxytocin_allergy",
    "uterine_conditions",
    "has_diabetes",
    "trying_to_conceive",
)

_DETAIL_FIELDS = ("nitrate_details", "ssri_details", "blood_pressure_med_details")

_READING_FIELDS = ("current_bp_systolic", "current_bp_diastolic")


class DetailedAnswer(BaseModel):
    """A yes/no answer with its optional free-text elaboration."""
    model_config = ConfigDict(frozen=True)

    present: bool = False
    detail: Optional[str] = None


class QuestionnaireAnswers(BaseModel):
    """Patient-reported fields relevant to contraindication screening."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    # Disqualifying
    takes_nitrates: bool = Field(default=False, alias="takesNitrates")
    nitrate_details: Optional[str] = Field(default=None, alias="nitrateDetails")
    doctor_advised_no_sex: bool = Field(default=False, alias="doctorAdvisedNoSex")
    severe_cardiac_condition: bool = Field(default=False, alias="severeCardiacCondition")
    is_pregnant: bool = Field(default=False, alias="isPregnant")

    # Vitals (int when parsed, NaN otherwise)
    current_bp_systolic: float = Field(default=NAN, alias="currentBPSystolic")
    current_bp_diastolic: float = Field(default=NAN, alias="currentBPDiastolic")

    # Caution
    has_heart_attack: bool = Field(default=False, alias="hasHeartAttack")
    has_stroke: bool = Field(default=False, alias="hasStroke")
    has_eye_disorder: bool = Field(default=False, alias="hasEyeDisorder")
    takes_ssris: bool = Field(default=False, alias="takesSSRIs")
    ssri_details: Optional[str] = Field(default=None, alias="ssriDetails")
    has_priapism: bool = Field(default=False, alias="hasPriapism")
    has_kidney_disease: bool = Field(default=False, alias="hasKidneyDisease")
    has_liver_disease: bool = Field(default=False, alias="hasLiverDisease")
    has_heart_condition: bool = Field(default=False, alias="hasHeartCondition")
    takes_blood_pressure_meds: bool = Field(default=False, alias="takesBloodPressureMeds")
    blood_pressure_med_details: Optional[str] = Field(default=None, alias="bloodPressureMedDetails")
    is_breastfeeding: bool = Field(default=False, alias="isBreastfeeding")
    oxytocin_allergy: bool = Field(default=False, alias="oxytocinAllergy")
    uterine_conditions: bool = Field(default=False, alias="uterineConditions")

    # Informational
    has_diabetes: bool = Field(default=False, alias="hasDiabetes")
    trying_to_conceive: bool = Field(default=False, alias="tryingToConceive")

    @field_validator(*_INDICATOR_FIELDS, mode="before")
    @classmethod
    def _coerce_indicator(cls, v: Any) -> bool:
        return js_truthy(v)

    @field_validator(*_DETAIL_FIELDS, mode="before")
    @classmethod
    def _coerce_detail(cls, v: Any) -> Optional[str]:
        if not js_truthy(v):
            return None
        return v if isinstance(v, str) else str(v)

    @field_validator(*_READING_FIELDS, mode="before")
    @classmethod
    def _coerce_reading(cls, v: Any) -> float:
        return parse_int_like(v)

    @classmethod
    def from_form(cls, data: Any) -> "QuestionnaireAnswers":
        """Build from a raw form payload; non-mapping payloads read as empty."""
        if not isinstance(data, Mapping):
            return cls()
        return cls.model_validate({k: v for k, v in data.items() if isinstance(k, str)})

    # ── Detail pairs ────────────────────────────────────────────────────

    @property
    def nitrates(self) -> DetailedAnswer:
        return _paired(self.takes_nitrates, self.nitrate_details)

    @property
    def ssris(self) -> DetailedAnswer:
        return _paired(self.takes_ssris, self.ssri_details)

    @property
    def blood_pressure_meds(self) -> DetailedAnswer:
        return _paired(self.takes_blood_pressure_meds, self.blood_pressure_med_details)


def _paired(present: bool, detail: Optional[str]) -> DetailedAnswer:
    return DetailedAnswer(present=present, detail=detail if present else None)


# ── Form sections ───────────────────────────────────────────────────────────

# Raw form keys persisted under each section of an assessment record.
FORM_SECTIONS: Dict[str, tuple] = {
    "patient_info": (
        "firstName", "lastName", "email", "phone", "dateOfBirth", "gender",
        "address", "city", "state", "zipCode",
    ),
    "medical_history": (
        "hasHeartCondition", "hasHighBloodPressure", "hasLowBloodPressure",
        "hasStroke", "hasHeartAttack", "hasDiabetes", "hasKidneyDisease",
        "hasLiverDisease", "hasEyeDisorder", "hasPriapism", "otherConditions",
        "surgeries", "allergies",
    ),
    "medications": (
        "takesNitrates", "nitrateDetails", "takesBloodPressureMeds",
        "bloodPressureMedDetails", "takesSSRIs", "ssriDetails", "otherMedDetails",
    ),
    "sexual_health": (
        "experiencesED", "edFrequency", "edDuration", "lowDesire",
        "desireFrequency", "relationshipStatus", "partnerAware", "previousTreatments",
    ),
    "contraindications": (
        "doctorAdvisedNoSex", "severeCardiacCondition", "currentBPSystolic",
        "currentBPDiastolic", "isPregnant", "isBreastfeeding", "tryingToConceive",
    ),
    "pt141_section": ("nausea", "flushing", "headaches", "pt141Conditions"),
    "oxytocin_section": ("oxytocinAllergy", "uterineConditions", "oxytocinConditions"),
}


def split_sections(form: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Group raw form keys by section, keeping only keys the form supplied."""
    return {
        section: {key: form[key] for key in keys if key in form}
        for section, keys in FORM_SECTIONS.items()
    }
