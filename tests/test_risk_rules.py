"""Per-rule tests for the risk rule table."""
import pytest

from models.intake.questionnaire import QuestionnaireAnswers
from models.risk.rules import (
    DEFAULT_RULES,
    BloodPressureThresholds,
    HighBloodPressureRule,
    IndicatorRule,
    LowBloodPressureRule,
    build_rules,
)
from models.risk.schema_definition import FlagType, Severity

INDICATOR_CASES = [
    # (field, code, type, message)
    ("takes_nitrates", "NITRATE_USE", FlagType.DISQUALIFIER, "Patient uses nitrate medications"),
    ("doctor_advised_no_sex", "MEDICAL_RESTRICTION", FlagType.DISQUALIFIER,
     "Doctor has advised against sexual activity"),
    ("severe_cardiac_condition", "SEVERE_CARDIAC", FlagType.DISQUALIFIER,
     "Patient has severe/unstable cardiac condition"),
    ("is_pregnant", "PREGNANCY", FlagType.DISQUALIFIER,
     "Patient is pregnant - disqualified for PT-141 and Oxytocin"),
    ("has_heart_attack", "HEART_ATTACK_HISTORY", FlagType.CAUTION, "History of heart attack"),
    ("has_stroke", "STROKE_HISTORY", FlagType.CAUTION, "History of stroke or TIA"),
    ("has_eye_disorder", "NAION_RISK", FlagType.CAUTION,
     "History of eye disorder (potential NAION risk)"),
    ("takes_ssris", "SSRI_USE", FlagType.CAUTION, "Uses SSRIs or psychiatric medications"),
    ("has_priapism", "PRIAPISM_HISTORY", FlagType.CAUTION, "History of priapism"),
    ("has_kidney_disease", "KIDNEY_IMPAIRMENT", FlagType.CAUTION, "Kidney disease or impairment"),
    ("has_liver_disease", "LIVER_IMPAIRMENT", FlagType.CAUTION, "Liver disease or impairment"),
    ("has_heart_condition", "HEART_CONDITION", FlagType.CAUTION,
     "History of heart disease or condition"),
    ("takes_blood_pressure_meds", "BP_MEDICATION", FlagType.CAUTION,
     "Takes blood pressure medication"),
    ("is_breastfeeding", "BREASTFEEDING", FlagType.CAUTION, "Patient is breastfeeding"),
    ("oxytocin_allergy", "OXYTOCIN_ALLERGY", FlagType.CAUTION, "Known allergy to oxytocin"),
    ("uterine_conditions", "UTERINE_CONDITIONS", FlagType.CAUTION,
     "Has uterine conditions or prior uterine surgery"),
    ("has_diabetes", "DIABETES", FlagType.INFO, "Patient has diabetes"),
    ("trying_to_conceive", "TTC", FlagType.INFO, "Patient is trying to conceive"),
]

RULES_BY_CODE = {
    rule.code: rule for rule in DEFAULT_RULES if isinstance(rule, IndicatorRule)
}


@pytest.mark.parametrize("field,code,flag_type,message", INDICATOR_CASES)
def test_indicator_rule_fires_on_its_field(field, code, flag_type, message):
    rule = RULES_BY_CODE[code]
    flag = rule(QuestionnaireAnswers(**{field: True}))

    assert flag is not None
    assert flag.code == code
    assert flag.type is flag_type
    assert flag.severity is flag_type.severity
    assert flag.message == message


@pytest.mark.parametrize("field,code,flag_type,message", INDICATOR_CASES)
def test_indicator_rule_silent_when_unset(field, code, flag_type, message):
    assert RULES_BY_CODE[code](QuestionnaireAnswers()) is None


@pytest.mark.parametrize("code,field,detail_field,default", [
    ("NITRATE_USE", "takes_nitrates", "nitrate_details", "Nitrates specified"),
    ("SSRI_USE", "takes_ssris", "ssri_details", "SSRIs specified"),
    ("BP_MEDICATION", "takes_blood_pressure_meds", "blood_pressure_med_details",
     "BP meds specified"),
])
def test_detail_rules_carry_text_or_default(code, field, detail_field, default):
    rule = RULES_BY_CODE[code]

    with_detail = rule(QuestionnaireAnswers(**{field: True, detail_field: "named drug"}))
    without_detail = rule(QuestionnaireAnswers(**{field: True}))

    assert with_detail.details == "named drug"
    assert without_detail.details == default


def test_plain_indicators_have_no_details():
    flag = RULES_BY_CODE["HEART_CONDITION"](QuestionnaireAnswers(has_heart_condition=True))
    assert flag.details is None


def test_high_bp_rule_boundaries():
    rule = HighBloodPressureRule()

    assert rule(QuestionnaireAnswers(current_bp_systolic=150, current_bp_diastolic=95)) is None
    assert rule(QuestionnaireAnswers(current_bp_systolic=151)) is not None
    flag = rule(QuestionnaireAnswers(current_bp_systolic=120, current_bp_diastolic=96))
    assert flag.severity is Severity.WARNING


def test_low_bp_rule_boundaries():
    rule = LowBloodPressureRule()

    assert rule(QuestionnaireAnswers(current_bp_systolic=90, current_bp_diastolic=60)) is None
    assert rule(QuestionnaireAnswers(current_bp_systolic=89)) is not None
    assert rule(QuestionnaireAnswers(current_bp_diastolic=59)) is not None


def test_low_bp_rule_respects_thresholds():
    rule = LowBloodPressureRule(BloodPressureThresholds(low_systolic=100, low_diastolic=65))
    flag = rule(QuestionnaireAnswers(current_bp_systolic=95, current_bp_diastolic=70))

    assert flag.message == "Blood pressure low: 95/70"
    assert flag.details == "BP below 100/65 threshold"


def test_rule_table_length_and_tiers():
    rules = build_rules()
    assert len(rules) == 20
    assert isinstance(rules[4], HighBloodPressureRule)
    assert isinstance(rules[5], LowBloodPressureRule)


def test_thresholds_from_partial_config():
    thresholds = BloodPressureThresholds.from_config({"low": {"diastolic": 55}})
    assert thresholds == BloodPressureThresholds(low_diastolic=55)
    assert BloodPressureThresholds.from_config(None) == BloodPressureThresholds()
