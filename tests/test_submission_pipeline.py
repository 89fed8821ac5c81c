"""Tests for storing submitted questionnaires."""
import json

import pytest

from conftest import make_form
from core.exceptions import InvalidRequestError, NotFoundError
from models.review.schema_definition import AssessmentStatus


def test_submission_persists_engine_output_verbatim(workflow):
    record = workflow.submit(
        make_form(takesNitrates=True, nitrateDetails="nitroglycerin", hasDiabetes=True),
        ip_address="10.0.0.1",
        user_agent="pytest",
    )

    stored = workflow.store.get_assessment(record.id)
    assert stored.status is AssessmentStatus.PENDING
    assert stored.is_auto_disqualified is True
    assert stored.requires_review is True
    assert stored.consent_signed is True
    assert stored.signature_data == "Jane Doe"
    assert stored.ip_address == "10.0.0.1"
    assert stored.user_agent == "pytest"

    flags = json.loads(stored.risk_flags)
    assert [f["code"] for f in flags] == ["NITRATE_USE", "DIABETES"]
    assert flags[0]["details"] == "nitroglycerin"
    assert "details" not in flags[1]


def test_submission_splits_sections(workflow):
    record = workflow.submit(make_form(
        hasHeartCondition=True,
        currentBPSystolic="145",
        nausea=True,
    ))

    assert record.section("patient_info") == {
        "firstName": "Jane", "lastName": "Doe", "email": "jane@example.com",
    }
    assert record.section("medical_history") == {"hasHeartCondition": True}
    assert record.section("contraindications") == {"currentBPSystolic": "145"}
    assert record.section("pt141_section") == {"nausea": True}


def test_clean_submission_is_pending_review(workflow):
    record = workflow.submit(make_form(currentBPSystolic="120", currentBPDiastolic="80"))

    assert record.flags() == []
    assert record.requires_review is True
    assert record.is_auto_disqualified is False


def test_submission_uses_configured_thresholds(tmp_path):
    from core.workflow import AssessmentWorkflow

    cfg = tmp_path / "intake.yaml"
    cfg.write_text("risk:\n  blood_pressure:\n    high: {systolic: 130}\n")
    workflow = AssessmentWorkflow(config_path=str(cfg))

    record = workflow.submit(make_form(currentBPSystolic="135", currentBPDiastolic="80"))
    assert [f["code"] for f in record.flags()] == ["HIGH_BP"]


def test_overlong_reading_is_stored_as_high_bp(workflow):
    record = workflow.submit(make_form(currentBPSystolic="1" * 5000, currentBPDiastolic="80"))

    flags = record.flags()
    assert [f["code"] for f in flags] == ["HIGH_BP"]
    assert flags[0]["message"] == "Blood pressure elevated: Infinity/80"


@pytest.mark.parametrize("payload", [None, "form", ["takesNitrates"]])
def test_non_object_payload_rejected(workflow, payload):
    with pytest.raises(InvalidRequestError):
        workflow.submit(payload)


def test_unknown_assessment(workflow):
    with pytest.raises(NotFoundError):
        workflow.store.get_assessment("missing")
