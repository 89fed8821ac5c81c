"""Shared fixtures for the intake review tests."""
import pytest

from core.workflow import AssessmentWorkflow


def make_form(**answers):
    """Intake form with patient details and the given questionnaire answers."""
    form = {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane@example.com",
        "signature": "Jane Doe",
    }
    form.update(answers)
    return form


@pytest.fixture
def workflow() -> AssessmentWorkflow:
    return AssessmentWorkflow()


@pytest.fixture
def admin(workflow):
    return workflow.reviewers.bootstrap_admin("Admin User", "admin@example.com")


@pytest.fixture
def reviewer(workflow, admin):
    pending = workflow.reviewers.register("Dr. Sarah Mitchell", "Doctor@Example.com", "MD-1")
    return workflow.reviewers.approve(pending.id, admin.id)
