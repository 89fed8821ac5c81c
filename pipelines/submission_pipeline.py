"""
Intake Review – Submission Pipeline
====================================
Pipeline: raw intake form → risk flag engine → stored assessment (pending).

The risk output is persisted verbatim next to the raw form sections; reviewers
see exactly what the engine produced at submission time.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from core.exceptions import InvalidRequestError
from core.logging_utils import log_pipeline_event
from core.store import InMemoryStore
from models.intake.questionnaire import QuestionnaireAnswers, split_sections
from models.review.schema_definition import AssessmentRecord, AssessmentStatus
from models.risk.risk_flag_engine import RiskFlagEngine

logger = logging.getLogger(__name__)


class SubmissionPipeline:
    """Evaluates and stores patient questionnaires."""

    def __init__(
        self,
        store: InMemoryStore,
        engine: Optional[RiskFlagEngine] = None,
    ):
        self.store = store
        self.engine = engine or RiskFlagEngine()

    def run(
        self,
        form: Any,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AssessmentRecord:
        """
        Evaluate a submitted form and store it as a pending assessment.

        Parameters
        ----------
        form : mapping
            Raw intake form as posted (camelCase keys).
        ip_address, user_agent : str, optional
            Client metadata recorded with the consent signature.

        Returns
        -------
        AssessmentRecord – the stored record.
        """
        if not isinstance(form, Mapping):
            raise InvalidRequestError("Assessment payload must be an object")

        answers = QuestionnaireAnswers.from_form(form)
        analysis = self.engine.evaluate(answers)

        sections = {
            name: json.dumps(values, default=str)
            for name, values in split_sections(form).items()
        }
        signature = form.get("signature")

        record = AssessmentRecord(
            **sections,
            consent_signed=True,
            signature_data=str(signature) if signature is not None else None,
            consent_timestamp=datetime.now(timezone.utc),
            risk_flags=json.dumps(analysis.to_dict()["flags"]),
            is_auto_disqualified=analysis.is_auto_disqualified,
            requires_review=analysis.requires_review,
            status=AssessmentStatus.PENDING,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.store.save_assessment(record)

        log_pipeline_event(logger, "submission", "assessment stored", {
            "assessment_id": record.id,
            "flags": analysis.codes(),
            "auto_disqualified": analysis.is_auto_disqualified,
        })
        return record
