"""
Intake Review – Risk Flag Engine
=================================
Deterministic classifier that turns questionnaire answers into safety flags,
an auto-disqualification verdict and a review-required verdict.

The engine is a pure fold over the rule table: no I/O, no logging and no state
kept between calls, so it is safe to share across threads and to re-run on
retries.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

from models.intake.questionnaire import QuestionnaireAnswers
from models.risk.rules import BloodPressureThresholds, Rule, build_rules
from models.risk.schema_definition import RiskAnalysisResult


class RiskFlagEngine:
    """Evaluates a questionnaire against an ordered rule table."""

    def __init__(
        self,
        thresholds: Optional[BloodPressureThresholds] = None,
        rules: Optional[Iterable[Rule]] = None,
    ):
        self.thresholds = thresholds or BloodPressureThresholds()
        self.rules = tuple(rules) if rules is not None else build_rules(self.thresholds)

    @classmethod
    def from_config(cls, config: Optional[dict] = None) -> "RiskFlagEngine":
        """Build an engine from the ``risk`` section of a loaded intake config."""
        risk_cfg = (config or {}).get("risk", {}) or {}
        return cls(BloodPressureThresholds.from_config(risk_cfg.get("blood_pressure")))

    def evaluate(self, answers: Union[QuestionnaireAnswers, Any]) -> RiskAnalysisResult:
        """
        Classify one questionnaire.

        Parameters
        ----------
        answers : QuestionnaireAnswers or mapping
            Raw form mappings are coerced; anything else reads as an empty
            questionnaire.

        Returns
        -------
        RiskAnalysisResult – flags in rule order plus derived verdicts.
        """
        if not isinstance(answers, QuestionnaireAnswers):
            answers = QuestionnaireAnswers.from_form(answers)

        flags = []
        for rule in self.rules:
            flag = rule(answers)
            if flag is not None:
                flags.append(flag)

        return RiskAnalysisResult.from_flags(flags)

_default_engine = RiskFlagEngine()

def evaluate(answers: Union[QuestionnaireAnswers, Any]) -> RiskAnalysisResult:
    """Evaluate with the default 150/95 – 90/60 blood-pressure thresholds."""
    return _default_engine.evaluate(answers)
