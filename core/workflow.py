"""
Intake Review – Workflow
=========================
Top-level entrypoint: loads the YAML config and wires the risk flag engine,
the store and the submission / review / roster / payout pipelines together.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from core.store import InMemoryStore
from models.review.schema_definition import AssessmentRecord, CycleType, SystemSettings
from models.risk.risk_flag_engine import RiskFlagEngine
from pipelines.payout_pipeline import PayoutPipeline
from pipelines.review_pipeline import ReviewPipeline
from pipelines.reviewer_pipeline import ReviewerPipeline
from pipelines.submission_pipeline import SubmissionPipeline

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "intake_config.yaml"


def load_config(config_path: Optional[str] = None) -> dict:
    """Read the intake config; a missing file yields an empty config."""
    path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
    if not path.exists():
        logger.warning("Intake config not found at %s – using defaults", path)
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


class AssessmentWorkflow:
    """One-call entrypoint for the intake and review workflow."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        store: Optional[InMemoryStore] = None,
    ):
        self.config: dict = load_config(config_path)

        self.engine = RiskFlagEngine.from_config(self.config)
        self.store = store or InMemoryStore(self._build_settings())
        logger.info(
            "Risk engine thresholds: high %d/%d, low %d/%d",
            self.engine.thresholds.high_systolic,
            self.engine.thresholds.high_diastolic,
            self.engine.thresholds.low_systolic,
            self.engine.thresholds.low_diastolic,
        )

        self.submissions = SubmissionPipeline(self.store, engine=self.engine)
        self.payouts = PayoutPipeline(self.store)
        self.reviews = ReviewPipeline(self.store, payout_pipeline=self.payouts)
        self.reviewers = ReviewerPipeline(self.store)

    def _build_settings(self) -> SystemSettings:
        w = self.config.get("workflow", {}) or {}
        defaults = SystemSettings()
        return SystemSettings(
            default_fee_per_review=float(
                w.get("default_fee_per_review", defaults.default_fee_per_review)
            ),
            payout_cycle_type=CycleType(
                w.get("payout_cycle_type", defaults.payout_cycle_type.value)
            ),
        )

    # ── Public API ──────────────────────────────────────────────────────

    def submit(self, form: Any, **client: Any) -> AssessmentRecord:
        """Evaluate and store a patient questionnaire."""
        return self.submissions.run(form, **client)
