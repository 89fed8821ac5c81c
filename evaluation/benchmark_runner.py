"""
Intake Review – Benchmark Runner
=================================
Runs the risk flag engine across labelled questionnaires and aggregates
rule-regression metrics.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from evaluation.risk_metrics import risk_report
from models.risk.risk_flag_engine import RiskFlagEngine

logger = logging.getLogger(__name__)


def load_test_cases(path: str) -> List[dict]:
    """Load labelled cases from a JSON file."""
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, list):
        return data
    if "cases" in data:
        return data["cases"]
    raise ValueError(f"Expected a list or {{cases: [...]}} in {path}")


def run_benchmark(
    test_cases: List[dict],
    engine: Optional[RiskFlagEngine] = None,
    verbose: bool = True,
) -> dict:
    """
    Evaluate every case and collect metrics.

    Parameters
    ----------
    test_cases : list[dict]
        Each case should have:
          - "input": dict (raw questionnaire)
          - "expected_codes": list[str] (optional, in rule order)
          - "expected_disqualified": bool (optional)
    engine : RiskFlagEngine, optional
        Defaults to an engine with standard thresholds.
    verbose : bool
        Log per-case results.

    Returns
    -------
    dict with aggregate metrics.
    """
    engine = engine or RiskFlagEngine()
    results = []

    for i, case in enumerate(test_cases):
        case_id = case.get("id", f"case_{i}")
        analysis = engine.evaluate(case.get("input", {})).to_dict()
        report = risk_report(
            analysis,
            expected_codes=case.get("expected_codes"),
            expected_disqualified=case.get("expected_disqualified"),
        )
        report["case_id"] = case_id
        results.append(report)

        if verbose:
            logger.info(
                "Case %s: flags=%s disqualified=%s",
                case_id, report["predicted_codes"], report["is_auto_disqualified"],
            )

    aggregate = _compute_aggregate(results)
    aggregate["total_cases"] = len(test_cases)
    aggregate["per_case_results"] = results
    return aggregate


def _compute_aggregate(results: List[dict]) -> dict:
    if not results:
        return {}

    def _mean(lst):
        return round(sum(lst) / len(lst), 4) if lst else None

    recalls = [r["flag_recall"] for r in results if "flag_recall" in r]
    precisions = [r["flag_precision"] for r in results if "flag_precision" in r]
    exact = [float(r["exact_match"]) for r in results if "exact_match" in r]
    verdicts = [
        float(r["disqualification_correct"])
        for r in results if "disqualification_correct" in r
    ]

    return {
        "mean_flag_recall": _mean(recalls),
        "mean_flag_precision": _mean(precisions),
        "exact_order_accuracy": _mean(exact),
        "disqualification_accuracy": _mean(verdicts),
    }
