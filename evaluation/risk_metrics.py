"""
Intake Review – Risk Metrics
=============================
Compares risk flag engine output against labelled expectations.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


def flag_recall(predicted_codes: List[str], expected_codes: List[str]) -> float:
    """What fraction of expected flag codes were raised?"""
    if not expected_codes:
        return 1.0
    predicted = set(predicted_codes)
    hits = sum(1 for code in expected_codes if code in predicted)
    return hits / len(expected_codes)


def flag_precision(predicted_codes: List[str], expected_codes: List[str]) -> float:
    """What fraction of raised flag codes were expected?"""
    if not predicted_codes:
        return 1.0
    expected = set(expected_codes)
    hits = sum(1 for code in predicted_codes if code in expected)
    return hits / len(predicted_codes)


def verdict_accuracy(predicted: bool, expected: bool) -> bool:
    return predicted == expected


def risk_report(
    result: dict,
    expected_codes: Optional[List[str]] = None,
    expected_disqualified: Optional[bool] = None,
) -> Dict[str, Any]:
    """Quality report for one serialised ``RiskAnalysisResult``."""
    codes = [f.get("code", "") for f in result.get("flags", [])]
    report: Dict[str, Any] = {
        "predicted_codes": codes,
        "is_auto_disqualified": result.get("isAutoDisqualified"),
        "requires_review": result.get("requiresReview"),
        "num_flags": len(codes),
    }

    if expected_codes is not None:
        report["flag_recall"] = flag_recall(codes, expected_codes)
        report["flag_precision"] = flag_precision(codes, expected_codes)
        # Rule order is the display order, so exact order counts here
        report["exact_match"] = codes == list(expected_codes)

    if expected_disqualified is not None:
        report["disqualification_correct"] = verdict_accuracy(
            bool(result.get("isAutoDisqualified")), expected_disqualified
        )

    return report
