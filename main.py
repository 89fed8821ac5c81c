#!/usr/bin/env python3
"""
Intake Review – Main Entrypoint
================================
Usage:
    python main.py questionnaire.json
    python main.py data/samples/sample_questionnaires.json --json
    python main.py data/samples/sample_questionnaires.json --benchmark

Importable convenience function:
    from main import run_risk_check
    result = run_risk_check(form_dict)
"""

from __future__ import annotations

import argparse
import json
import os
import sys

from dotenv import load_dotenv
load_dotenv(override=True)

from core.logging_utils import setup_logging
from core.workflow import load_config
from evaluation.benchmark_runner import load_test_cases, run_benchmark
from models.risk.risk_flag_engine import RiskFlagEngine

_engine: RiskFlagEngine | None = None


def _get_engine(config_path: str | None = None) -> RiskFlagEngine:
    global _engine
    if _engine is None:
        _engine = RiskFlagEngine.from_config(load_config(config_path))
    return _engine


def run_risk_check(form: dict, config_path: str | None = None) -> dict:
    """
    Evaluate one questionnaire and return the serialised risk analysis.

    Returns
    -------
    dict with keys: flags, isAutoDisqualified, requiresReview, summary
    """
    return _get_engine(config_path).evaluate(form).to_dict()


# ── Presentation helpers ────────────────────────────────────────────────────

def print_result(result: dict, label: str = ""):
    """Pretty-print a risk analysis to stdout."""
    COLORS = {"critical": "\033[91m", "warning": "\033[93m", "info": "\033[94m"}
    RESET = "\033[0m"

    summary = result.get("summary", {})
    print(f"\n{'='*60}")
    print(f"  RISK ANALYSIS  {('|  ' + label) if label else ''}")
    print(f"{'='*60}")
    print(f"  Auto-disqualified: {result.get('isAutoDisqualified')}")
    print(f"  Requires review:   {result.get('requiresReview')}")
    print(
        f"  Flags: {summary.get('totalFlags', 0)} "
        f"({summary.get('disqualifiers', 0)} disqualifier, "
        f"{summary.get('cautions', 0)} caution, {summary.get('info', 0)} info)"
    )
    print(f"{'─'*60}")

    for flag in result.get("flags", []):
        color = COLORS.get(flag.get("severity"), "")
        print(f"  {color}[{flag['type']}] {flag['code']}{RESET}: {flag['message']}")
        if flag.get("details"):
            print(f"       → {flag['details']}")

    print(f"{'='*60}\n")


def main():
    parser = argparse.ArgumentParser(description="Intake questionnaire risk check")
    parser.add_argument("file", help="JSON questionnaire, list of cases or {cases: [...]}")
    parser.add_argument("--json", action="store_true", help="Print serialised results")
    parser.add_argument("--benchmark", "-b", action="store_true", help="Score labelled cases")
    parser.add_argument("--config", "-c", help="Path to intake config YAML")

    args = parser.parse_args()

    log_cfg = load_config(args.config).get("logging", {}) or {}
    setup_logging(
        level=os.environ.get("LOG_LEVEL") or log_cfg.get("level"),
        log_file=log_cfg.get("log_file"),
        json_format=bool(log_cfg.get("json_format", False)),
    )

    engine = _get_engine(args.config)

    with open(args.file) as f:
        data = json.load(f)

    if args.benchmark:
        report = run_benchmark(load_test_cases(args.file), engine=engine, verbose=False)
        print(json.dumps(report, indent=2, default=str))
        return

    cases = data if isinstance(data, list) else data.get("cases", [data])
    for case in cases:
        form = case.get("input", case) if isinstance(case, dict) else case
        result = engine.evaluate(form).to_dict()
        if args.json:
            json.dump(result, sys.stdout, indent=2)
            print()
        else:
            label = case.get("label", "") if isinstance(case, dict) else ""
            print_result(result, label=label)


if __name__ == "__main__":
    main()
