#!/usr/bin/env python3
"""
Intake Review – Demo Script
============================
Walks sample questionnaires through submission, review and payout.

Usage:
    python demo/run_demo.py
"""

import json
import os
import sys
from pathlib import Path

# Add project root
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dotenv import load_dotenv
load_dotenv()

from core.logging_utils import setup_logging
from core.workflow import AssessmentWorkflow

SAMPLES = Path(__file__).resolve().parents[1] / "data" / "samples" / "sample_questionnaires.json"


def main():
    setup_logging(level=os.environ.get("LOG_LEVEL", "WARNING"))

    print("\n" + "=" * 60)
    print("  Intake Review – Demo")
    print("=" * 60)

    workflow = AssessmentWorkflow()
    admin = workflow.reviewers.bootstrap_admin("Admin User", "admin@example.com")
    doctor = workflow.reviewers.register("Dr. Sarah Mitchell", "doctor@example.com", "MD-1234")
    workflow.reviewers.approve(doctor.id, admin.id)

    with open(SAMPLES) as f:
        cases = json.load(f)["cases"]

    for case in cases:
        record = workflow.submit(case["input"])
        flags = [f["code"] for f in record.flags()]
        print(f"\n  {case['label']}")
        print(f"    flags: {flags or 'none'}  disqualified: {record.is_auto_disqualified}")

        if record.is_auto_disqualified:
            outcome = workflow.reviews.decide(
                record.id, doctor.id, "denied", denial_reason="Absolute contraindication"
            )
        else:
            outcome = workflow.reviews.decide(record.id, doctor.id, "approved")
        print(f"    decision: {outcome['assessment']['status']}")

    earnings = workflow.payouts.earnings(doctor.id)
    print(f"\n  Reviewer earnings: {earnings['total_earnings']:.2f} "
          f"(pending {earnings['pending_balance']:.2f})")

    cycle = earnings["cycles"][0]
    workflow.payouts.mark_cycle_paid(cycle.id, admin.id, notes="Demo payout")
    earnings = workflow.payouts.earnings(doctor.id)
    print(f"  After payout: paid {earnings['paid_out']:.2f}, "
          f"pending {earnings['pending_balance']:.2f}\n")


if __name__ == "__main__":
    main()
