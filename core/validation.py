"""
Intake Review – Validation Utilities
=====================================
Coercion helpers for raw form values (the intake form posts loosely typed
JSON) and schema validation for persisted blobs and admin requests.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from models.review.schema_definition import ReviewerRegistration, SettingsUpdate
from models.risk.schema_definition import RiskAnalysisResult

logger = logging.getLogger(__name__)

NAN = float("nan")

_INT_PREFIX = re.compile(r"^\s*([+-]?)([0-9]+)")
_HEX_PREFIX = re.compile(r"^\s*([+-]?)0[xX]([0-9a-fA-F]+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")

M = TypeVar("M", bound=BaseModel)


# ── Coercion ────────────────────────────────────────────────────────────────


def is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def js_truthy(value: Any) -> bool:
    """Truthiness as the intake form sees it.

    Unlike Python, empty containers and the string ``"false"`` are truthy;
    ``None``, ``False``, ``0``, ``""`` and NaN are not.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value != 0 and not is_nan(value)
    if isinstance(value, str):
        return value != ""
    return True


def _saturate(value: int) -> float:
    """Readings beyond float range read as +/-Infinity."""
    try:
        float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf
    return value


def parse_int_like(value: Any) -> float:
    """Parse a reading the way the form's ``parseInt`` does.

    Leading whitespace, an optional sign and the leading run of ASCII digits
    are used (``"120abc"`` -> 120, ``"12.9"`` -> 12). Anything else yields NaN.
    Returns an ``int`` on success, +/-inf for values too large for a float
    and ``float('nan')`` otherwise.
    """
    if value is None or isinstance(value, bool):
        return NAN
    if isinstance(value, int):
        return _saturate(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return NAN
        return int(value)
    if not isinstance(value, str):
        return NAN

    hex_match = _HEX_PREFIX.match(value)
    if hex_match:
        sign, digits = hex_match.groups()
        parsed = _saturate(int(digits, 16))
        return -parsed if sign == "-" else parsed

    match = _INT_PREFIX.match(value)
    if not match:
        return NAN
    sign, digits = match.groups()
    # float() has no digit limit and overflows to inf
    parsed = float(digits)
    if not math.isinf(parsed):
        parsed = int(digits)
    return -parsed if sign == "-" else parsed


def parse_float_like(value: Any) -> float:
    """``parseFloat`` counterpart used for fee amounts."""
    if value is None or isinstance(value, bool):
        return NAN
    if isinstance(value, int):
        return float(_saturate(value))
    if isinstance(value, float):
        return value
    if not isinstance(value, str):
        return NAN
    match = _FLOAT_PREFIX.match(value)
    if not match:
        return NAN
    return float(match.group(1))


def format_reading(value: float) -> str:
    """Render a parsed vital for display the way the form prints numbers."""
    if is_nan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return str(int(value))


# ── Schema validation ───────────────────────────────────────────────────────


def _validate(model: Type[M], data: Any, label: str) -> Tuple[Optional[M], List[str]]:
    errors: List[str] = []
    try:
        return model.model_validate(data), []
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            errors.append(f"Validation error at '{field}': {err['msg']}")
        logger.warning("%s validation failed: %d errors", label, len(errors))
        return None, errors


def validate_risk_result(data: Any) -> Tuple[Optional[RiskAnalysisResult], List[str]]:
    """
    Validate a persisted risk analysis blob.

    Returns (validated_model, errors_list).
    """
    return _validate(RiskAnalysisResult, data, "Risk analysis")


def validate_registration(data: Any) -> Tuple[Optional[ReviewerRegistration], List[str]]:
    """
    Validate a reviewer registration request.

    Returns (validated_model, errors_list).
    """
    return _validate(ReviewerRegistration, data, "Reviewer registration")


def validate_settings_update(data: Any) -> Tuple[Optional[SettingsUpdate], List[str]]:
    """
    Validate an admin settings update.

    Returns (validated_model, errors_list).
    """
    return _validate(SettingsUpdate, data, "Settings update")
