from __future__ import annotations

from typing import Any, Dict, Mapping

from .config import INIT_KEYS


def to_int(value: Any) -> int:
    """Robustly convert table cells to ints, rejecting fractional values."""
    if value is None:
        raise ValueError("Expected integer-like value, received None")
    if isinstance(value, bool):
        return int(value)
    try:
        as_float = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Cannot convert {value!r} to int") from exc
    if not as_float.is_integer():
        raise ValueError(f"Cannot convert {value!r} to int without truncation")
    return int(as_float)


def ensure_mapping(row: Any) -> Mapping[str, Any]:
    """Guarantee initial-value payloads behave like mappings."""
    if isinstance(row, Mapping):
        return row
    raise TypeError(f"Unexpected initial-value type: {type(row)}")


def normalize_inits(values: Any) -> Dict[str, float]:
    """Map ``mu.gamma.0``-style keys onto model variable names.

    Missing keys are allowed (PyMC falls back to its own initial point), but
    unknown keys are rejected so that misspelt initial values do not get lost.
    """
    mapping = ensure_mapping(values)
    normalized: Dict[str, float] = {}
    for raw_key, raw_value in mapping.items():
        key = str(raw_key).replace(".", "_")
        if key not in INIT_KEYS:
            raise ValueError(f"Unknown initial value '{raw_key}'. Expected one of: {', '.join(INIT_KEYS)}")
        normalized[key] = float(raw_value)
    return normalized
