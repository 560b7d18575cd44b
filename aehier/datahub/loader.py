"""Load AE-level count tables into immutable records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Union

import pandas as pd

from .config import COLUMN_ALIASES, REQUIRED_COLUMNS
from .helpers import to_int
from .records import AERecord


def read_aedata(path: Union[str, Path]) -> List[AERecord]:
    """Read an AE table from CSV and validate it."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing AE table at {path}")
    frame = pd.read_csv(path)
    return load_aedata(frame)


def load_aedata(frame: pd.DataFrame) -> List[AERecord]:
    """Convert an aggregated AE DataFrame into validated ``AERecord`` rows."""
    frame = frame.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if k in frame.columns})
    missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
    if missing:
        raise ValueError(f"AE table is missing required columns: {', '.join(missing)}")

    records = [
        AERecord(
            soc_index=to_int(row["b"]),
            pt_index=to_int(row["j"]),
            n_control=to_int(row["Nc"]),
            n_treatment=to_int(row["Nt"]),
            ae_control=to_int(row["AEc"]),
            ae_treatment=to_int(row["AEt"]),
            soc_label=str(row["SoC"]),
            pt_label=str(row["PT"]),
        )
        for row in frame.to_dict(orient="records")
    ]
    validate_records(records)
    return records


def validate_records(records: Sequence[AERecord]) -> None:
    """Check the invariants the hierarchical model relies on."""
    if not records:
        raise ValueError("No AE records supplied.")

    n_control = {record.n_control for record in records}
    n_treatment = {record.n_treatment for record in records}
    if len(n_control) != 1 or len(n_treatment) != 1:
        raise ValueError("Nc and Nt must be constant across all AE records.")

    for record in records:
        label = f"{record.soc_label}/{record.pt_label}"
        if record.soc_index < 1 or record.pt_index < 1:
            raise ValueError(f"Group indices b and j must be 1-based, got {record.cell} for {label}.")
        if record.n_control < 1 or record.n_treatment < 1:
            raise ValueError(f"Arm sizes must be positive for {label}.")
        if not 0 <= record.ae_control <= record.n_control:
            raise ValueError(f"AEc={record.ae_control} outside [0, {record.n_control}] for {label}.")
        if not 0 <= record.ae_treatment <= record.n_treatment:
            raise ValueError(f"AEt={record.ae_treatment} outside [0, {record.n_treatment}] for {label}.")


def records_to_frame(records: Iterable[AERecord]) -> pd.DataFrame:
    """Return the raw-count table in the external column layout."""
    rows = [
        {
            "SoC": record.soc_label,
            "PT": record.pt_label,
            "Nt": record.n_treatment,
            "Nc": record.n_control,
            "AEt": record.ae_treatment,
            "AEc": record.ae_control,
            "b": record.soc_index,
            "j": record.pt_index,
        }
        for record in records
    ]
    return pd.DataFrame(rows, columns=list(REQUIRED_COLUMNS))


def read_inits(path: Union[str, Path]) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
    """Read initial values from JSON: one object, or a list with one object per chain."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing initial values file at {path}")
    try:
        payload = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Initial values file {path} is not valid JSON: {exc}") from exc
    if isinstance(payload, dict):
        return payload
    if isinstance(payload, list) and all(isinstance(item, dict) for item in payload):
        return payload
    raise ValueError(f"Initial values in {path} must be an object or a list of objects.")
