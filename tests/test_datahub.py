"""Tests for AE table loading, validation and initial-value helpers."""

from __future__ import annotations

import json
from pathlib import Path
import sys

import pandas as pd
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from aehier.datahub import AERecord, load_aedata, read_aedata, read_inits, records_to_frame
from aehier.datahub.config import REFERENCE_INITS, REQUIRED_COLUMNS
from aehier.datahub.helpers import normalize_inits, to_int


# ---------------------------------------------------------------------------
# Helper fixtures and utilities


def _aedata_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "SoC": ["Cardiac disorders", "Cardiac disorders", "Nervous system disorders"],
            "PT": ["Palpitations", "Tachycardia", "Headache"],
            "Nt": [120, 120, 120],
            "Nc": [110, 110, 110],
            "AEt": [7, 3, 15],
            "AEc": [2, 4, 12],
            "b": [1, 1, 2],
            "j": [1, 2, 1],
        }
    )


# ---------------------------------------------------------------------------
# Loader tests


def test_load_aedata_builds_records() -> None:
    records = load_aedata(_aedata_frame())

    assert len(records) == 3
    first = records[0]
    assert isinstance(first, AERecord)
    assert first.cell == (1, 1)
    assert first.key == ("Cardiac disorders", "Palpitations")
    assert (first.n_treatment, first.n_control) == (120, 110)
    assert (first.ae_treatment, first.ae_control) == (7, 2)


def test_load_aedata_accepts_preprocessing_aliases() -> None:
    frame = _aedata_frame().rename(columns={"SoC": "AEBODSYS", "PT": "AEDECOD"})
    records = load_aedata(frame)
    assert records[2].soc_label == "Nervous system disorders"
    assert records[2].pt_label == "Headache"


def test_load_aedata_missing_column() -> None:
    with pytest.raises(ValueError, match="AEc"):
        load_aedata(_aedata_frame().drop(columns=["AEc"]))


def test_load_aedata_rejects_varying_arm_sizes() -> None:
    frame = _aedata_frame()
    frame.loc[1, "Nc"] = 111
    with pytest.raises(ValueError, match="constant"):
        load_aedata(frame)


@pytest.mark.parametrize(
    ("column", "value"),
    [("b", 0), ("AEt", 121), ("AEc", -1)],
)
def test_load_aedata_rejects_out_of_range_values(column: str, value: int) -> None:
    frame = _aedata_frame()
    frame.loc[0, column] = value
    with pytest.raises(ValueError):
        load_aedata(frame)


def test_load_aedata_empty_table() -> None:
    with pytest.raises(ValueError):
        load_aedata(_aedata_frame().iloc[0:0])


def test_read_aedata_roundtrips_through_csv(tmp_path: Path) -> None:
    path = tmp_path / "aedata.csv"
    _aedata_frame().to_csv(path, index=False)

    records = read_aedata(path)
    frame = records_to_frame(records)

    assert list(frame.columns) == list(REQUIRED_COLUMNS)
    assert frame["PT"].tolist() == ["Palpitations", "Tachycardia", "Headache"]
    assert frame["j"].tolist() == [1, 2, 1]


def test_read_aedata_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_aedata(tmp_path / "absent.csv")


# ---------------------------------------------------------------------------
# Helper tests


def test_to_int_handles_integer_like_values() -> None:
    assert to_int("7") == 7
    assert to_int(7.0) == 7
    assert to_int(True) == 1
    with pytest.raises(ValueError):
        to_int(2.5)
    with pytest.raises(ValueError):
        to_int(None)
    with pytest.raises(ValueError):
        to_int("seven")


def test_normalize_inits_maps_dotted_names() -> None:
    normalized = normalize_inits({"mu.gamma.0": 0.1, "tau_theta_0": "2", "alpha.pi": 2})
    assert normalized == {"mu_gamma_0": 0.1, "tau_theta_0": 2.0, "alpha_pi": 2.0}


def test_normalize_inits_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="sigma"):
        normalize_inits({"sigma.gamma.0": 1.0})
    with pytest.raises(TypeError):
        normalize_inits([("mu.gamma.0", 0.1)])


def test_read_inits_single_and_multi_chain(tmp_path: Path) -> None:
    single = tmp_path / "single.json"
    single.write_text(json.dumps({"mu.gamma.0": 0.1, "alpha.pi": 2}))
    assert read_inits(single) == {"mu.gamma.0": 0.1, "alpha.pi": 2}

    multi = tmp_path / "multi.json"
    multi.write_text(json.dumps(list(REFERENCE_INITS)))
    loaded = read_inits(multi)
    assert isinstance(loaded, list)
    assert len(loaded) == 2
    assert loaded[1]["alpha_pi"] == 10.0


def test_read_inits_rejects_bad_payloads(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        read_inits(bad)

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ValueError):
        read_inits(broken)
