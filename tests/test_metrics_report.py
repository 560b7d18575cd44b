"""Tests for the per-AE report, probability extraction and diagnostics."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Iterable, Sequence

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from aehier.datahub.config import REFERENCE_INITS
from aehier.datahub.records import AERecord
from aehier.errors import JoinAmbiguityError, MissingColumnError
from aehier.metrics import (
    REPORT_COLUMNS,
    build_report,
    convergence_summary,
    extract_probabilities,
    order_for_columns,
    summarize,
)
from aehier.models import order_cells
from aehier.pipeline import hierarchical_report, sample_history
from aehier.sampling.posterior import ParameterKey, PosteriorSamples


# ---------------------------------------------------------------------------
# Helper fixtures and utilities


def _records() -> list[AERecord]:
    return [
        AERecord(2, 1, 100, 120, 10, 12, "Nervous", "Headache"),
        AERecord(1, 1, 100, 120, 2, 7, "Cardiac", "Palpitations"),
        AERecord(1, 2, 100, 120, 4, 3, "Cardiac", "Tachycardia"),
    ]


def _synthetic_posterior(
    records: Iterable[AERecord], n_draws: int = 400, n_chains: int = 2, seed: int = 5
) -> PosteriorSamples:
    """Posterior with internally consistent gamma/theta/OR/Diff columns."""
    rng = np.random.default_rng(seed)
    cells = order_cells(record.cell for record in records)
    gamma = rng.normal(-2.5, 0.2, size=(n_draws, len(cells)))
    theta = rng.normal(0.4, 0.3, size=(n_draws, len(cells)))
    control = 1.0 / (1.0 + np.exp(-gamma))
    treatment = 1.0 / (1.0 + np.exp(-(gamma + theta)))
    blocks = {"OR": np.exp(theta), "Diff": treatment - control, "gamma": gamma, "theta": theta}

    columns = tuple(ParameterKey(parameter, b, j) for parameter in blocks for b, j in cells)
    values = np.concatenate(list(blocks.values()), axis=1)
    chain_ids = np.repeat(np.arange(n_chains), n_draws // n_chains)
    return PosteriorSamples(columns=columns, values=values, chain_ids=chain_ids)


def _labels(frame) -> Sequence[tuple]:
    return list(zip(frame["SoC"], frame["PT"]))


# ---------------------------------------------------------------------------
# Report builder tests


def test_order_for_columns_sorts_by_pt_then_soc() -> None:
    ordered = order_for_columns(_records())
    assert [record.cell for record in ordered] == [(1, 1), (2, 1), (1, 2)]


def test_build_report_layout_and_values() -> None:
    records = _records()
    posterior = _synthetic_posterior(records)
    report = build_report(records, posterior)

    assert list(report.columns) == list(REPORT_COLUMNS)
    assert len(report) == len(records)
    assert _labels(report) == [
        ("Cardiac", "Palpitations"),
        ("Cardiac", "Tachycardia"),
        ("Nervous", "Headache"),
    ]
    assert set(report["Method"]) == {"Bayesian Hierarchical Model"}

    headache = report[report["PT"] == "Headache"].iloc[0]
    assert (headache["Nt"], headache["Nc"], headache["AEt"], headache["AEc"]) == (120, 100, 12, 10)
    expected = summarize(posterior.column(ParameterKey("Diff", 2, 1)))
    assert headache["Diff_mean"] == pytest.approx(expected.mean)
    assert headache["Diff_2.5%"] == pytest.approx(expected.p2_5)
    assert headache["Diff_97.5%"] == pytest.approx(expected.p97_5)
    assert headache["OR_2.5%"] < headache["OR_mean"] < headache["OR_97.5%"]


def test_or_mean_only_approximates_exp_theta_mean() -> None:
    records = _records()
    posterior = _synthetic_posterior(records, n_draws=4000)
    report = build_report(records, posterior)

    for _, row in report.iterrows():
        record = next(r for r in records if r.key == (row["SoC"], row["PT"]))
        theta = posterior.column(ParameterKey("theta", record.soc_index, record.pt_index))
        plug_in = float(np.exp(theta.mean()))
        # Jensen: E[exp(theta)] >= exp(E[theta]); the gap is small but non-zero.
        assert row["OR_mean"] > plug_in
        assert row["OR_mean"] == pytest.approx(plug_in, rel=0.1)


def test_build_report_rejects_duplicate_keys() -> None:
    records = _records() + [AERecord(2, 2, 100, 120, 1, 1, "Nervous", "Headache")]
    with pytest.raises(JoinAmbiguityError) as excinfo:
        build_report(records, _synthetic_posterior(records))
    assert excinfo.value.duplicates == (("Nervous", "Headache"),)


def test_build_report_missing_cell() -> None:
    records = _records()
    posterior = _synthetic_posterior(records[:2])
    with pytest.raises(MissingColumnError) as excinfo:
        build_report(records, posterior)
    assert excinfo.value.pt == "Tachycardia"


def test_build_report_shared_cell_rows_match() -> None:
    records = [
        AERecord(1, 1, 100, 100, 5, 10, "Cardiac", "Palpitations"),
        AERecord(1, 1, 100, 100, 5, 10, "Cardiac", "Arrhythmia"),
    ]
    report = build_report(records, _synthetic_posterior(records))
    assert len(report) == 2
    first, second = report.iloc[0], report.iloc[1]
    for column in ("Diff_mean", "Diff_2.5%", "Diff_97.5%", "OR_mean", "OR_2.5%", "OR_97.5%"):
        assert first[column] == second[column]


# ---------------------------------------------------------------------------
# Probability extractor tests


def test_extract_probabilities_shapes_and_values() -> None:
    records = _records()
    posterior = _synthetic_posterior(records, n_draws=50)
    draws = extract_probabilities(records, posterior)

    assert list(draws.pit.columns[:2]) == ["SoC", "PT"]
    assert draws.pit.shape == (3, 2 + 50)
    assert draws.pic.shape == (3, 2 + 50)
    assert draws.pic.columns[-1] == "draw_50"
    assert _labels(draws.pit) == [record.key for record in records]

    gamma = posterior.column(ParameterKey("gamma", 1, 2))
    theta = posterior.column(ParameterKey("theta", 1, 2))
    row = draws.pic.iloc[2, 2:].to_numpy(dtype=float)
    assert np.allclose(row, 1.0 / (1.0 + np.exp(-gamma)))
    row = draws.pit.iloc[2, 2:].to_numpy(dtype=float)
    assert np.allclose(row, 1.0 / (1.0 + np.exp(-(gamma + theta))))

    diff = posterior.column(ParameterKey("Diff", 1, 2))
    assert np.allclose(draws.pit.iloc[2, 2:].to_numpy(dtype=float) - draws.pic.iloc[2, 2:].to_numpy(dtype=float), diff)


def test_extract_probabilities_shared_cells_are_identical() -> None:
    records = [
        AERecord(1, 1, 100, 100, 5, 10, "Cardiac", "Palpitations"),
        AERecord(1, 2, 100, 100, 1, 1, "Cardiac", "Tachycardia"),
        AERecord(1, 1, 100, 100, 5, 10, "Cardiac", "Arrhythmia"),
    ]
    draws = extract_probabilities(records, _synthetic_posterior(records, n_draws=20))
    assert draws.pit.iloc[0, 2:].tolist() == draws.pit.iloc[2, 2:].tolist()
    assert draws.pic.iloc[0, 2:].tolist() == draws.pic.iloc[2, 2:].tolist()


def test_extract_probabilities_missing_column() -> None:
    records = _records()
    posterior = _synthetic_posterior(records).select(["OR", "Diff", "gamma"])
    with pytest.raises(MissingColumnError) as excinfo:
        extract_probabilities(records, posterior)
    assert excinfo.value.parameter == "theta.2.1."
    assert excinfo.value.soc == "Nervous"


# ---------------------------------------------------------------------------
# Diagnostics tests


def test_convergence_summary_per_column() -> None:
    records = _records()
    posterior = _synthetic_posterior(records, n_draws=400, n_chains=2)
    table = convergence_summary(posterior)

    assert list(table.columns) == ["r_hat", "ess_bulk"]
    assert "OR.1.1." in table.index
    assert "gamma.1.1." not in table.index
    assert np.all(table["r_hat"] < 1.1)
    assert np.all(table["ess_bulk"] > 50)


def test_convergence_summary_requires_balanced_chains() -> None:
    records = _records()
    posterior = _synthetic_posterior(records, n_draws=10)
    unbalanced = PosteriorSamples(
        columns=posterior.columns,
        values=posterior.values,
        chain_ids=np.array([0] * 7 + [1] * 3),
    )
    with pytest.raises(ValueError):
        convergence_summary(unbalanced)


# ---------------------------------------------------------------------------
# End-to-end tests (real PyMC sampling)


@pytest.mark.filterwarnings("ignore::UserWarning")
@pytest.mark.filterwarnings("ignore::RuntimeWarning")
def test_two_aes_in_one_cell_share_summaries() -> None:
    records = [
        AERecord(1, 1, 100, 100, 5, 10, "Cardiac", "Palpitations"),
        AERecord(1, 1, 100, 100, 5, 10, "Cardiac", "Tachycardia"),
    ]
    report = hierarchical_report(
        records,
        REFERENCE_INITS[0],
        n_burn=100,
        n_iter=100,
        thin=1,
        n_adapt=100,
        n_chain=1,
        random_seed=2024,
    )

    assert len(report) == 2
    assert report["Diff_mean"].iloc[0] == report["Diff_mean"].iloc[1]
    assert report["OR_mean"].iloc[0] == report["OR_mean"].iloc[1]
    assert -1.0 < report["Diff_mean"].iloc[0] < 1.0


@pytest.mark.filterwarnings("ignore::UserWarning")
@pytest.mark.filterwarnings("ignore::RuntimeWarning")
def test_sample_history_two_chains_in_process() -> None:
    records = _records()
    posterior = sample_history(
        records,
        list(REFERENCE_INITS),
        n_burn=50,
        n_iter=60,
        thin=3,
        n_adapt=100,
        n_chain=2,
        max_workers=1,
        random_seed=7,
    )

    assert posterior.n_draws == 2 * (60 // 3)
    assert posterior.chains == (0, 1)
    assert len(posterior.columns) == 4 * 3

    draws = extract_probabilities(records, posterior)
    assert draws.pit.shape == (3, 2 + posterior.n_draws)
    values = draws.pit.iloc[:, 2:].to_numpy(dtype=float)
    assert np.all((values > 0.0) & (values < 1.0))
