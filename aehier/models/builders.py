"""Dataset builders and PyMC model construction for the AE mixture model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

import numpy as np
import pymc as pm

from aehier.datahub.loader import validate_records
from aehier.datahub.records import AERecord

Cell = Tuple[int, int]


@dataclass(frozen=True)
class PriorConfig:
    """Hyper-prior constants; normal priors use the precision parameterisation."""

    mu_mean: float = 0.0
    mu_precision: float = 0.1
    tau_shape: float = 3.0
    tau_rate: float = 1.0
    pi_rate: float = 0.1
    pi_lower: float = 1.0

    def validate(self) -> None:
        if self.mu_precision <= 0 or self.tau_shape <= 0 or self.tau_rate <= 0 or self.pi_rate <= 0:
            raise ValueError("Prior precisions, shapes and rates must be strictly positive.")
        if self.pi_lower < 0:
            raise ValueError("Truncation point for alpha_pi/beta_pi must be non-negative.")


@dataclass(frozen=True)
class HierarchicalDataset:
    control_events: np.ndarray
    treatment_events: np.ndarray
    n_control: int
    n_treatment: int
    n_soc: int
    cells: Sequence[Cell]
    cell_ids: np.ndarray
    soc_ids: np.ndarray
    cell_soc_ids: np.ndarray
    representative_rows: np.ndarray

    @property
    def n_ae(self) -> int:
        return int(self.cell_ids.shape[0])

    @property
    def cell_labels(self) -> Sequence[str]:
        return [f"{b}.{j}" for b, j in self.cells]


def order_cells(cells: Iterable[Cell]) -> Tuple[Cell, ...]:
    """Sort ``(b, j)`` cells by ``j`` first and ``b`` second."""
    return tuple(sorted(set(cells), key=lambda cell: (cell[1], cell[0])))


def build_dataset(records: Iterable[AERecord]) -> HierarchicalDataset:
    """Convert AE records into the arrays and cell arena used by the model.

    Rows that share a ``(b, j)`` pair reference the same latent cell. The
    first row mapped to a cell is its representative: that row's point-mass
    indicator decides whether the cell's log odds ratio is zero.
    """
    record_list = list(records)
    validate_records(record_list)

    cells = order_cells(record.cell for record in record_list)
    cell_index: Dict[Cell, int] = {cell: idx for idx, cell in enumerate(cells)}

    representative: Dict[Cell, int] = {}
    for row, record in enumerate(record_list):
        representative.setdefault(record.cell, row)

    return HierarchicalDataset(
        control_events=np.asarray([record.ae_control for record in record_list], dtype=int),
        treatment_events=np.asarray([record.ae_treatment for record in record_list], dtype=int),
        n_control=record_list[0].n_control,
        n_treatment=record_list[0].n_treatment,
        n_soc=max(record.soc_index for record in record_list),
        cells=cells,
        cell_ids=np.asarray([cell_index[record.cell] for record in record_list], dtype=int),
        soc_ids=np.asarray([record.soc_index - 1 for record in record_list], dtype=int),
        cell_soc_ids=np.asarray([b - 1 for b, _ in cells], dtype=int),
        representative_rows=np.asarray([representative[cell] for cell in cells], dtype=int),
    )


def build_model(dataset: HierarchicalDataset, priors: PriorConfig) -> pm.Model:
    """Create the three-level logistic model with a mixture prior on log-OR."""
    priors.validate()
    coords = {
        "soc": list(range(1, dataset.n_soc + 1)),
        "cell": list(dataset.cell_labels),
        "ae": list(range(dataset.n_ae)),
    }
    cell_soc = dataset.cell_soc_ids

    with pm.Model(coords=coords) as model:
        mu_gamma_0 = pm.Normal("mu_gamma_0", mu=priors.mu_mean, tau=priors.mu_precision)
        tau_gamma_0 = pm.Gamma("tau_gamma_0", alpha=priors.tau_shape, beta=priors.tau_rate)
        mu_theta_0 = pm.Normal("mu_theta_0", mu=priors.mu_mean, tau=priors.mu_precision)
        tau_theta_0 = pm.Gamma("tau_theta_0", alpha=priors.tau_shape, beta=priors.tau_rate)
        alpha_pi = pm.Truncated("alpha_pi", pm.Exponential.dist(lam=priors.pi_rate), lower=priors.pi_lower)
        beta_pi = pm.Truncated("beta_pi", pm.Exponential.dist(lam=priors.pi_rate), lower=priors.pi_lower)

        pi = pm.Beta("pi", alpha=alpha_pi, beta=beta_pi, dims="soc")
        mu_gamma = pm.Normal("mu_gamma", mu=mu_gamma_0, tau=tau_gamma_0, dims="soc")
        tau_gamma = pm.Gamma("tau_gamma", alpha=priors.tau_shape, beta=priors.tau_rate, dims="soc")
        mu_theta = pm.Normal("mu_theta", mu=mu_theta_0, tau=tau_theta_0, dims="soc")
        tau_theta = pm.Gamma("tau_theta", alpha=priors.tau_shape, beta=priors.tau_rate, dims="soc")

        gamma = pm.Normal("gamma", mu=mu_gamma[cell_soc], tau=tau_gamma[cell_soc], dims="cell")
        theta1 = pm.Normal("theta1", mu=mu_theta[cell_soc], tau=tau_theta[cell_soc], dims="cell")
        p0 = pm.Bernoulli("p0", p=pi[dataset.soc_ids], dims="ae")
        theta = pm.Deterministic("theta", (1 - p0[dataset.representative_rows]) * theta1, dims="cell")

        control_rate = pm.Deterministic("c", pm.math.invlogit(gamma), dims="cell")
        treatment_rate = pm.Deterministic("t", pm.math.invlogit(gamma + theta), dims="cell")
        pm.Deterministic("OR", pm.math.exp(theta), dims="cell")
        pm.Deterministic("Diff", treatment_rate - control_rate, dims="cell")

        pm.Binomial(
            "X",
            n=dataset.n_control,
            logit_p=gamma[dataset.cell_ids],
            observed=dataset.control_events,
            dims="ae",
        )
        pm.Binomial(
            "Y",
            n=dataset.n_treatment,
            logit_p=(gamma + theta)[dataset.cell_ids],
            observed=dataset.treatment_events,
            dims="ae",
        )
    return model
