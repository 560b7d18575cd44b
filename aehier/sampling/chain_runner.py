"""Run one MCMC chain of the hierarchical AE model with PyMC."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import numpy as np
import pymc as pm
from pymc.exceptions import SamplingError

from aehier.datahub.helpers import normalize_inits
from aehier.errors import SamplerDivergenceError
from aehier.models.builders import HierarchicalDataset
from aehier.models.definition import HierarchicalModelSpec

from .config import SamplerConfig
from .posterior import ParameterKey, PosteriorSamples


def retained_positions(n_burn: int, n_iter: int, thin: int) -> np.ndarray:
    """Indices of the kept draws: every ``thin``-th iteration after burn-in."""
    return np.arange(n_burn + thin - 1, n_burn + n_iter, thin)


def run_chain(
    model: HierarchicalModelSpec,
    data: HierarchicalDataset,
    init_values: Optional[Mapping[str, Any]],
    n_adapt: int,
    n_burn: int,
    n_iter: int,
    thin: int,
    random_seed: Optional[int] = None,
    chain_id: int = 0,
) -> PosteriorSamples:
    """Adapt, burn in and draw one chain, returning the thinned tracked draws.

    PyMC tunes its step methods for ``n_adapt`` iterations; the following
    ``n_burn`` draws are discarded and every ``thin``-th of the final
    ``n_iter`` draws is retained.
    """
    SamplerConfig(n_adapt=n_adapt, n_burn=n_burn, n_iter=n_iter, thin=thin, n_chain=1).validate()
    initvals = normalize_inits(init_values) if init_values is not None else {}

    print(f"[sampling] chain {chain_id}: adapt={n_adapt} burn={n_burn} iter={n_iter} thin={thin}")
    with model.build(data):
        try:
            idata = pm.sample(
                draws=n_burn + n_iter,
                tune=n_adapt,
                chains=1,
                cores=1,
                initvals=initvals or None,
                random_seed=random_seed,
                return_inferencedata=True,
                compute_convergence_checks=False,
                progressbar=False,
            )
        except SamplingError as exc:
            raise SamplerDivergenceError(
                f"Chain {chain_id} could not be initialised: {exc}", chain_id=chain_id
            ) from exc

    keep = retained_positions(n_burn, n_iter, thin)
    _report_divergences(idata, keep, chain_id)

    posterior = idata.posterior
    columns: list[ParameterKey] = []
    blocks: list[np.ndarray] = []
    for parameter in model.tracked:
        if parameter not in posterior:
            raise SamplerDivergenceError(
                f"Chain {chain_id} did not record parameter '{parameter}'.", chain_id=chain_id
            )
        draws = np.asarray(posterior[parameter].isel(chain=0).values, dtype=float)
        blocks.append(draws[keep].reshape(len(keep), -1))
        columns.extend(ParameterKey(parameter, b, j) for b, j in data.cells)

    values = np.concatenate(blocks, axis=1)
    if not np.all(np.isfinite(values)):
        raise SamplerDivergenceError(
            f"Chain {chain_id} produced non-finite draws for the tracked parameters.", chain_id=chain_id
        )
    return PosteriorSamples(
        columns=tuple(columns),
        values=values,
        chain_ids=np.full(len(keep), chain_id, dtype=int),
    )


def _report_divergences(idata: Any, keep: np.ndarray, chain_id: int) -> None:
    sample_stats = getattr(idata, "sample_stats", None)
    if sample_stats is None or "diverging" not in sample_stats:
        return
    diverging = np.asarray(sample_stats["diverging"].isel(chain=0).values, dtype=bool)
    count = int(diverging[keep].sum())
    if count:
        print(f"[sampling] chain {chain_id}: {count} divergent transitions among retained draws")
