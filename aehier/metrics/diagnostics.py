"""Between-chain convergence diagnostics using ArviZ."""

from __future__ import annotations

from typing import Optional, Sequence

import arviz as az
import numpy as np
import pandas as pd
import xarray as xr

from aehier.sampling.posterior import PosteriorSamples


def to_dataset(posterior: PosteriorSamples, parameters: Optional[Sequence[str]] = None) -> xr.Dataset:
    """Reshape the stacked table into ``(chain, draw)`` arrays, one variable per column."""
    table = posterior.select(parameters) if parameters is not None else posterior
    chains = table.chains
    if not chains:
        raise ValueError("Posterior contains no draws.")
    masks = [table.chain_ids == chain for chain in chains]
    lengths = {int(mask.sum()) for mask in masks}
    if len(lengths) != 1:
        raise ValueError("Every chain must contribute the same number of draws for diagnostics.")

    data_vars = {
        key.label: (("chain", "draw"), np.stack([table.values[mask, idx] for mask in masks]))
        for idx, key in enumerate(table.columns)
    }
    return xr.Dataset(data_vars, coords={"chain": list(chains), "draw": np.arange(lengths.pop())})


def convergence_summary(
    posterior: PosteriorSamples, parameters: Optional[Sequence[str]] = ("OR", "Diff")
) -> pd.DataFrame:
    """Split R-hat and bulk effective sample size for each selected column."""
    dataset = to_dataset(posterior, parameters)
    rhat = az.rhat(dataset)
    ess = az.ess(dataset, method="bulk")
    rows = [
        {
            "parameter": name,
            "r_hat": float(rhat[name]),
            "ess_bulk": float(ess[name]),
        }
        for name in dataset.data_vars
    ]
    return pd.DataFrame(rows, columns=["parameter", "r_hat", "ess_bulk"]).set_index("parameter")
