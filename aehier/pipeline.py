"""Public entry points running the sampler and the per-AE report in one call."""

from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

from .datahub.records import AERecord
from .metrics.report import build_report
from .models.builders import PriorConfig, build_dataset
from .models.definition import HierarchicalModelSpec
from .sampling.orchestrator import InitsLike, run_chains
from .sampling.posterior import PosteriorSamples


def sample_history(
    aedata: Iterable[AERecord],
    inits: InitsLike,
    n_burn: int,
    n_iter: int,
    thin: int,
    n_adapt: int,
    n_chain: int,
    priors: Optional[PriorConfig] = None,
    max_workers: Optional[int] = None,
    random_seed: Optional[int] = None,
    timeout: Optional[float] = None,
) -> PosteriorSamples:
    """Sample the hierarchical model and return the stacked OR/Diff/gamma/theta draws."""
    dataset = build_dataset(aedata)
    model = HierarchicalModelSpec(priors=priors or PriorConfig())
    return run_chains(
        model,
        dataset,
        inits,
        n_chain=n_chain,
        n_adapt=n_adapt,
        n_burn=n_burn,
        n_iter=n_iter,
        thin=thin,
        max_workers=max_workers,
        random_seed=random_seed,
        timeout=timeout,
    )


def hierarchical_report(
    aedata: Iterable[AERecord],
    inits: InitsLike,
    n_burn: int,
    n_iter: int,
    thin: int,
    n_adapt: int,
    n_chain: int,
    priors: Optional[PriorConfig] = None,
    max_workers: Optional[int] = None,
    random_seed: Optional[int] = None,
    timeout: Optional[float] = None,
) -> pd.DataFrame:
    """Fit the model and return the per-AE Diff/OR summary joined with raw counts."""
    records = list(aedata)
    posterior = sample_history(
        records,
        inits,
        n_burn=n_burn,
        n_iter=n_iter,
        thin=thin,
        n_adapt=n_adapt,
        n_chain=n_chain,
        priors=priors,
        max_workers=max_workers,
        random_seed=random_seed,
        timeout=timeout,
    )
    return build_report(records, posterior)
