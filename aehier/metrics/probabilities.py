"""Per-draw AE incidence probabilities for treatment (pit) and control (pic)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

import numpy as np
import pandas as pd
from scipy.special import expit

from aehier.datahub.config import PT_COLUMN, SOC_COLUMN
from aehier.datahub.records import AERecord
from aehier.errors import MissingColumnError
from aehier.sampling.posterior import ParameterKey, PosteriorSamples


@dataclass(frozen=True, eq=False)
class ProbabilityDraws:
    """One row per AE, one ``draw_<k>`` column per posterior draw."""

    pit: pd.DataFrame
    pic: pd.DataFrame


def _lookup(posterior: PosteriorSamples, parameter: str, record: AERecord) -> np.ndarray:
    key = ParameterKey(parameter, record.soc_index, record.pt_index)
    if not posterior.has(key):
        raise MissingColumnError(
            f"Posterior has no '{key.label}' column for AE {record.soc_label}/{record.pt_label}.",
            parameter=key.label,
            soc=record.soc_label,
            pt=record.pt_label,
        )
    return posterior.column(key)


def _as_frame(records: Sequence[AERecord], values: np.ndarray, draw_columns: List[str]) -> pd.DataFrame:
    labels = pd.DataFrame(
        {
            SOC_COLUMN: [record.soc_label for record in records],
            PT_COLUMN: [record.pt_label for record in records],
        }
    )
    draws = pd.DataFrame(values, columns=draw_columns)
    return pd.concat([labels, draws], axis=1)


def extract_probabilities(aedata: Iterable[AERecord], posterior: PosteriorSamples) -> ProbabilityDraws:
    """Convert ``gamma``/``theta`` draws into incidence probabilities per AE.

    ``pic = logistic(gamma)`` and ``pit = logistic(gamma + theta)`` for every
    posterior draw. Any missing column aborts the whole extraction.
    """
    records = list(aedata)
    if not records:
        raise ValueError("No AE records supplied for probability extraction.")

    gamma = np.vstack([_lookup(posterior, "gamma", record) for record in records])
    theta = np.vstack([_lookup(posterior, "theta", record) for record in records])
    draw_columns = [f"draw_{k}" for k in range(1, posterior.n_draws + 1)]

    return ProbabilityDraws(
        pit=_as_frame(records, expit(gamma + theta), draw_columns),
        pic=_as_frame(records, expit(gamma), draw_columns),
    )
