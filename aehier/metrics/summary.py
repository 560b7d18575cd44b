"""Seven-number summaries of posterior sample columns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from aehier.sampling.posterior import PosteriorSamples

QUANTILES: Tuple[float, ...] = (0.025, 0.25, 0.5, 0.75, 0.975)
SUMMARY_COLUMNS: Tuple[str, ...] = ("Mean", "SD", "2.5%", "25%", "50%", "75%", "97.5%")


@dataclass(frozen=True)
class SummaryStats:
    """Posterior summary of a single parameter column."""

    mean: float
    sd: float
    p2_5: float
    p25: float
    p50: float
    p75: float
    p97_5: float

    def as_row(self) -> Dict[str, float]:
        values = (self.mean, self.sd, self.p2_5, self.p25, self.p50, self.p75, self.p97_5)
        return dict(zip(SUMMARY_COLUMNS, values))


def summarize(column: Sequence[float]) -> SummaryStats:
    """Mean, sample SD and linearly interpolated percentiles of ``column``.

    Percentiles interpolate between order statistics (R's type 7). A single
    draw has a standard deviation of zero.
    """
    values = np.asarray(column, dtype=float).ravel()
    if values.size == 0:
        raise ValueError("Cannot summarise an empty column.")
    if not np.all(np.isfinite(values)):
        raise ValueError("Column contains non-finite draws.")

    if np.all(values == values[0]):
        constant = float(values[0])
        return SummaryStats(constant, 0.0, constant, constant, constant, constant, constant)

    p2_5, p25, p50, p75, p97_5 = (float(q) for q in np.quantile(values, QUANTILES, method="linear"))
    return SummaryStats(
        mean=float(values.mean()),
        sd=float(values.std(ddof=1)),
        p2_5=p2_5,
        p25=p25,
        p50=p50,
        p75=p75,
        p97_5=p97_5,
    )


def summarize_posterior(
    posterior: PosteriorSamples, parameters: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    """Apply :func:`summarize` to every column (or to the listed parameter families)."""
    table = posterior.select(parameters) if parameters is not None else posterior
    rows = [summarize(table.column(key)).as_row() for key in table.columns]
    index = pd.Index([key.label for key in table.columns], name="parameter")
    return pd.DataFrame(rows, index=index, columns=list(SUMMARY_COLUMNS))
