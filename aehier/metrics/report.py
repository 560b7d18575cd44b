"""Per-AE report joining Diff/OR posterior summaries with the raw counts."""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Sequence, Tuple

import pandas as pd

from aehier.datahub.config import METHOD_LABEL, PT_COLUMN, SOC_COLUMN
from aehier.datahub.loader import records_to_frame
from aehier.datahub.records import AERecord
from aehier.errors import JoinAmbiguityError, MissingColumnError
from aehier.sampling.posterior import ParameterKey, PosteriorSamples

from .summary import SummaryStats, summarize

REPORT_PARAMETERS: Tuple[str, ...] = ("Diff", "OR")
JOIN_KEYS: List[str] = [SOC_COLUMN, PT_COLUMN]
REPORT_COLUMNS: Tuple[str, ...] = (
    "SoC",
    "PT",
    "Nt",
    "Nc",
    "AEt",
    "AEc",
    "Diff_mean",
    "Diff_2.5%",
    "Diff_97.5%",
    "OR_mean",
    "OR_2.5%",
    "OR_97.5%",
    "Method",
)


def check_unique_keys(records: Iterable[AERecord]) -> None:
    """Fail before joining if any ``(SoC, PT)`` pair occurs more than once."""
    counts = Counter(record.key for record in records)
    duplicates = sorted(key for key, count in counts.items() if count > 1)
    if duplicates:
        shown = ", ".join(f"{soc}/{pt}" for soc, pt in duplicates)
        raise JoinAmbiguityError(f"(SoC, PT) pairs are not unique: {shown}", duplicates=tuple(duplicates))


def order_for_columns(records: Iterable[AERecord]) -> List[AERecord]:
    """Order AE records by ``j`` then ``b``, the order posterior columns are emitted in."""
    return sorted(records, key=lambda record: (record.pt_index, record.soc_index))


def _summary_table(
    parameter: str,
    ordered: Sequence[AERecord],
    stats: Dict[ParameterKey, SummaryStats],
) -> pd.DataFrame:
    rows = []
    for record in ordered:
        key = ParameterKey(parameter, record.soc_index, record.pt_index)
        if key not in stats:
            raise MissingColumnError(
                f"Posterior has no '{key.label}' column for AE {record.soc_label}/{record.pt_label}.",
                parameter=key.label,
                soc=record.soc_label,
                pt=record.pt_label,
            )
        summary = stats[key]
        rows.append(
            {
                SOC_COLUMN: record.soc_label,
                PT_COLUMN: record.pt_label,
                f"{parameter}_mean": summary.mean,
                f"{parameter}_2.5%": summary.p2_5,
                f"{parameter}_97.5%": summary.p97_5,
            }
        )
    return pd.DataFrame(rows)


def build_report(aedata: Iterable[AERecord], posterior: PosteriorSamples) -> pd.DataFrame:
    """Summarise Diff/OR per AE and join the summaries onto the raw counts."""
    records = list(aedata)
    if not records:
        raise ValueError("No AE records supplied for the report.")
    check_unique_keys(records)

    subset = posterior.select(REPORT_PARAMETERS)
    stats = {key: summarize(subset.column(key)) for key in subset.columns}

    ordered = order_for_columns(records)
    summary_diff = _summary_table("Diff", ordered, stats)
    summary_or = _summary_table("OR", ordered, stats)

    merged = summary_diff.merge(summary_or, on=JOIN_KEYS, how="inner", validate="one_to_one")
    raw = records_to_frame(records).drop(columns=["b", "j"])
    report = raw.merge(merged, on=JOIN_KEYS, how="inner", validate="one_to_one")
    report = report.sort_values(JOIN_KEYS, kind="mergesort").reset_index(drop=True)
    report["Method"] = METHOD_LABEL

    print(f"[report] Summarised {len(report)} AEs from {posterior.n_draws} posterior draws")
    return report[list(REPORT_COLUMNS)]
