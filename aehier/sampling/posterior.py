"""Posterior sample tables keyed by ``(parameter, b, j)``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from aehier.errors import MissingColumnError, SchemaMismatchError

CHAIN_COLUMN = "chain"
_LABEL_PATTERN = re.compile(r"^(?P<parameter>[A-Za-z][A-Za-z0-9_]*)\.(?P<b>\d+)\.(?P<j>\d+)\.$")


class ParameterKey(NamedTuple):
    """Typed column key for one cell-level parameter."""

    parameter: str
    b: int
    j: int

    @property
    def label(self) -> str:
        """Column name in the external ``<param>.<b>.<j>.`` convention."""
        return f"{self.parameter}.{self.b}.{self.j}."

    @classmethod
    def parse(cls, label: str) -> "ParameterKey":
        match = _LABEL_PATTERN.match(label)
        if match is None:
            raise ValueError(f"Column '{label}' does not follow the '<param>.<b>.<j>.' convention.")
        return cls(match["parameter"], int(match["b"]), int(match["j"]))


@dataclass(frozen=True, eq=False)
class PosteriorSamples:
    """Draws × columns matrix of retained posterior samples.

    Rows are in sampling order within a chain and chains are stacked in run
    order; ``chain_ids`` records which chain produced each row.
    """

    columns: Tuple[ParameterKey, ...]
    values: np.ndarray
    chain_ids: np.ndarray

    def __post_init__(self) -> None:
        if self.values.ndim != 2:
            raise ValueError("Posterior values must be a 2-D (draws × columns) array.")
        if self.values.shape[1] != len(self.columns):
            raise ValueError(
                f"Posterior has {self.values.shape[1]} value columns but {len(self.columns)} keys."
            )
        if self.chain_ids.shape != (self.values.shape[0],):
            raise ValueError("chain_ids must hold exactly one entry per draw.")
        if len(set(self.columns)) != len(self.columns):
            raise ValueError("Posterior column keys must be unique.")

    @cached_property
    def _positions(self) -> Dict[ParameterKey, int]:
        return {key: idx for idx, key in enumerate(self.columns)}

    @property
    def n_draws(self) -> int:
        return int(self.values.shape[0])

    @property
    def chains(self) -> Tuple[int, ...]:
        """Chain identifiers in the order they appear."""
        return tuple(dict.fromkeys(int(chain) for chain in self.chain_ids))

    def has(self, key: ParameterKey) -> bool:
        return key in self._positions

    def column(self, key: ParameterKey) -> np.ndarray:
        """Return every draw of ``key``; raises ``MissingColumnError`` if absent."""
        try:
            position = self._positions[key]
        except KeyError as exc:
            raise MissingColumnError(
                f"Posterior has no column '{key.label}'.", parameter=key.label
            ) from exc
        return self.values[:, position]

    def keys_for(self, parameter: str) -> List[ParameterKey]:
        return [key for key in self.columns if key.parameter == parameter]

    def select(self, parameters: Sequence[str]) -> "PosteriorSamples":
        """Restrict the table to the given parameter families, keeping column order."""
        wanted = set(parameters)
        positions = [idx for idx, key in enumerate(self.columns) if key.parameter in wanted]
        return PosteriorSamples(
            columns=tuple(self.columns[idx] for idx in positions),
            values=self.values[:, positions],
            chain_ids=self.chain_ids,
        )

    def to_frame(self, include_chain: bool = False) -> pd.DataFrame:
        frame = pd.DataFrame(self.values, columns=[key.label for key in self.columns])
        if include_chain:
            frame.insert(0, CHAIN_COLUMN, self.chain_ids)
        return frame

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "PosteriorSamples":
        """Rebuild a table from ``<param>.<b>.<j>.`` columns (plus optional ``chain``)."""
        labels = [str(column) for column in frame.columns if column != CHAIN_COLUMN]
        keys = tuple(ParameterKey.parse(label) for label in labels)
        if CHAIN_COLUMN in frame.columns:
            chain_ids = frame[CHAIN_COLUMN].to_numpy(dtype=int)
        else:
            chain_ids = np.zeros(len(frame), dtype=int)
        return cls(columns=keys, values=frame[labels].to_numpy(dtype=float), chain_ids=chain_ids)


def concat_posteriors(tables: Sequence[PosteriorSamples]) -> PosteriorSamples:
    """Stack chain tables row-wise; every table must share the first one's columns."""
    if not tables:
        raise ValueError("No posterior tables to concatenate.")
    reference = tables[0].columns
    for position, table in enumerate(tables[1:], start=1):
        if table.columns != reference:
            chain_id: Optional[int] = table.chains[0] if table.n_draws else position
            missing = sorted(key.label for key in set(reference) - set(table.columns))
            extra = sorted(key.label for key in set(table.columns) - set(reference))
            raise SchemaMismatchError(
                f"Chain {chain_id} produced a different column set "
                f"(missing={missing or 'none'}, extra={extra or 'none'}, order differs={not missing and not extra}).",
                chain_id=chain_id,
            )
    return PosteriorSamples(
        columns=reference,
        values=np.concatenate([table.values for table in tables], axis=0),
        chain_ids=np.concatenate([table.chain_ids for table in tables]),
    )
