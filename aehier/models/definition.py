"""Picklable description of the hierarchical model handed to chain workers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import pymc as pm

from .builders import HierarchicalDataset, PriorConfig, build_model

TRACKED_PARAMETERS: Tuple[str, ...] = ("OR", "Diff", "gamma", "theta")
CELL_PARAMETERS: Tuple[str, ...] = ("OR", "Diff", "gamma", "theta", "theta1", "c", "t")


@dataclass(frozen=True)
class HierarchicalModelSpec:
    """Model topology plus the cell-level parameters recorded from each chain.

    Worker processes receive this object rather than a compiled ``pm.Model``
    and rebuild the graph locally with :meth:`build`.
    """

    priors: PriorConfig = field(default_factory=PriorConfig)
    tracked: Tuple[str, ...] = TRACKED_PARAMETERS

    def validate(self) -> None:
        self.priors.validate()
        if not self.tracked:
            raise ValueError("At least one parameter must be tracked.")
        unknown = [name for name in self.tracked if name not in CELL_PARAMETERS]
        if unknown:
            raise ValueError(f"Cannot track {', '.join(unknown)}; options: {', '.join(CELL_PARAMETERS)}")

    def build(self, dataset: HierarchicalDataset) -> pm.Model:
        self.validate()
        return build_model(dataset, self.priors)
