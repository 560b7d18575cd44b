"""Shared data records for AE-level binomial counts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class AERecord:
    """Counts for one adverse event, grouped by SOC (``b``) and PT (``j``)."""

    soc_index: int
    pt_index: int
    n_control: int
    n_treatment: int
    ae_control: int
    ae_treatment: int
    soc_label: str
    pt_label: str

    @property
    def cell(self) -> Tuple[int, int]:
        """The ``(b, j)`` group cell this AE maps onto."""
        return (self.soc_index, self.pt_index)

    @property
    def key(self) -> Tuple[str, str]:
        """The ``(SoC, PT)`` label pair used when joining report tables."""
        return (self.soc_label, self.pt_label)
