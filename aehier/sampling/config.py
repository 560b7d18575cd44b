"""MCMC control parameters shared by the chain runner, orchestrator and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SamplerConfig:
    """Adaptation, burn-in, retention and parallelism settings for one run."""

    n_adapt: int = 1000
    n_burn: int = 1000
    n_iter: int = 1000
    thin: int = 20
    n_chain: int = 2
    max_workers: Optional[int] = None
    random_seed: Optional[int] = None
    timeout: Optional[float] = None

    def validate(self) -> None:
        if self.n_adapt < 0 or self.n_burn < 0:
            raise ValueError("n_adapt and n_burn cannot be negative.")
        if self.n_iter < 1:
            raise ValueError("n_iter must be at least 1.")
        if self.thin < 1:
            raise ValueError("thin must be at least 1.")
        if self.thin > self.n_iter:
            raise ValueError("thin cannot exceed n_iter; no draws would be retained.")
        if self.n_chain < 1:
            raise ValueError("n_chain must be at least 1.")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be at least 1 when provided.")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive when provided.")

    @property
    def retained_per_chain(self) -> int:
        """Number of rows each chain contributes to the posterior table."""
        return self.n_iter // self.thin
