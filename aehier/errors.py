"""Error kinds raised by the sampling and reporting stages."""

from __future__ import annotations

from typing import Optional


class HierModelError(RuntimeError):
    """Base class for failures of the hierarchical AE model pipeline."""


class SamplerDivergenceError(HierModelError):
    """The sampler could not initialise (or evaluate) a chain."""

    def __init__(self, message: str, chain_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.chain_id = chain_id


class ChainTimeoutError(HierModelError, TimeoutError):
    """Chains were still running when the orchestrator's timeout expired."""

    def __init__(self, message: str, pending: int = 0) -> None:
        super().__init__(message)
        self.pending = pending


class SchemaMismatchError(HierModelError):
    """Chains returned posterior tables with different column sets."""

    def __init__(self, message: str, chain_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.chain_id = chain_id


class MissingColumnError(HierModelError):
    """A parameter column required for an AE is absent from the posterior."""

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        soc: Optional[str] = None,
        pt: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.parameter = parameter
        self.soc = soc
        self.pt = pt


class JoinAmbiguityError(HierModelError):
    """The (SoC, PT) join key is not unique across the AE table."""

    def __init__(self, message: str, duplicates: tuple = ()) -> None:
        super().__init__(message)
        self.duplicates = tuple(duplicates)


__all__ = [
    "ChainTimeoutError",
    "HierModelError",
    "JoinAmbiguityError",
    "MissingColumnError",
    "SamplerDivergenceError",
    "SchemaMismatchError",
]
