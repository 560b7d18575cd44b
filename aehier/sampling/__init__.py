"""Chain execution and posterior sample tables."""

from .chain_runner import retained_positions, run_chain
from .config import SamplerConfig
from .orchestrator import ChainPool, chain_seeds, default_worker_count, run_chains, run_with_config
from .posterior import ParameterKey, PosteriorSamples, concat_posteriors

__all__ = [
    "ChainPool",
    "ParameterKey",
    "PosteriorSamples",
    "SamplerConfig",
    "chain_seeds",
    "concat_posteriors",
    "default_worker_count",
    "retained_positions",
    "run_chain",
    "run_chains",
    "run_with_config",
]
