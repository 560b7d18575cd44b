"""Bayesian hierarchical modelling of adverse-event safety signals."""

from .datahub import AERecord, load_aedata, read_aedata
from .errors import (
    ChainTimeoutError,
    HierModelError,
    JoinAmbiguityError,
    MissingColumnError,
    SamplerDivergenceError,
    SchemaMismatchError,
)
from .metrics import ProbabilityDraws, SummaryStats, build_report, extract_probabilities, summarize
from .models import HierarchicalModelSpec, PriorConfig, build_dataset
from .pipeline import hierarchical_report, sample_history
from .sampling import ParameterKey, PosteriorSamples, SamplerConfig, run_chain, run_chains

__version__ = "0.1.0"

__all__ = [
    "AERecord",
    "ChainTimeoutError",
    "HierModelError",
    "HierarchicalModelSpec",
    "JoinAmbiguityError",
    "MissingColumnError",
    "ParameterKey",
    "PosteriorSamples",
    "PriorConfig",
    "ProbabilityDraws",
    "SamplerConfig",
    "SamplerDivergenceError",
    "SchemaMismatchError",
    "SummaryStats",
    "build_dataset",
    "build_report",
    "extract_probabilities",
    "hierarchical_report",
    "load_aedata",
    "read_aedata",
    "run_chain",
    "run_chains",
    "sample_history",
    "summarize",
]
