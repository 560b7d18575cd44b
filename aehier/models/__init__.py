"""Model definition for the Bayesian hierarchical AE mixture model."""

from .builders import HierarchicalDataset, PriorConfig, build_dataset, build_model, order_cells
from .definition import CELL_PARAMETERS, TRACKED_PARAMETERS, HierarchicalModelSpec

__all__ = [
    "CELL_PARAMETERS",
    "HierarchicalDataset",
    "HierarchicalModelSpec",
    "PriorConfig",
    "TRACKED_PARAMETERS",
    "build_dataset",
    "build_model",
    "order_cells",
]
