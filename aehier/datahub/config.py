"""Static configuration for AE tables, output paths and reference initial values."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple, TypedDict


class InitValues(TypedDict):
    mu_gamma_0: float
    tau_gamma_0: float
    mu_theta_0: float
    tau_theta_0: float
    alpha_pi: float
    beta_pi: float


# Default output directory used by the Typer CLI; callers may override it.
DEFAULT_OUTPUT_ROOT = Path("outputs")

# ---------------------------------------------------------------------------
# AE table layout.

SOC_COLUMN = "SoC"
PT_COLUMN = "PT"
REQUIRED_COLUMNS: Tuple[str, ...] = ("SoC", "PT", "Nt", "Nc", "AEt", "AEc", "b", "j")

# Column names produced by the per-patient preprocessing step in older exports.
COLUMN_ALIASES: Dict[str, str] = {
    "AEBODSYS": SOC_COLUMN,
    "AEDECOD": PT_COLUMN,
}

METHOD_LABEL = "Bayesian Hierarchical Model"

# ---------------------------------------------------------------------------
# Reference initial values for two chains.

INIT_KEYS: Tuple[str, ...] = (
    "mu_gamma_0",
    "tau_gamma_0",
    "mu_theta_0",
    "tau_theta_0",
    "alpha_pi",
    "beta_pi",
)

REFERENCE_INITS: Tuple[InitValues, ...] = (
    {
        "mu_gamma_0": 0.1,
        "tau_gamma_0": 0.1,
        "mu_theta_0": 0.1,
        "tau_theta_0": 0.1,
        "alpha_pi": 2.0,
        "beta_pi": 2.0,
    },
    {
        "mu_gamma_0": 1.0,
        "tau_gamma_0": 1.0,
        "mu_theta_0": 1.0,
        "tau_theta_0": 1.0,
        "alpha_pi": 10.0,
        "beta_pi": 10.0,
    },
)


__all__ = [
    "COLUMN_ALIASES",
    "DEFAULT_OUTPUT_ROOT",
    "INIT_KEYS",
    "InitValues",
    "METHOD_LABEL",
    "PT_COLUMN",
    "REFERENCE_INITS",
    "REQUIRED_COLUMNS",
    "SOC_COLUMN",
]
