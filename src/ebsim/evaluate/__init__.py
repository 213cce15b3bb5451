"""Compare estimates against known simulated truth."""

from .metrics import (
    ab_bins,
    bias_by_bin,
    coverage,
    fdr_calibration,
    hyperparameter_recovery,
    mse,
    mse_by_bin,
    mse_summary,
)

__all__ = [
    "ab_bins",
    "bias_by_bin",
    "coverage",
    "fdr_calibration",
    "hyperparameter_recovery",
    "mse",
    "mse_by_bin",
    "mse_summary",
]
