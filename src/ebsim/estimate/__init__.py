"""Raw and empirical-Bayes estimates for simulated or real players."""

from .shrinkage import (
    add_estimates,
    add_prop_test,
    credible_interval,
    discoveries,
    estimate_records,
)

__all__ = [
    "add_estimates",
    "add_prop_test",
    "credible_interval",
    "discoveries",
    "estimate_records",
]
