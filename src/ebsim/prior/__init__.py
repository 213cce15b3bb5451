"""Empirical-Bayes prior fitting for binomial count data."""

from .beta import BetaPrior, fit_beta_moments, fit_beta_prior
from .fit import Prior, fit_prior
from .likelihood import PriorFitError
from .regression import RegressionPrior, fit_beta_regression

__all__ = [
    "BetaPrior",
    "Prior",
    "PriorFitError",
    "RegressionPrior",
    "fit_beta_moments",
    "fit_beta_prior",
    "fit_beta_regression",
    "fit_prior",
]
