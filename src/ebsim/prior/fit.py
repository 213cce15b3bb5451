"""Fit whichever prior model a run is configured for."""

from __future__ import annotations

from typing import Union

from ebsim.config import get_prior_model

from .beta import BetaPrior, fit_beta_prior
from .regression import RegressionPrior, fit_beta_regression


Prior = Union[BetaPrior, RegressionPrior]


def fit_prior(hits, at_bats, *, model: str = "flat", min_at_bats: int = 500) -> Prior:
    """Fit the prior registered under ``model`` to per-player counts."""

    spec = get_prior_model(model)
    if spec.per_player:
        return fit_beta_regression(hits, at_bats, min_at_bats=min_at_bats)
    return fit_beta_prior(hits, at_bats, min_at_bats=min_at_bats)
