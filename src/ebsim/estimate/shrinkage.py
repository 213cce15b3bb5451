"""Posterior summaries under a fitted Beta prior."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from ebsim.models import ESTIMATE_COLUMNS, EstimateRecord
from ebsim.prior import Prior


def _check_level(level: float) -> None:
    if not 0.0 < level < 1.0:
        raise ValueError(f"credible level must lie in (0, 1), got {level}")


def credible_interval(alpha1, beta1, level: float = 0.95) -> Tuple[np.ndarray, np.ndarray]:
    """Equal-tailed posterior Beta interval at ``level``."""

    _check_level(level)
    tail = (1.0 - level) / 2.0
    low = sp_stats.beta.ppf(tail, alpha1, beta1)
    high = sp_stats.beta.ppf(1.0 - tail, alpha1, beta1)
    return np.asarray(low, dtype=float), np.asarray(high, dtype=float)


def add_estimates(frame: pd.DataFrame, prior: Prior, *, level: float = 0.95) -> pd.DataFrame:
    """Return a copy of ``frame`` with raw, shrunken and interval columns.

    ``frame`` needs ``hits`` and ``at_bats``; any other columns (``true_p`` for
    simulated players) are carried through.
    """

    _check_level(level)
    result = frame.copy()
    hits = result["hits"].to_numpy(dtype=float)
    at_bats = result["at_bats"].to_numpy(dtype=float)
    alpha, beta = prior.parameters(at_bats)

    result["raw"] = hits / at_bats
    result["alpha1"] = hits + alpha
    result["beta1"] = at_bats - hits + beta
    result["shrunken"] = result["alpha1"] / (result["alpha1"] + result["beta1"])
    result["low"], result["high"] = credible_interval(result["alpha1"], result["beta1"], level)
    return result


def add_prop_test(frame: pd.DataFrame, *, threshold: float = 0.3) -> pd.DataFrame:
    """Add posterior error probabilities and q-values for ``p > threshold``.

    ``pep`` is the posterior probability that the player's true rate is at or
    below ``threshold``. Sorting by ``pep``, a player's ``qvalue`` is the mean
    PEP of everyone up to and including them, i.e. the expected false
    discovery proportion of a list that stops there.
    """

    if not 0.0 < threshold < 1.0:
        raise ValueError(f"threshold must lie in (0, 1), got {threshold}")
    if "alpha1" not in frame or "beta1" not in frame:
        raise ValueError("add_estimates must run before add_prop_test")

    result = frame.copy()
    pep = sp_stats.beta.cdf(threshold, result["alpha1"], result["beta1"])
    order = np.argsort(pep, kind="stable")
    running = np.cumsum(pep[order]) / np.arange(1, len(pep) + 1)
    qvalue = np.empty_like(running)
    qvalue[order] = running

    result["pep"] = pep
    result["qvalue"] = qvalue
    return result


def discoveries(frame: pd.DataFrame, *, target_fdr: float = 0.1) -> pd.DataFrame:
    """Players admitted at ``qvalue <= target_fdr``, best evidence first."""

    admitted = frame[frame["qvalue"] <= target_fdr]
    return admitted.sort_values("qvalue", kind="stable")


def estimate_records(frame: pd.DataFrame) -> List[EstimateRecord]:
    """Validate estimate rows into ``EstimateRecord`` models."""

    columns = [column for column in ESTIMATE_COLUMNS if column in frame.columns]
    records: List[EstimateRecord] = []
    for row in frame[columns].itertuples(index=False):
        payload = {
            key: value.item() if isinstance(value, np.generic) else value
            for key, value in row._asdict().items()
        }
        payload["player_id"] = str(payload["player_id"])
        records.append(EstimateRecord(**payload))
    return records
