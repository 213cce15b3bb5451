"""Accuracy, bias, calibration and FDR summaries for simulated estimates."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from ebsim.estimate import credible_interval


METHODS: tuple[str, ...] = ("raw", "shrunken")

# Fewest players in a bin for which a slope is reported.
_MIN_BIN_PLAYERS = 3


def _require(frame: pd.DataFrame, columns: Iterable[str]) -> None:
    missing = [column for column in columns if column not in frame.columns]
    if missing:
        raise ValueError(f"missing columns: {', '.join(missing)}")


def mse(estimate, truth) -> float:
    """Mean squared error of ``estimate`` against ``truth``."""

    estimate = np.asarray(estimate, dtype=float)
    truth = np.asarray(truth, dtype=float)
    if estimate.shape != truth.shape:
        raise ValueError("estimate and truth must have the same shape")
    if estimate.size == 0:
        return float("nan")
    return float(np.mean((estimate - truth) ** 2))


def mse_summary(frame: pd.DataFrame, methods: Sequence[str] = METHODS) -> pd.DataFrame:
    _require(frame, ["true_p", *methods])
    return pd.DataFrame(
        {
            "method": list(methods),
            "mse": [mse(frame[method], frame["true_p"]) for method in methods],
        }
    )


def ab_bins(at_bats) -> np.ndarray:
    """Logarithmic at-bat bins: the nearest power of ten."""

    at_bats = np.asarray(at_bats, dtype=float)
    if np.any(at_bats <= 0):
        raise ValueError("at_bats must be positive")
    return (10 ** np.round(np.log10(at_bats))).astype("int64")


def _by_bin(frame: pd.DataFrame):
    binned = frame.assign(ab_bin=ab_bins(frame["at_bats"]))
    return binned.groupby("ab_bin", sort=True)


def mse_by_bin(frame: pd.DataFrame, methods: Sequence[str] = METHODS) -> pd.DataFrame:
    _require(frame, ["at_bats", "true_p", *methods])
    rows = []
    for ab_bin, group in _by_bin(frame):
        for method in methods:
            rows.append(
                {
                    "ab_bin": int(ab_bin),
                    "method": method,
                    "players": len(group),
                    "mse": mse(group[method], group["true_p"]),
                }
            )
    return pd.DataFrame(rows, columns=["ab_bin", "method", "players", "mse"])


def bias_by_bin(frame: pd.DataFrame, methods: Sequence[str] = METHODS) -> pd.DataFrame:
    """Least-squares slope of each estimate on ``true_p`` within each AB bin.

    A slope of 1 means the estimate tracks the truth without systematic
    over- or under-statement.
    """

    _require(frame, ["at_bats", "true_p", *methods])
    rows = []
    for ab_bin, group in _by_bin(frame):
        truth = group["true_p"].to_numpy(dtype=float)
        usable = len(group) >= _MIN_BIN_PLAYERS and np.ptp(truth) > 0
        for method in methods:
            slope = intercept = float("nan")
            if usable:
                fit = sp_stats.linregress(truth, group[method].to_numpy(dtype=float))
                slope, intercept = float(fit.slope), float(fit.intercept)
            rows.append(
                {
                    "ab_bin": int(ab_bin),
                    "method": method,
                    "players": len(group),
                    "slope": slope,
                    "intercept": intercept,
                }
            )
    return pd.DataFrame(rows, columns=["ab_bin", "method", "players", "slope", "intercept"])


def coverage(frame: pd.DataFrame, levels: Sequence[float]) -> pd.DataFrame:
    """Fraction of credible intervals containing ``true_p`` at each level.

    Intervals are recomputed from the posterior parameters for every level.
    """

    _require(frame, ["alpha1", "beta1", "true_p"])
    truth = frame["true_p"].to_numpy(dtype=float)
    rows = []
    for level in sorted(levels):
        low, high = credible_interval(frame["alpha1"], frame["beta1"], level)
        covered = (low <= truth) & (truth <= high)
        rows.append(
            {
                "level": float(level),
                "players": len(frame),
                "coverage": float(np.mean(covered)) if len(frame) else float("nan"),
            }
        )
    return pd.DataFrame(rows, columns=["level", "players", "coverage"])


def fdr_calibration(
    frame: pd.DataFrame,
    *,
    threshold: float,
    q_cutoffs: Sequence[float],
) -> pd.DataFrame:
    """Empirical false discovery proportion at each q-value cutoff.

    A discovery is false when the player's ``true_p`` is below ``threshold``.
    ``expected_fdp`` is the mean PEP of the admitted players, which is what
    the q-value promises.
    """

    _require(frame, ["qvalue", "pep", "true_p"])
    qvalue = frame["qvalue"].to_numpy(dtype=float)
    pep = frame["pep"].to_numpy(dtype=float)
    false = frame["true_p"].to_numpy(dtype=float) < threshold
    rows = []
    for cutoff in sorted(q_cutoffs):
        admitted = qvalue <= cutoff
        count = int(admitted.sum())
        rows.append(
            {
                "q_cutoff": float(cutoff),
                "admitted": count,
                "false_discoveries": int(false[admitted].sum()),
                "fdp": float(false[admitted].mean()) if count else float("nan"),
                "expected_fdp": float(pep[admitted].mean()) if count else float("nan"),
            }
        )
    return pd.DataFrame(
        rows,
        columns=["q_cutoff", "admitted", "false_discoveries", "fdp", "expected_fdp"],
    )


def hyperparameter_recovery(fits: pd.DataFrame, truth: Mapping[str, float]) -> pd.DataFrame:
    """Bias and RMSE of re-fitted hyperparameters across replications.

    ``fits`` holds one row per replication with a column per parameter named
    in ``truth``.
    """

    _require(fits, truth.keys())
    rows = []
    for parameter, true_value in truth.items():
        estimates = fits[parameter].to_numpy(dtype=float)
        rows.append(
            {
                "parameter": parameter,
                "true": float(true_value),
                "mean_estimate": float(np.mean(estimates)),
                "bias": float(np.mean(estimates) - true_value),
                "rmse": float(np.sqrt(np.mean((estimates - true_value) ** 2))),
            }
        )
    return pd.DataFrame(rows, columns=["parameter", "true", "mean_estimate", "bias", "rmse"])
