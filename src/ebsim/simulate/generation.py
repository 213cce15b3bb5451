"""Draw true batting probabilities and hit counts for every player."""

from __future__ import annotations

import logging
from typing import Tuple, Union

import numpy as np
import pandas as pd

from ebsim.prior import Prior


logger = logging.getLogger(__name__)

SIMULATED_COLUMNS: Tuple[str, ...] = ("player_id", "at_bats", "true_p", "hits")

SeedLike = Union[int, np.random.SeedSequence]

_P_MIN = np.finfo(float).tiny
_P_MAX = np.nextafter(1.0, 0.0)


def simulate_players(players: pd.DataFrame, prior: Prior, *, seed: SeedLike) -> pd.DataFrame:
    """Replace each player's hits with a draw from the prior predictive.

    ``true_p ~ Beta(alpha_i, beta_i)`` and ``hits ~ Binomial(at_bats, true_p)``.
    At-bats are copied unchanged. The same ``seed`` always yields the same table.
    """

    at_bats = players["at_bats"].to_numpy(dtype="int64")
    if np.any(at_bats <= 0):
        raise ValueError("every player needs a positive number of at-bats")

    rng = np.random.default_rng(seed)
    alpha, beta = prior.parameters(at_bats)
    true_p = np.clip(rng.beta(alpha, beta), _P_MIN, _P_MAX)
    hits = rng.binomial(at_bats, true_p)

    simulated = pd.DataFrame(
        {
            "player_id": players["player_id"].to_numpy(),
            "at_bats": at_bats,
            "true_p": true_p,
            "hits": hits.astype("int64"),
        },
        columns=list(SIMULATED_COLUMNS),
    )
    logger.debug("Simulated %s players (mean true_p %.4f)", len(simulated), float(np.mean(true_p)))
    return simulated


def replicate_players(
    players: pd.DataFrame,
    prior: Prior,
    *,
    seed: int,
    replications: int,
) -> pd.DataFrame:
    """Stack ``replications`` independent simulations with a ``replication`` column.

    Each replication draws from its own child of ``SeedSequence(seed)``.
    """

    if replications < 1:
        raise ValueError("replications must be at least 1")
    children = np.random.SeedSequence(seed).spawn(replications)
    frames = []
    for index, child in enumerate(children, start=1):
        frame = simulate_players(players, prior, seed=child)
        frame.insert(0, "replication", index)
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)
