"""Registry of supported prior models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class PriorModelSpec:
    key: str
    label: str
    parameters: Tuple[str, ...]
    covariate: Optional[str] = None

    @property
    def per_player(self) -> bool:
        return self.covariate is not None


_PRIOR_MODELS: Dict[str, PriorModelSpec] = {
    "flat": PriorModelSpec(
        key="flat",
        label="Beta(alpha, beta) shared by every player",
        parameters=("alpha", "beta"),
    ),
    "ab_dependent": PriorModelSpec(
        key="ab_dependent",
        label="Beta mean linear in log(at-bats) on the logit scale, shared dispersion",
        parameters=("mu_intercept", "mu_log_ab", "sigma"),
        covariate="log_at_bats",
    ),
}


def iter_prior_models() -> Iterable[PriorModelSpec]:
    """Return an iterator of all configured prior models."""

    return _PRIOR_MODELS.values()


def get_prior_model(key: str) -> PriorModelSpec:
    """Fetch a prior model by key, raising KeyError if missing."""

    normalized = key.strip().lower().replace("-", "_")
    if normalized not in _PRIOR_MODELS:
        raise KeyError(f"No prior model configured for key={key!r}")
    return _PRIOR_MODELS[normalized]
