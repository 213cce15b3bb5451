"""Run settings for the simulation study."""

from __future__ import annotations

import logging
import os
from typing import Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from .priors import get_prior_model


logger = logging.getLogger(__name__)

_SEED_ENV = "EBSIM_SEED"
_CREDIBLE_LEVEL_ENV = "EBSIM_CREDIBLE_LEVEL"
_FDR_THRESHOLD_ENV = "EBSIM_FDR_THRESHOLD"
_TARGET_FDR_ENV = "EBSIM_TARGET_FDR"
_PRIOR_MODEL_ENV = "EBSIM_PRIOR_MODEL"

DEFAULT_COVERAGE_LEVELS: Tuple[float, ...] = (0.5, 0.6, 0.7, 0.8, 0.9, 0.95)
DEFAULT_Q_CUTOFFS: Tuple[float, ...] = (0.01, 0.02, 0.05, 0.1, 0.15, 0.2, 0.25)


class SimulationSettings(BaseModel):
    """Knobs for one simulation study run."""

    seed: int = 2017
    credible_level: float = Field(default=0.95, gt=0.0, lt=1.0)
    fdr_threshold: float = Field(default=0.3, gt=0.0, lt=1.0)
    target_fdr: float = Field(default=0.1, gt=0.0, lt=1.0)
    prior_model: str = "flat"
    refit_prior: bool = True
    coverage_levels: Tuple[float, ...] = DEFAULT_COVERAGE_LEVELS
    q_cutoffs: Tuple[float, ...] = DEFAULT_Q_CUTOFFS
    min_at_bats: int = Field(default=1, ge=1)
    moment_min_at_bats: int = Field(default=500, ge=1)

    model_config = ConfigDict(frozen=True)

    @field_validator("prior_model")
    @classmethod
    def _known_prior_model(cls, value: str) -> str:
        try:
            return get_prior_model(value).key
        except KeyError as exc:
            raise ValueError(str(exc)) from None

    @field_validator("coverage_levels", "q_cutoffs")
    @classmethod
    def _open_unit_interval(cls, values: Tuple[float, ...]) -> Tuple[float, ...]:
        if not values:
            raise ValueError("at least one value is required")
        for value in values:
            if not 0.0 < value < 1.0:
                raise ValueError(f"{value} is outside the open interval (0, 1)")
        return tuple(sorted(set(values)))


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.3f", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default


def settings_from_env(base: SimulationSettings | None = None) -> SimulationSettings:
    """Overlay ``EBSIM_*`` environment variables on top of ``base``.

    The result is re-validated, so out-of-range overrides raise ``ValidationError``.
    """

    base = base or SimulationSettings()
    payload = base.model_dump()
    payload.update(
        seed=_env_int(_SEED_ENV, base.seed),
        credible_level=_env_float(_CREDIBLE_LEVEL_ENV, base.credible_level),
        fdr_threshold=_env_float(_FDR_THRESHOLD_ENV, base.fdr_threshold),
        target_fdr=_env_float(_TARGET_FDR_ENV, base.target_fdr),
        prior_model=os.getenv(_PRIOR_MODEL_ENV) or base.prior_model,
    )
    return SimulationSettings.model_validate(payload)
