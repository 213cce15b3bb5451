"""Configuration helpers for prior models and simulation settings."""

from .priors import PriorModelSpec, get_prior_model, iter_prior_models
from .settings import SimulationSettings, settings_from_env

__all__ = [
    "PriorModelSpec",
    "SimulationSettings",
    "get_prior_model",
    "iter_prior_models",
    "settings_from_env",
]
