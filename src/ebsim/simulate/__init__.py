"""Synthetic ground truth drawn from a fitted prior."""

from .generation import SIMULATED_COLUMNS, replicate_players, simulate_players

__all__ = ["SIMULATED_COLUMNS", "replicate_players", "simulate_players"]
