"""Canonical player models shared across ingestion, simulation and estimation layers."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict


class PlayerRecord(BaseModel):
    """Career batting totals for one player."""

    player_id: str = Field(..., min_length=1)
    hits: int = Field(..., ge=0)
    at_bats: int = Field(..., gt=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _hits_within_at_bats(self) -> "PlayerRecord":
        if self.hits > self.at_bats:
            raise ValueError(
                f"player {self.player_id!r} has {self.hits} hits in {self.at_bats} at-bats"
            )
        return self


class SimulatedRecord(BaseModel):
    """Synthetic player: real at-bats, drawn probability and drawn hits."""

    player_id: str = Field(..., min_length=1)
    at_bats: int = Field(..., gt=0)
    true_p: float = Field(..., gt=0.0, lt=1.0)
    hits: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _hits_within_at_bats(self) -> "SimulatedRecord":
        if self.hits > self.at_bats:
            raise ValueError(
                f"simulated player {self.player_id!r} has more hits than at-bats"
            )
        return self


class EstimateRecord(BaseModel):
    """Per-player raw and empirical-Bayes estimates."""

    player_id: str
    hits: int = Field(..., ge=0)
    at_bats: int = Field(..., gt=0)
    raw: float = Field(..., ge=0.0, le=1.0)
    shrunken: float = Field(..., gt=0.0, lt=1.0)
    alpha1: float = Field(..., gt=0.0)
    beta1: float = Field(..., gt=0.0)
    low: float = Field(..., ge=0.0, le=1.0)
    high: float = Field(..., ge=0.0, le=1.0)
    pep: float | None = Field(default=None, ge=0.0, le=1.0)
    qvalue: float | None = Field(default=None, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)


ESTIMATE_COLUMNS: tuple[str, ...] = tuple(EstimateRecord.model_fields)
