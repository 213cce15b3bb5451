"""Record models shared across ingest, simulation and estimation."""

from .player import ESTIMATE_COLUMNS, EstimateRecord, PlayerRecord, SimulatedRecord

__all__ = ["ESTIMATE_COLUMNS", "EstimateRecord", "PlayerRecord", "SimulatedRecord"]
