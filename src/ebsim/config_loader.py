"""Persist and load CLI run profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from ebsim.config import SimulationSettings


@dataclass
class RunProfile:
    column_mapping: Dict[str, str] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "RunProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls(
            column_mapping=data.get("column_mapping", {}),
            settings=data.get("settings", {}),
        )

    @classmethod
    def from_settings(
        cls, settings: SimulationSettings, column_mapping: Dict[str, str] | None = None
    ) -> "RunProfile":
        return cls(
            column_mapping=dict(column_mapping or {}),
            settings=settings.model_dump(mode="json"),
        )

    def to_settings(self, **overrides: Any) -> SimulationSettings:
        payload = {**self.settings, **{k: v for k, v in overrides.items() if v is not None}}
        return SimulationSettings.model_validate(payload)

    def save(self, path: Path) -> None:
        payload = {
            "column_mapping": self.column_mapping,
            "settings": self.settings,
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
