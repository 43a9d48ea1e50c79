from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "diff_rules.yml"

PROPAGATION_MODES = ("single_pass", "closure")
IDENTITY_MODES = ("name", "qualified")
RENAME_STRATEGIES = ("first_match", "best_match")

DEFAULT_TRACKED_FIELDS = ("operationId", "parameters", "requestBody", "responses")
DEFAULT_DESCRIPTIVE_FIELDS = ("summary", "description")
DEFAULT_RENAME_WEIGHTS = {
    "responses": 2,
    "parameters": 2,
    "requestBody": 2,
    "summary": 1,
    "description": 1,
}


@dataclass(frozen=True)
class RenameConfig:
    threshold: int
    strategy: str
    weights: Dict[str, int]


@dataclass(frozen=True)
class ReportConfig:
    inline_affected_paths: int


@dataclass(frozen=True)
class DiffConfig:
    tracked_fields: Tuple[str, ...]
    descriptive_fields: Tuple[str, ...]
    include_descriptive_fields: bool
    propagation: str
    component_identity: str
    key_order_sensitive: bool
    rename: RenameConfig
    report: ReportConfig

    @property
    def compared_fields(self) -> Tuple[str, ...]:
        if not self.include_descriptive_fields:
            return self.tracked_fields
        extra = tuple(
            field for field in self.descriptive_fields if field not in self.tracked_fields
        )
        return self.tracked_fields + extra

    @property
    def closure_propagation(self) -> bool:
        return self.propagation == "closure"


def _choice(value: Any, allowed: Tuple[str, ...], key: str) -> str:
    value = str(value)
    if value not in allowed:
        raise ValueError(f"Unsupported {key} '{value}', expected one of {allowed}")
    return value


def _build_config(data: Mapping[str, Any]) -> DiffConfig:
    rename_data = data.get("rename") or {}
    report_data = data.get("report") or {}
    weights = dict(DEFAULT_RENAME_WEIGHTS)
    weights.update(
        {str(key): int(value) for key, value in (rename_data.get("weights") or {}).items()}
    )
    rename = RenameConfig(
        threshold=int(rename_data.get("threshold", 4)),
        strategy=_choice(
            rename_data.get("strategy", "first_match"),
            RENAME_STRATEGIES,
            "rename.strategy",
        ),
        weights=weights,
    )
    report = ReportConfig(
        inline_affected_paths=int(report_data.get("inline_affected_paths", 5)),
    )
    return DiffConfig(
        tracked_fields=tuple(data.get("tracked_fields") or DEFAULT_TRACKED_FIELDS),
        descriptive_fields=tuple(
            data.get("descriptive_fields") or DEFAULT_DESCRIPTIVE_FIELDS
        ),
        include_descriptive_fields=bool(data.get("include_descriptive_fields", False)),
        propagation=_choice(
            data.get("propagation", "single_pass"), PROPAGATION_MODES, "propagation"
        ),
        component_identity=_choice(
            data.get("component_identity", "name"),
            IDENTITY_MODES,
            "component_identity",
        ),
        key_order_sensitive=bool(data.get("key_order_sensitive", False)),
        rename=rename,
        report=report,
    )


@lru_cache
def get_diff_config(path: Path = CONFIG_PATH) -> DiffConfig:
    data = yaml.safe_load(path.read_text()) if path.exists() else {}
    return _build_config(data or {})


def normalize_config(
    config: Optional[DiffConfig | Mapping[str, Any]],
) -> DiffConfig:
    if config is None:
        return get_diff_config()
    if isinstance(config, DiffConfig):
        return config
    return _build_config(config)
