"""
Heuristic Configuration

Indicator and exclusion lists used by the URL classifier and the interaction
prober. The lists live in data/heuristics.json so they can be reviewed and
extended without touching classifier code.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ValidationError, field_validator

from service_scout.platform.config import settings

DEFAULT_HEURISTICS_PATH = Path(__file__).resolve().parent.parent / "data" / "heuristics.json"


class HeuristicConfig(BaseModel):
    """Static lists driving classification and clickable enumeration."""
    internal_tool_indicators: List[str]
    clickable_indicators: List[str]
    excluded_domains: List[str]
    excluded_schemes: List[str] = ["mailto", "tel"]

    @field_validator("internal_tool_indicators", "excluded_domains", "excluded_schemes")
    @classmethod
    def lowercase_entries(cls, values: List[str]) -> List[str]:
        return [value.strip().lower() for value in values if value.strip()]

    @field_validator("clickable_indicators")
    @classmethod
    def strip_entries(cls, values: List[str]) -> List[str]:
        return [value.strip() for value in values if value.strip()]


@lru_cache
def _load_from(path: str) -> HeuristicConfig:
    with open(path, "r", encoding="utf-8") as handle:
        raw = json.load(handle)
    try:
        return HeuristicConfig(**raw)
    except ValidationError as e:
        raise ValueError(f"Invalid heuristics file {path}: {e}") from e


def load_heuristics(path: Optional[str] = None) -> HeuristicConfig:
    """
    Load heuristic lists, cached per file path.

    Resolution order: explicit path, HEURISTICS_PATH setting, bundled defaults.
    """
    resolved = path or settings.HEURISTICS_PATH or str(DEFAULT_HEURISTICS_PATH)
    return _load_from(str(resolved))
