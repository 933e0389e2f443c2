"""Shared RiskIndicator dataclass: the internal output of every extractor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

IndicatorSource = Literal["keyword", "assessment", "behavior"]


@dataclass(frozen=True)
class RiskIndicator:
    source: IndicatorSource
    weight: int
    label: str
    matches: tuple[str, ...] = ()  # keywords that fired, keyword source only
