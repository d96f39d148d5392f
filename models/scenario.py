from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from models.costs import CostBreakdown


class AdjustmentCategory(str, Enum):
    PRICE = "price"
    TERMS = "terms"
    SCOPE = "scope"
    TIMELINE = "timeline"


@dataclass
class Adjustment:
    category: AdjustmentCategory
    field: str                      # e.g. "totalPrice", "margin", "contractPeriod"
    original_value: Any
    adjusted_value: Any
    reason: str = ""

    @property
    def impact_pct(self) -> float:
        """(adjusted - original) / original as a percentage; 0 when undefined."""
        try:
            original = float(self.original_value)
            adjusted = float(self.adjusted_value)
        except (TypeError, ValueError):
            return 0.0
        if original == 0:
            return 0.0
        return (adjusted - original) / original * 100

    @property
    def target(self) -> tuple:
        return (AdjustmentCategory(self.category), self.field)


@dataclass
class NegotiationScenario:
    scenario_id: str
    name: str
    description: str
    is_baseline: bool = False
    adjustments: List[Adjustment] = field(default_factory=list)
    results: Optional[CostBreakdown] = None
    version: int = 1
    created_at: datetime = field(default_factory=datetime.now)
    warnings: List[str] = field(default_factory=list)  # no-op adjustments, for the UI


@dataclass
class ComparisonMetric:
    key: str
    name: str
    values: List[float]
    unit: str
    higher_is_better: bool


@dataclass
class ScenarioComparison:
    scenario_ids: List[str]
    scenario_names: List[str]
    metrics: List[ComparisonMetric]
    recommendation: str
    verdict: str  # "recommended", "higher_profit", "better_margin", "less_favorable", "no_baseline"
