from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from config.defaults import DEFAULT_CONTRACT_MONTHS
from models.costs import MarginPolicy, OtherCost, PositionRate, TaxConfig, TeamPosition
from models.schedule import Schedule


@dataclass
class ProjectSnapshot:
    """Read-only project data assembled by the UI forms.

    Scenario adjustments are always replayed on a deep copy, never on the
    snapshot the caller handed in.
    """
    name: str
    team: List[TeamPosition]
    position_rates: Dict[str, PositionRate]
    schedule: Optional[Schedule] = None
    tax_config: TaxConfig = field(default_factory=TaxConfig)
    margin_policy: MarginPolicy = field(default_factory=MarginPolicy)
    other_costs: List[OtherCost] = field(default_factory=list)
    contract_months: int = DEFAULT_CONTRACT_MONTHS
    start_date: Optional[date] = None
    total_price_override: Optional[float] = None  # negotiated monthly price

    @property
    def team_headcount(self) -> int:
        return sum(p.headcount for p in self.team)
