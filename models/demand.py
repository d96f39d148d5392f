from dataclasses import dataclass, field
from typing import List

from config.defaults import (
    DEFAULT_TIER1_CAPACITY_PER_AGENT,
    DEFAULT_TIER2_CAPACITY_PER_AGENT,
    SHORT_SHIFT_CAPACITY_FACTOR,
)


@dataclass(frozen=True)
class DemandProfile:
    user_count: int
    incidents_per_user_per_month: float
    average_handle_minutes: float
    occupancy_rate_pct: float       # 1-100
    tier1_share_pct: float          # 0-100, remainder goes to tier 2
    tier1_short_shift: bool = False  # tier 1 works 6h instead of 8h

    @property
    def tier2_share_pct(self) -> float:
        return 100 - self.tier1_share_pct


@dataclass(frozen=True)
class TierCapacity:
    """Monthly calls one agent can handle, per tier."""
    tier1_capacity_per_agent: float = DEFAULT_TIER1_CAPACITY_PER_AGENT
    tier2_capacity_per_agent: float = DEFAULT_TIER2_CAPACITY_PER_AGENT

    def effective_tier1_capacity(self, short_shift: bool, short_shift_factor: float = SHORT_SHIFT_CAPACITY_FACTOR) -> float:
        if short_shift:
            return self.tier1_capacity_per_agent * short_shift_factor
        return self.tier1_capacity_per_agent


@dataclass
class StaffingResult:
    monthly_call_volume: float
    tier1_agents: int               # >= 1
    tier2_agents: int               # >= 1
    workload_units: float           # raw workload before occupancy/safety
    adjusted_workload: float = 0.0
    tier1_workload_basic: int = 0
    tier2_workload_basic: int = 0
    tier1_capacity_agents: int = 0
    tier2_capacity_agents: int = 0
    tier1_capacity_per_agent: float = DEFAULT_TIER1_CAPACITY_PER_AGENT
    tier2_capacity_per_agent: float = DEFAULT_TIER2_CAPACITY_PER_AGENT
    explanation_steps: List[str] = field(default_factory=list)

    @property
    def total_agents(self) -> int:
        return self.tier1_agents + self.tier2_agents
