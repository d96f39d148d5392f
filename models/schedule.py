import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class CoveragePolicy(str, Enum):
    BUSINESS_HOURS = "business_hours"   # 8x5
    EXTENDED_HOURS = "extended_hours"   # 12x5
    FULL_TIME = "full_time"             # 24x7


def time_to_hour_bounds(start_time: str, end_time: str) -> tuple:
    """Return (start_hour, end_hour) with end rounded up, e.g. 23:59 -> 24."""
    sh, sm = (int(p) for p in start_time.split(":"))
    eh, em = (int(p) for p in end_time.split(":"))
    start_hour = sh + sm / 60
    end_hour = math.ceil(eh + em / 60)
    return math.floor(start_hour), end_hour


@dataclass
class Shift:
    shift_id: str
    name: str
    start_time: str                 # "HH:MM"
    end_time: str                   # "HH:MM"; <= start means overnight
    days_of_week: List[int]         # 0-6, Sunday = 0
    assigned_agent_refs: List[str] = field(default_factory=list)
    is_premium_shift: bool = False
    rate_multiplier: float = 1.0    # >= 1.0
    tier: Optional[str] = None      # "N1", "N2" or None for mixed shifts

    @property
    def headcount(self) -> int:
        return len(self.assigned_agent_refs)

    @property
    def is_overnight(self) -> bool:
        start, end = time_to_hour_bounds(self.start_time, self.end_time)
        return end <= start

    @property
    def duration_hours(self) -> int:
        start, end = time_to_hour_bounds(self.start_time, self.end_time)
        if end > start:
            return end - start
        return (24 - start) + end

    def covers(self, day: int, hour: int) -> bool:
        """Whether this shift is on duty at the given day-of-week and hour."""
        start, end = time_to_hour_bounds(self.start_time, self.end_time)
        if end > start:
            return day in self.days_of_week and start <= hour < end
        # Overnight: tail of the start day plus head of the next day
        if day in self.days_of_week and hour >= start:
            return True
        previous_day = (day - 1) % 7
        return previous_day in self.days_of_week and hour < end

    def agents_for_tier(self, tier: str) -> List[str]:
        prefix = f"{tier.lower()}-"
        return [ref for ref in self.assigned_agent_refs if ref.startswith(prefix)]


@dataclass
class CoverageRule:
    minimum_staff: int
    preferred_staff: int


@dataclass
class SpecialRate:
    name: str
    condition: str                  # "night", "weekend", "holiday", ...
    multiplier: float
    applicable_shift_ids: List[str] = field(default_factory=list)  # empty = every shift

    def applies_to(self, shift_id: str) -> bool:
        return not self.applicable_shift_ids or shift_id in self.applicable_shift_ids


@dataclass
class Schedule:
    name: str
    coverage_policy: CoveragePolicy
    shifts: List[Shift]
    coverage_rule: CoverageRule
    special_rates: List[SpecialRate] = field(default_factory=list)
    window_start: str = "08:00"     # covered window the rule applies to
    window_end: str = "17:00"
    window_days: List[int] = field(default_factory=list)

    def headcount_by_tier(self) -> Dict[str, int]:
        counts: Dict[str, int] = {"N1": 0, "N2": 0}
        for shift in self.shifts:
            for tier in counts:
                counts[tier] += len(shift.agents_for_tier(tier))
        return counts

    @property
    def total_headcount(self) -> int:
        return sum(s.headcount for s in self.shifts)

    def staff_on_duty(self, day: int, hour: int) -> int:
        return sum(s.headcount for s in self.shifts if s.covers(day, hour))

    def effective_multiplier(self, shift: Shift) -> float:
        """Highest of the shift's own premium and any special rate applying to it."""
        multiplier = shift.rate_multiplier if shift.is_premium_shift else 1.0
        for rate in self.special_rates:
            if rate.applies_to(shift.shift_id):
                multiplier = max(multiplier, rate.multiplier)
        return multiplier


@dataclass
class CoverageGap:
    day_of_week: int
    start_hour: int
    end_hour: int
    severity: str                   # "low", "medium", "high", "critical"
    suggestion: str = ""


@dataclass
class CoverageAnalysis:
    total_hours: int
    covered_hours: int
    coverage_pct: float
    gaps: List[CoverageGap] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
