from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional

from config.defaults import ONE_TIME_AMORTIZATION_MONTHS, WEEKLY_HOURS_FULL


@dataclass
class PositionRate:
    """Job position salary table entry (monthly salary per hour class)."""
    position_id: str
    name: str
    salary_48h: float               # 8h shift equivalent
    salary_36h: Optional[float] = None  # 6h shift equivalent

    def salary_for(self, weekly_hours: int) -> Optional[float]:
        if weekly_hours == WEEKLY_HOURS_FULL:
            return self.salary_48h
        return self.salary_36h


@dataclass
class TeamPosition:
    position_id: str
    headcount: int                  # >= 1
    weekly_hours: int = WEEKLY_HOURS_FULL  # 48 or 36


class TaxBase(str, Enum):
    REVENUE = "revenue"
    PROFIT = "profit"
    FIXED = "fixed"                 # rate is an absolute monthly amount


@dataclass
class TaxComponent:
    name: str
    rate_pct: float
    base: TaxBase = TaxBase.REVENUE


@dataclass
class TaxConfig:
    regime: str = "custom"
    components: List[TaxComponent] = field(default_factory=list)

    def rate_of(self, name: str) -> float:
        return sum(c.rate_pct for c in self.components if c.name.upper() == name.upper())


@dataclass
class TaxLine:
    name: str
    rate_pct: float
    base_amount: float
    amount: float


@dataclass
class TaxBreakdown:
    lines: List[TaxLine]
    total: float
    effective_rate_pct: Optional[float]  # None when there is no revenue
    suggestions: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {line.name: line.amount for line in self.lines}


class CostType(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"
    SEMI_VARIABLE = "semi_variable"
    EVENTUAL = "eventual"


class Recurrence(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi_annual"
    ANNUAL = "annual"
    ONE_TIME = "one_time"

    @property
    def months(self) -> int:
        return {
            Recurrence.MONTHLY: 1,
            Recurrence.QUARTERLY: 3,
            Recurrence.SEMI_ANNUAL: 6,
            Recurrence.ANNUAL: 12,
            Recurrence.ONE_TIME: ONE_TIME_AMORTIZATION_MONTHS,
        }[self]


@dataclass
class OtherCost:
    name: str
    amount: float
    cost_type: CostType = CostType.FIXED
    recurrence: Recurrence = Recurrence.MONTHLY
    category: str = "other"         # infrastructure, licenses, training, ...

    @property
    def monthly_equivalent(self) -> float:
        return self.amount / self.recurrence.months


class MarginType(str, Enum):
    PERCENTAGE = "percentage"       # margin on price: price = cost / (1 - m%)
    MARKUP = "markup"               # percentage on cost: price = cost * (1 + m%)
    FIXED = "fixed"                 # fixed target: price = cost + m


@dataclass
class MarginPolicy:
    margin_type: MarginType = MarginType.PERCENTAGE
    value: float = 20.0


@dataclass
class MarginResult:
    total_price: float
    total_cost: float
    margin_amount: float
    margin_pct: float               # margin amount / price
    markup_pct: float               # margin amount / cost


@dataclass
class RoiResult:
    investment: float
    total_returns: float
    roi_pct: float                  # may be negative
    npv: float
    irr_pct: Optional[float] = None  # None when the solver does not converge
    periods: int = 0


@dataclass
class CashFlowPeriod:
    period: int
    cash_in: float
    cash_out: float
    cumulative: float


@dataclass
class PaybackResult:
    simple_payback_months: int      # never exceeds the series length
    not_recovered: bool
    discounted_payback_months: Optional[int] = None
    periods: int = 0
    cash_flows: List[CashFlowPeriod] = field(default_factory=list)


@dataclass
class MonthlyBudget:
    month_index: int                # 1-based contract month
    period_start: Optional[date]
    revenue: float
    team_cost: float
    other_costs: float
    taxes: float
    total_cost: float
    profit: float
    margin_pct: float


@dataclass
class CostBreakdown:
    team_monthly_cost: float
    schedule_multiplier: float
    taxes: TaxBreakdown
    other_costs: List[OtherCost]
    other_costs_monthly: float
    margin_policy: MarginPolicy
    margin_amount: float            # monthly margin over operating cost
    monthly_price: float
    monthly_cost: float             # team + other costs + taxes
    contract_months: int
    total_price: float
    total_cost: float
    profit: float
    margin_pct: float               # may be negative
    markup_pct: float
    roi_pct: float                  # may be negative
    payback_months: int
    payback_not_recovered: bool
    risk_level: str                 # "low", "medium", "high"
    price_overridden: bool = False
    monthly_breakdown: List[MonthlyBudget] = field(default_factory=list)

    @property
    def annual_price(self) -> float:
        return self.monthly_price * 12

    def metric(self, key: str) -> float:
        return getattr(self, key)
