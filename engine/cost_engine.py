"""Cost, tax, margin, ROI and payback calculations.

Every function here is pure: it reads only its arguments, so callers may run
them concurrently. Invalid numbers raise InvalidInputError instead of leaking
negative costs, NaN or Infinity into a price.
"""

import logging
import math
from datetime import date
from typing import Dict, List, Optional, Sequence

from models.costs import (
    CashFlowPeriod, CostBreakdown, MarginPolicy, MarginResult, MarginType,
    MonthlyBudget, OtherCost, PaybackResult, PositionRate, RoiResult,
    TaxBase, TaxBreakdown, TaxComponent, TaxConfig, TaxLine, TeamPosition,
)
from models.project import ProjectSnapshot
from models.schedule import Schedule
from engine.errors import ConfigurationError, InvalidInputError, NotFoundError
from config.defaults import (
    SUPPORTED_WEEKLY_HOURS, DEFAULT_CONTRACT_MONTHS, INVESTMENT_RATIO,
    DISCOUNT_RATE, PROFIT_BASE_FALLBACK_RATIO, IRR_MAX_ITERATIONS, IRR_TOLERANCE,
    RISK_HIGH_MARGIN_PCT, RISK_LOW_MARGIN_PCT,
    TAX_EFFECTIVE_RATE_WARNING, TAX_ISS_WARNING, TAX_IR_WARNING,
    TAX_PRESETS, DEFAULT_TAX_REGIME,
)

logger = logging.getLogger(__name__)


def _require_finite(value: float, label: str, allow_negative: bool = False) -> None:
    if value is None or not math.isfinite(value):
        raise InvalidInputError(f"{label} must be a finite number, got {value!r}")
    if not allow_negative and value < 0:
        raise InvalidInputError(f"{label} must be >= 0, got {value}")


# --- Team ---

def team_cost(team: Sequence[TeamPosition], position_rates: Dict[str, PositionRate]) -> float:
    """Monthly team cost: sum of headcount x salary for the position's hour class."""
    total = 0.0
    for position in team:
        if position.headcount < 1:
            raise InvalidInputError(
                f"Headcount for {position.position_id} must be >= 1, got {position.headcount}"
            )
        if position.weekly_hours not in SUPPORTED_WEEKLY_HOURS:
            raise InvalidInputError(
                f"Weekly hours for {position.position_id} must be one of "
                f"{SUPPORTED_WEEKLY_HOURS}, got {position.weekly_hours}"
            )
        rate = position_rates.get(position.position_id)
        if rate is None:
            raise NotFoundError(f"Unknown job position: {position.position_id}")
        salary = rate.salary_for(position.weekly_hours)
        if salary is None:
            raise InvalidInputError(
                f"Position {position.position_id} has no salary for {position.weekly_hours}h weeks"
            )
        _require_finite(salary, f"Salary of {position.position_id}")
        total += position.headcount * salary
    return total


def schedule_multiplier(schedule: Optional[Schedule]) -> float:
    """Headcount-weighted premium factor of a schedule (1.0 = no premium)."""
    if schedule is None:
        return 1.0
    weighted = 0.0
    headcount = 0
    for shift in schedule.shifts:
        if shift.rate_multiplier < 1.0:
            raise InvalidInputError(
                f"Shift {shift.shift_id} rate multiplier must be >= 1.0, got {shift.rate_multiplier}"
            )
        weighted += shift.headcount * schedule.effective_multiplier(shift)
        headcount += shift.headcount
    if headcount == 0:
        return 1.0
    return weighted / headcount


# --- Other costs ---

def normalize_other_cost(cost: OtherCost) -> float:
    """Monthly-equivalent value; one-time costs are amortised over 12 months."""
    _require_finite(cost.amount, f"Other cost '{cost.name}'")
    return cost.monthly_equivalent


def other_costs_monthly(other_costs: Sequence[OtherCost]) -> float:
    return sum(normalize_other_cost(c) for c in other_costs)


# --- Taxes ---

def tax_config_for(regime: str = DEFAULT_TAX_REGIME) -> TaxConfig:
    """Revenue-based tax components of a known regime preset."""
    rates = TAX_PRESETS.get(regime)
    if rates is None:
        raise ConfigurationError(f"Unknown tax regime: {regime!r}")
    return TaxConfig(
        regime=regime,
        components=[TaxComponent(name, rate) for name, rate in rates.items()],
    )


def _tax_suggestions(tax_config: TaxConfig, effective_rate: Optional[float]) -> List[str]:
    suggestions = []
    if effective_rate is not None and effective_rate > TAX_EFFECTIVE_RATE_WARNING:
        suggestions.append("High effective tax rate - consider reviewing the tax regime")
    if tax_config.rate_of("ISS") > TAX_ISS_WARNING:
        suggestions.append("High ISS - check for a lower municipal rate")
    if tax_config.rate_of("IR") > TAX_IR_WARNING:
        suggestions.append("High IR - review deductible expenses")
    return suggestions


def taxes(total_price: float, tax_config: TaxConfig, profit_base: Optional[float] = None) -> TaxBreakdown:
    """Tax lines for a price: rate% x base, base being the price unless the component says otherwise."""
    _require_finite(total_price, "Total price")
    if profit_base is None:
        profit_base = total_price * PROFIT_BASE_FALLBACK_RATIO

    lines = []
    for component in tax_config.components:
        _require_finite(component.rate_pct, f"Tax rate of {component.name}")
        base = TaxBase(component.base)
        if base == TaxBase.FIXED:
            base_amount = total_price
            amount = component.rate_pct
        elif base == TaxBase.PROFIT:
            # Losses carry no profit-based tax
            base_amount = max(profit_base, 0.0)
            amount = base_amount * component.rate_pct / 100
        else:
            base_amount = total_price
            amount = base_amount * component.rate_pct / 100
        lines.append(TaxLine(component.name, component.rate_pct, base_amount, amount))

    total = sum(line.amount for line in lines)
    effective_rate = total / total_price * 100 if total_price > 0 else None
    return TaxBreakdown(
        lines=lines,
        total=total,
        effective_rate_pct=effective_rate,
        suggestions=_tax_suggestions(tax_config, effective_rate),
    )


# --- Margins ---

def margins(
    team_monthly_cost: float,
    margin_policy: MarginPolicy,
    other_costs: Sequence[OtherCost] = (),
) -> MarginResult:
    """Derive the monthly price from operating cost and the margin policy."""
    _require_finite(team_monthly_cost, "Team monthly cost")
    _require_finite(margin_policy.value, "Margin value", allow_negative=True)

    cost = team_monthly_cost + other_costs_monthly(other_costs)
    if cost <= 0:
        raise InvalidInputError("Operating cost must be > 0 to price a contract")
    try:
        margin_type = MarginType(margin_policy.margin_type)
    except ValueError:
        raise ConfigurationError(f"Unknown margin type: {margin_policy.margin_type!r}") from None

    if margin_type == MarginType.PERCENTAGE:
        if margin_policy.value >= 100:
            raise InvalidInputError(f"Percentage margin must be < 100, got {margin_policy.value}")
        price = cost / (1 - margin_policy.value / 100)
    elif margin_type == MarginType.MARKUP:
        price = cost * (1 + margin_policy.value / 100)
    else:
        price = cost + margin_policy.value

    if price <= 0:
        raise InvalidInputError(f"Margin policy produces a non-positive price ({price:.2f})")

    margin_amount = price - cost
    return MarginResult(
        total_price=price,
        total_cost=cost,
        margin_amount=margin_amount,
        margin_pct=margin_amount / price * 100,
        markup_pct=margin_amount / cost * 100,
    )


# --- ROI / payback ---

def _validate_series(investment: float, monthly_returns: Sequence[float]) -> None:
    _require_finite(investment, "Investment")
    if investment == 0:
        raise InvalidInputError("Investment must be > 0")
    for i, value in enumerate(monthly_returns):
        _require_finite(value, f"Return for month {i + 1}", allow_negative=True)


def npv(investment: float, monthly_returns: Sequence[float], discount_rate: float = DISCOUNT_RATE) -> float:
    value = -investment
    for period, ret in enumerate(monthly_returns, start=1):
        value += ret / (1 + discount_rate) ** period
    return value


def irr(investment: float, monthly_returns: Sequence[float]) -> Optional[float]:
    """Internal rate of return (%) by Newton-Raphson; None when it does not converge."""
    rate = 0.1
    for _ in range(IRR_MAX_ITERATIONS):
        value = -investment
        derivative = 0.0
        for period, ret in enumerate(monthly_returns, start=1):
            try:
                factor = (1 + rate) ** period
                value += ret / factor
                derivative -= period * ret / (factor * (1 + rate))
            except (OverflowError, ZeroDivisionError):
                return None
        if abs(value) < IRR_TOLERANCE:
            return rate * 100
        if abs(derivative) < IRR_TOLERANCE:
            return None
        rate = rate - value / derivative
        if rate <= -1 or not math.isfinite(rate):
            return None
    return None


def roi(
    investment: float,
    monthly_returns: Sequence[float],
    discount_rate: float = DISCOUNT_RATE,
) -> RoiResult:
    """ROI % = (sum of returns - investment) / investment x 100."""
    _validate_series(investment, monthly_returns)
    total_returns = sum(monthly_returns)
    return RoiResult(
        investment=investment,
        total_returns=total_returns,
        roi_pct=(total_returns - investment) / investment * 100,
        npv=npv(investment, monthly_returns, discount_rate),
        irr_pct=irr(investment, monthly_returns) if monthly_returns else None,
        periods=len(monthly_returns),
    )


def payback(
    investment: float,
    monthly_returns: Sequence[float],
    discount_rate: float = DISCOUNT_RATE,
) -> PaybackResult:
    """Smallest n where the first n returns cover the investment.

    When the series never covers it, the series length is reported with
    not_recovered=True.
    """
    _validate_series(investment, monthly_returns)

    simple = None
    discounted = None
    cumulative = 0.0
    discounted_cumulative = 0.0
    cash_flows = []
    for period, ret in enumerate(monthly_returns, start=1):
        cumulative += ret
        discounted_cumulative += ret / (1 + discount_rate) ** period
        cash_flows.append(CashFlowPeriod(
            period=period,
            cash_in=ret,
            cash_out=investment if period == 1 else 0.0,
            cumulative=cumulative - investment,
        ))
        if simple is None and cumulative >= investment:
            simple = period
        if discounted is None and discounted_cumulative >= investment:
            discounted = period

    not_recovered = simple is None
    return PaybackResult(
        simple_payback_months=len(monthly_returns) if not_recovered else simple,
        not_recovered=not_recovered,
        discounted_payback_months=discounted,
        periods=len(monthly_returns),
        cash_flows=cash_flows,
    )


# --- Full breakdown ---

def risk_level(margin_pct: float) -> str:
    if margin_pct < RISK_HIGH_MARGIN_PCT:
        return "high"
    if margin_pct > RISK_LOW_MARGIN_PCT:
        return "low"
    return "medium"


def _add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    return date(start.year + month_index // 12, month_index % 12 + 1, 1)


def monthly_breakdown(
    contract_months: int,
    monthly_price: float,
    team_monthly: float,
    other_monthly: float,
    monthly_taxes: float,
    start_date: Optional[date] = None,
) -> List[MonthlyBudget]:
    rows = []
    total_cost = team_monthly + other_monthly + monthly_taxes
    profit = monthly_price - total_cost
    for month in range(1, contract_months + 1):
        rows.append(MonthlyBudget(
            month_index=month,
            period_start=_add_months(start_date, month - 1) if start_date else None,
            revenue=monthly_price,
            team_cost=team_monthly,
            other_costs=other_monthly,
            taxes=monthly_taxes,
            total_cost=total_cost,
            profit=profit,
            margin_pct=profit / monthly_price * 100,
        ))
    return rows


def compute_costs(
    team: Sequence[TeamPosition],
    schedule: Optional[Schedule],
    tax_config: TaxConfig,
    margin_policy: MarginPolicy,
    other_costs: Sequence[OtherCost],
    position_rates: Dict[str, PositionRate],
    contract_months: int = DEFAULT_CONTRACT_MONTHS,
    total_price_override: Optional[float] = None,
    start_date: Optional[date] = None,
    rule_config: Optional[dict] = None,
) -> CostBreakdown:
    """Full cost picture for a team, schedule and commercial configuration."""
    cfg = rule_config or {}
    investment_ratio = cfg.get("investment_ratio", INVESTMENT_RATIO)
    discount_rate = cfg.get("discount_rate", DISCOUNT_RATE)

    if contract_months < 1:
        raise InvalidInputError(f"Contract duration must be >= 1 month, got {contract_months}")

    # Step 1: Team cost with shift premiums
    multiplier = schedule_multiplier(schedule)
    base_team_cost = team_cost(team, position_rates)
    team_monthly = base_team_cost * multiplier

    # Step 2: Price from the margin policy, unless a negotiated price exists
    margin_result = margins(team_monthly, margin_policy, other_costs)
    operating_cost = margin_result.total_cost
    other_monthly = operating_cost - team_monthly
    if total_price_override is not None:
        _require_finite(total_price_override, "Total price")
        monthly_price = float(total_price_override)
    else:
        monthly_price = margin_result.total_price

    # Step 3: Taxes on the monthly price
    tax_breakdown = taxes(monthly_price, tax_config, profit_base=monthly_price - operating_cost)

    # Step 4: Contract totals
    monthly_cost = operating_cost + tax_breakdown.total
    total_price = monthly_price * contract_months
    total_cost = monthly_cost * contract_months
    profit = total_price - total_cost
    if total_price <= 0:
        raise InvalidInputError(f"Total price must be > 0 to derive margins, got {total_price}")
    margin_pct = profit / total_price * 100
    markup_pct = profit / total_cost * 100

    # Step 5: Return on the implementation investment
    investment = total_cost * investment_ratio
    monthly_profit = [profit / contract_months] * contract_months
    roi_result = roi(investment, monthly_profit, discount_rate)
    payback_result = payback(investment, monthly_profit, discount_rate)

    logger.debug(
        "Costs: team=%.2f x%.3f price=%.2f/month total=%.2f profit=%.2f margin=%.1f%%",
        base_team_cost, multiplier,
        monthly_price, total_price, profit, margin_pct,
    )

    return CostBreakdown(
        team_monthly_cost=team_monthly,
        schedule_multiplier=multiplier,
        taxes=tax_breakdown,
        other_costs=list(other_costs),
        other_costs_monthly=other_monthly,
        margin_policy=margin_policy,
        margin_amount=monthly_price - operating_cost,
        monthly_price=monthly_price,
        monthly_cost=monthly_cost,
        contract_months=contract_months,
        total_price=total_price,
        total_cost=total_cost,
        profit=profit,
        margin_pct=margin_pct,
        markup_pct=markup_pct,
        roi_pct=roi_result.roi_pct,
        payback_months=payback_result.simple_payback_months,
        payback_not_recovered=payback_result.not_recovered,
        risk_level=risk_level(margin_pct),
        price_overridden=total_price_override is not None,
        monthly_breakdown=monthly_breakdown(
            contract_months, monthly_price, team_monthly, other_monthly,
            tax_breakdown.total, start_date,
        ),
    )


def compute_project_costs(project: ProjectSnapshot, rule_config: Optional[dict] = None) -> CostBreakdown:
    return compute_costs(
        team=project.team,
        schedule=project.schedule,
        tax_config=project.tax_config,
        margin_policy=project.margin_policy,
        other_costs=project.other_costs,
        position_rates=project.position_rates,
        contract_months=project.contract_months,
        total_price_override=project.total_price_override,
        start_date=project.start_date,
        rule_config=rule_config,
    )
