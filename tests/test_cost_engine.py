"""Tests for the cost engine."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pytest
from models.costs import (
    MarginPolicy, MarginType, OtherCost, PositionRate, Recurrence, TaxBase, TaxComponent,
    TaxConfig, TeamPosition,
)
from models.demand import StaffingResult
from models.project import ProjectSnapshot
from models.schedule import CoveragePolicy
from engine.errors import ConfigurationError, InvalidInputError, NotFoundError
from engine.scheduler import synthesize_schedule
from engine.cost_engine import (
    compute_costs, compute_project_costs, irr, margins, normalize_other_cost, npv, payback,
    risk_level, roi, schedule_multiplier, tax_config_for, taxes, team_cost,
)


def make_rates():
    return {
        "n1": PositionRate("n1", "Analyst N1", 3000.0, 2400.0),
        "n2": PositionRate("n2", "Analyst N2", 5000.0),
    }


def make_team():
    return [TeamPosition("n1", 2), TeamPosition("n2", 1)]


def make_costs(**overrides):
    kwargs = dict(
        team=make_team(),
        schedule=None,
        tax_config=TaxConfig(),
        margin_policy=MarginPolicy(MarginType.PERCENTAGE, 20.0),
        other_costs=[],
        position_rates=make_rates(),
        contract_months=12,
    )
    kwargs.update(overrides)
    return compute_costs(**kwargs)


class TestTeamCost:
    def test_sum_of_headcount_times_salary(self):
        assert team_cost(make_team(), make_rates()) == pytest.approx(11000)

    def test_short_week_uses_36h_salary(self):
        team = [TeamPosition("n1", 2, weekly_hours=36)]
        assert team_cost(team, make_rates()) == pytest.approx(4800)

    def test_missing_36h_salary_raises(self):
        with pytest.raises(InvalidInputError):
            team_cost([TeamPosition("n2", 1, weekly_hours=36)], make_rates())

    def test_unsupported_weekly_hours_raises(self):
        with pytest.raises(InvalidInputError):
            team_cost([TeamPosition("n1", 1, weekly_hours=40)], make_rates())

    def test_zero_headcount_raises(self):
        with pytest.raises(InvalidInputError):
            team_cost([TeamPosition("n1", 0)], make_rates())

    def test_unknown_position_raises(self):
        with pytest.raises(NotFoundError):
            team_cost([TeamPosition("manager", 1)], make_rates())


class TestScheduleMultiplier:
    def test_no_schedule_is_neutral(self):
        assert schedule_multiplier(None) == 1.0

    def test_full_time_weighted_premium(self):
        staffing = StaffingResult(100.0, 2, 2, 0.5)
        schedule = synthesize_schedule(staffing, CoveragePolicy.FULL_TIME)
        # One agent per shift: 1.3, 1.1, 1.1, 1.2
        assert schedule_multiplier(schedule) == pytest.approx(1.175)


class TestOtherCosts:
    def test_one_time_cost_amortised_over_twelve_months(self):
        cost = OtherCost("Onboarding", 12000.0, recurrence=Recurrence.ONE_TIME)
        assert normalize_other_cost(cost) == pytest.approx(1000)

    def test_quarterly_cost(self):
        cost = OtherCost("Hardware", 3000.0, recurrence=Recurrence.QUARTERLY)
        assert normalize_other_cost(cost) == pytest.approx(1000)

    def test_negative_amount_raises(self):
        with pytest.raises(InvalidInputError):
            normalize_other_cost(OtherCost("Refund", -10.0))


class TestTaxes:
    def test_bases(self):
        config = TaxConfig(components=[
            TaxComponent("ISS", 6.0),
            TaxComponent("IR", 15.0, TaxBase.PROFIT),
            TaxComponent("Fee", 100.0, TaxBase.FIXED),
        ])
        result = taxes(10000, config, profit_base=2000)
        assert result.as_dict() == pytest.approx({"ISS": 600, "IR": 300, "Fee": 100})
        assert result.total == pytest.approx(1000)
        assert result.effective_rate_pct == pytest.approx(10)
        assert any("ISS" in s for s in result.suggestions)

    def test_profit_base_defaults_to_twenty_percent_of_price(self):
        config = TaxConfig(components=[TaxComponent("IR", 10.0, TaxBase.PROFIT)])
        assert taxes(10000, config).total == pytest.approx(200)

    def test_loss_carries_no_profit_tax(self):
        config = TaxConfig(components=[TaxComponent("IR", 10.0, TaxBase.PROFIT)])
        assert taxes(10000, config, profit_base=-500).total == 0

    def test_no_revenue_has_no_effective_rate(self):
        assert taxes(0, tax_config_for()).effective_rate_pct is None

    def test_preset(self):
        config = tax_config_for("lucro_presumido")
        assert sum(c.rate_pct for c in config.components) == pytest.approx(10.93)

    def test_unknown_preset_raises(self):
        with pytest.raises(ConfigurationError):
            tax_config_for("offshore")


class TestMargins:
    def test_percentage_margin_on_price(self):
        result = margins(8000, MarginPolicy(MarginType.PERCENTAGE, 20))
        assert result.total_price == pytest.approx(10000)
        assert result.margin_pct == pytest.approx(20)
        assert result.markup_pct == pytest.approx(25)

    def test_markup_on_cost(self):
        result = margins(8000, MarginPolicy(MarginType.MARKUP, 25))
        assert result.total_price == pytest.approx(10000)

    def test_fixed_margin(self):
        result = margins(1000, MarginPolicy(MarginType.FIXED, 500))
        assert result.total_price == pytest.approx(1500)
        assert result.margin_amount == pytest.approx(500)

    def test_other_costs_join_the_cost_base(self):
        result = margins(1000, MarginPolicy(MarginType.FIXED, 0), [OtherCost("Licenses", 500.0)])
        assert result.total_cost == pytest.approx(1500)

    def test_full_percentage_margin_raises(self):
        with pytest.raises(InvalidInputError):
            margins(1000, MarginPolicy(MarginType.PERCENTAGE, 100))

    def test_zero_cost_raises(self):
        with pytest.raises(InvalidInputError):
            margins(0, MarginPolicy())

    def test_negative_price_raises(self):
        with pytest.raises(InvalidInputError):
            margins(1000, MarginPolicy(MarginType.FIXED, -2000))

    def test_margin_type_by_value(self):
        result = margins(1000, MarginPolicy("markup", 10))
        assert result.total_price == pytest.approx(1100)

    def test_unknown_margin_type_raises(self):
        with pytest.raises(ConfigurationError):
            margins(1000, MarginPolicy("discount", 10))


class TestRoiAndPayback:
    def test_zero_investment_raises(self):
        with pytest.raises(InvalidInputError):
            roi(0, [100, 100])

    def test_zero_investment_payback_raises(self):
        with pytest.raises(InvalidInputError):
            payback(0, [100, 100])

    def test_non_finite_return_raises(self):
        with pytest.raises(InvalidInputError):
            roi(1000, [100, float("inf")])

    def test_roi_percentage(self):
        result = roi(1000, [500, 500, 500])
        assert result.roi_pct == pytest.approx(50)
        assert result.total_returns == pytest.approx(1500)

    def test_roi_may_be_negative(self):
        assert roi(1000, [100, 100]).roi_pct == pytest.approx(-80)

    def test_irr_single_period(self):
        assert irr(1000, [1100]) == pytest.approx(10.0, abs=1e-3)

    def test_npv_at_break_even_rate(self):
        assert npv(1000, [1100], 0.10) == pytest.approx(0, abs=1e-6)

    def test_npv_discounts_once_per_month(self):
        # Month 2 is discounted twice by the default rate, not by a twelfth of it
        assert npv(1000, [0, 1210]) == pytest.approx(0, abs=1e-6)

    def test_payback_recovered(self):
        result = payback(1000, [600, 600, 600])
        assert result.simple_payback_months == 2
        assert not result.not_recovered
        assert result.cash_flows[-1].cumulative == pytest.approx(800)

    @pytest.mark.parametrize("returns", [[100, 100, 100], [0] * 12, [-50] * 6, []])
    def test_payback_never_exceeds_series_length(self, returns):
        result = payback(1000, returns)
        assert result.simple_payback_months <= len(returns)
        assert result.not_recovered

    def test_discounted_payback_is_not_earlier(self):
        result = payback(1000, [300] * 12, discount_rate=0.05)
        assert result.simple_payback_months == 4
        assert result.discounted_payback_months >= result.simple_payback_months


class TestRiskLevel:
    @pytest.mark.parametrize("margin,expected", [
        (-5, "high"), (9.99, "high"), (10, "medium"), (25, "medium"), (25.1, "low"),
    ])
    def test_thresholds(self, margin, expected):
        assert risk_level(margin) == expected


class TestComputeCosts:
    def test_contract_totals(self):
        costs = make_costs()
        assert costs.team_monthly_cost == pytest.approx(11000)
        assert costs.monthly_price == pytest.approx(13750)
        assert costs.total_price == pytest.approx(165000)
        assert costs.total_cost == pytest.approx(132000)
        assert costs.profit == pytest.approx(33000)
        assert costs.margin_pct == pytest.approx(20)
        assert costs.risk_level == "medium"

    def test_roi_and_payback_on_implementation_investment(self):
        costs = make_costs()
        # Investment is 20% of total cost (26,400); 2,750 profit per month
        assert costs.roi_pct == pytest.approx(25)
        assert costs.payback_months == 10
        assert not costs.payback_not_recovered

    def test_schedule_premium_raises_team_cost(self):
        schedule = synthesize_schedule(StaffingResult(100.0, 2, 2, 0.5), CoveragePolicy.FULL_TIME)
        costs = make_costs(schedule=schedule)
        assert costs.schedule_multiplier == pytest.approx(1.175)
        assert costs.team_monthly_cost == pytest.approx(11000 * 1.175)

    def test_taxes_reduce_profit(self):
        costs = make_costs(tax_config=tax_config_for("lucro_presumido"))
        assert costs.taxes.total == pytest.approx(13750 * 0.1093)
        assert costs.margin_pct == pytest.approx(20 - 10.93)
        assert costs.risk_level == "high"

    def test_price_override(self):
        costs = make_costs(total_price_override=20000)
        assert costs.price_overridden
        assert costs.monthly_price == pytest.approx(20000)
        assert costs.total_price == pytest.approx(240000)

    def test_loss_scenario_is_valid(self):
        costs = make_costs(total_price_override=5000)
        assert costs.profit < 0
        assert costs.margin_pct < 0
        assert costs.roi_pct < 0
        assert costs.payback_not_recovered
        assert costs.payback_months == 12
        assert costs.risk_level == "high"

    def test_zero_price_override_raises(self):
        with pytest.raises(InvalidInputError):
            make_costs(total_price_override=0)

    def test_invalid_contract_duration_raises(self):
        with pytest.raises(InvalidInputError):
            make_costs(contract_months=0)

    def test_monthly_breakdown_dates(self):
        costs = make_costs(contract_months=3, start_date=date(2025, 11, 15))
        starts = [row.period_start for row in costs.monthly_breakdown]
        assert starts == [date(2025, 11, 1), date(2025, 12, 1), date(2026, 1, 1)]
        assert sum(row.profit for row in costs.monthly_breakdown) == pytest.approx(costs.profit)

    def test_project_snapshot(self):
        project = ProjectSnapshot("Contract", make_team(), make_rates(), contract_months=24)
        costs = compute_project_costs(project)
        assert costs.contract_months == 24
        assert costs.total_price == pytest.approx(13750 * 24)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
