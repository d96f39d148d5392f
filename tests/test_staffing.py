"""Tests for staffing dimensioning."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from models.demand import DemandProfile, TierCapacity
from engine.errors import InvalidInputError
from engine.staffing import compute_staffing


def make_profile(users=100, incidents=1.5, aht=10, occupancy=80, tier1_share=80, short_shift=False):
    return DemandProfile(users, incidents, aht, occupancy, tier1_share, short_shift)


class TestScenarioOne:
    def test_monthly_volume(self):
        result = compute_staffing(make_profile())
        assert result.monthly_call_volume == pytest.approx(150)

    def test_capacity_estimate(self):
        result = compute_staffing(make_profile())
        # 120 N1 calls / 100 per agent, 30 N2 calls / 75 per agent
        assert result.tier1_capacity_agents == 2
        assert result.tier2_capacity_agents == 1

    def test_workload_estimate(self):
        result = compute_staffing(make_profile())
        assert result.adjusted_workload == pytest.approx(0.2131, abs=1e-3)
        assert result.tier1_workload_basic == 1
        assert result.tier2_workload_basic == 1

    def test_final_counts(self):
        result = compute_staffing(make_profile())
        assert result.tier1_agents == 2
        assert result.tier2_agents == 1
        assert result.total_agents == 3

    def test_explanation_has_five_steps(self):
        result = compute_staffing(make_profile())
        assert len(result.explanation_steps) == 5
        assert result.explanation_steps[0].startswith("Step 1")


class TestConservativeSizing:
    def test_capacity_wins_on_high_volume(self):
        result = compute_staffing(make_profile(users=1000))
        assert result.tier1_capacity_agents == 12
        assert result.tier1_workload_basic == 2
        assert result.tier1_agents == 12
        assert result.tier2_agents == 4

    def test_workload_wins_on_long_handle_time(self):
        result = compute_staffing(make_profile(aht=600))
        assert result.tier1_workload_basic == 11
        assert result.tier1_capacity_agents == 2
        assert result.tier1_agents == 11
        assert result.tier2_agents == 3

    def test_short_shift_reduces_tier1_capacity(self):
        normal = compute_staffing(make_profile(users=1000))
        short = compute_staffing(make_profile(users=1000, short_shift=True))
        assert short.tier1_capacity_per_agent == pytest.approx(75)
        assert short.tier1_agents == 16
        assert short.tier1_agents > normal.tier1_agents
        # Tier 2 is unaffected
        assert short.tier2_agents == normal.tier2_agents

    def test_custom_capacity(self):
        result = compute_staffing(make_profile(users=1000), TierCapacity(200, 150))
        assert result.tier1_agents == 6
        assert result.tier2_agents == 2

    def test_rule_config_overrides_safety_factor(self):
        result = compute_staffing(make_profile(aht=600), rule_config={"workload_safety_factor": 1.0})
        assert result.adjusted_workload == pytest.approx(10.653, abs=1e-3)


class TestFloor:
    @pytest.mark.parametrize("users,incidents,tier1_share", [
        (1, 0.0, 80),
        (100, 0.0, 50),
        (5000, 2.0, 100),
        (5000, 2.0, 0),
        (1, 0.01, 99.5),
    ])
    def test_each_tier_has_at_least_one_agent(self, users, incidents, tier1_share):
        result = compute_staffing(make_profile(users=users, incidents=incidents, tier1_share=tier1_share))
        assert result.tier1_agents >= 1
        assert result.tier2_agents >= 1

    def test_zero_demand(self):
        result = compute_staffing(make_profile(incidents=0))
        assert result.monthly_call_volume == 0
        assert (result.tier1_agents, result.tier2_agents) == (1, 1)


class TestValidation:
    @pytest.mark.parametrize("kwargs", [
        {"users": 0},
        {"incidents": -1},
        {"aht": 0},
        {"occupancy": 0},
        {"occupancy": 101},
        {"tier1_share": -1},
        {"tier1_share": 101},
        {"incidents": float("nan")},
        {"aht": float("inf")},
    ])
    def test_out_of_range_input_raises(self, kwargs):
        with pytest.raises(InvalidInputError):
            compute_staffing(make_profile(**kwargs))

    def test_zero_capacity_raises(self):
        with pytest.raises(InvalidInputError):
            compute_staffing(make_profile(), TierCapacity(0, 75))

    def test_invalid_input_is_a_value_error(self):
        with pytest.raises(ValueError):
            compute_staffing(make_profile(users=0))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
