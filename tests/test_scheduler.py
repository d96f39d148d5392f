"""Tests for schedule synthesis and coverage analysis."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from models.demand import StaffingResult
from models.schedule import CoveragePolicy, Shift
from engine.errors import ConfigurationError
from engine.scheduler import (
    analyze_coverage, shift_costs, split_evenly, synthesize_schedule, thinnest_coverage, window_hours,
)


def make_staffing(n1=4, n2=2):
    return StaffingResult(monthly_call_volume=100.0, tier1_agents=n1, tier2_agents=n2, workload_units=0.5)


ALL_POLICIES = list(CoveragePolicy)


class TestSplitEvenly:
    def test_sums_to_total(self):
        assert sum(split_evenly(7, 4)) == 7

    def test_differs_by_at_most_one(self):
        counts = split_evenly(10, 4)
        assert max(counts) - min(counts) <= 1

    def test_offset_moves_the_extra_units(self):
        assert split_evenly(2, 4) == [1, 1, 0, 0]
        assert split_evenly(2, 4, offset=2) == [0, 0, 1, 1]


class TestHeadcountConservation:
    @pytest.mark.parametrize("policy", ALL_POLICIES)
    @pytest.mark.parametrize("n1,n2", [(1, 1), (2, 1), (3, 5), (7, 2), (12, 4), (25, 9)])
    def test_tier_totals_match_staffing(self, policy, n1, n2):
        schedule = synthesize_schedule(make_staffing(n1, n2), policy)
        assert schedule.headcount_by_tier() == {"N1": n1, "N2": n2}
        assert schedule.total_headcount == n1 + n2

    @pytest.mark.parametrize("policy", ALL_POLICIES)
    def test_agent_refs_are_unique(self, policy):
        schedule = synthesize_schedule(make_staffing(9, 5), policy)
        refs = [ref for shift in schedule.shifts for ref in shift.assigned_agent_refs]
        assert len(refs) == len(set(refs))


class TestMinimumStaff:
    @pytest.mark.parametrize("policy", ALL_POLICIES)
    @pytest.mark.parametrize("n1,n2", [(1, 1), (2, 1), (3, 2), (8, 3)])
    @pytest.mark.parametrize("short_shift", [False, True])
    def test_minimum_holds_across_the_window(self, policy, n1, n2, short_shift):
        schedule = synthesize_schedule(make_staffing(n1, n2), policy, short_shift)
        minimum = schedule.coverage_rule.minimum_staff
        for day, hour in window_hours(schedule):
            assert schedule.staff_on_duty(day, hour) >= minimum

    def test_business_hours_default_minimum(self):
        schedule = synthesize_schedule(make_staffing(4, 2), CoveragePolicy.BUSINESS_HOURS)
        assert schedule.coverage_rule.minimum_staff == 2
        assert schedule.coverage_rule.preferred_staff == 6

    def test_short_shift_caps_minimum_to_thinnest_slot(self):
        # After 14:00 only the single N2 agent is on duty
        schedule = synthesize_schedule(make_staffing(4, 1), CoveragePolicy.BUSINESS_HOURS, True)
        assert thinnest_coverage(schedule) == 1
        assert schedule.coverage_rule.minimum_staff == 1

    def test_full_time_minimum_capped_to_per_shift_staff(self):
        # 30% of 20 agents is 6, but each of the four shifts holds 5
        schedule = synthesize_schedule(make_staffing(12, 8), CoveragePolicy.FULL_TIME)
        assert schedule.coverage_rule.minimum_staff == 5
        assert schedule.coverage_rule.preferred_staff == 5


class TestTemplates:
    def test_policy_accepts_string_value(self):
        schedule = synthesize_schedule(make_staffing(), "extended_hours")
        assert schedule.coverage_policy == CoveragePolicy.EXTENDED_HOURS

    def test_unknown_policy_raises(self):
        with pytest.raises(ConfigurationError):
            synthesize_schedule(make_staffing(), "weekends_only")

    def test_business_short_shift_ends_at_14(self):
        schedule = synthesize_schedule(make_staffing(), CoveragePolicy.BUSINESS_HOURS, True)
        n1_shift = schedule.shifts[0]
        assert n1_shift.end_time == "14:00"
        assert n1_shift.duration_hours == 6

    def test_full_time_has_four_shifts_every_day(self):
        schedule = synthesize_schedule(make_staffing(), CoveragePolicy.FULL_TIME)
        assert [s.shift_id for s in schedule.shifts] == ["shift1", "shift2", "shift3", "shift4"]
        assert all(sorted(s.days_of_week) == list(range(7)) for s in schedule.shifts)

    def test_full_time_premiums(self):
        schedule = synthesize_schedule(make_staffing(), CoveragePolicy.FULL_TIME)
        by_id = {s.shift_id: s for s in schedule.shifts}
        assert by_id["shift1"].is_premium_shift
        assert by_id["shift1"].rate_multiplier == pytest.approx(1.3)
        assert by_id["shift4"].rate_multiplier == pytest.approx(1.2)
        assert not by_id["shift2"].is_premium_shift
        # Weekend differential applies to every shift
        assert schedule.effective_multiplier(by_id["shift2"]) == pytest.approx(1.1)
        assert schedule.effective_multiplier(by_id["shift1"]) == pytest.approx(1.3)

    def test_premiums_from_rule_config(self):
        schedule = synthesize_schedule(
            make_staffing(), CoveragePolicy.FULL_TIME, rule_config={"night_shift_multiplier": 1.5},
        )
        assert schedule.shifts[0].rate_multiplier == pytest.approx(1.5)


class TestShiftModel:
    def test_overnight_shift_covers_next_morning(self):
        shift = Shift("night", "Night", "22:00", "06:00", [1], ["n1-agent-1"])
        assert shift.is_overnight
        assert shift.duration_hours == 8
        assert shift.covers(1, 23)
        assert shift.covers(2, 3)
        assert not shift.covers(1, 3)


class TestCoverageAnalysis:
    def test_full_time_covers_the_whole_week(self):
        schedule = synthesize_schedule(make_staffing(2, 2), CoveragePolicy.FULL_TIME)
        analysis = analyze_coverage(schedule)
        assert analysis.coverage_pct == pytest.approx(100.0)
        assert analysis.gaps == []
        assert "Good coverage" in analysis.recommendations

    def test_business_hours_gaps(self):
        schedule = synthesize_schedule(make_staffing(), CoveragePolicy.BUSINESS_HOURS)
        analysis = analyze_coverage(schedule)
        # 9 hours x 5 weekdays
        assert analysis.covered_hours == 45
        assert "Consider improving weekend coverage" in analysis.recommendations
        assert "Consider adding night coverage" in analysis.recommendations
        monday_gaps = [g for g in analysis.gaps if g.day_of_week == 1]
        assert [(g.start_hour, g.end_hour) for g in monday_gaps] == [(0, 8), (17, 24)]
        assert [g.severity for g in monday_gaps] == ["medium", "critical"]

    def test_shift_costs_include_premium(self):
        schedule = synthesize_schedule(make_staffing(2, 2), CoveragePolicy.FULL_TIME)
        rows = {row["shift_id"]: row for row in shift_costs(schedule, hourly_rate=10.0)}
        assert rows["shift1"]["weekly_hours"] == 42
        assert rows["shift1"]["weekly_cost"] == pytest.approx(10.0 * 1.3 * 42 * 1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
