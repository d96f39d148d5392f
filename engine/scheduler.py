"""Automatic schedule synthesis — staffing result + coverage policy to shifts."""

import logging
from typing import Callable, Dict, List, Optional

from models.demand import StaffingResult
from models.schedule import (
    CoverageAnalysis, CoverageGap, CoveragePolicy, CoverageRule, Schedule,
    Shift, SpecialRate, time_to_hour_bounds,
)
from engine.errors import ConfigurationError
from config.defaults import (
    BUSINESS_HOURS_MIN_STAFF, EXTENDED_HOURS_MIN_STAFF,
    FULL_TIME_MIN_STAFF_RATIO, FULL_TIME_SHIFT_COUNT,
    NIGHT_SHIFT_MULTIPLIER, EVENING_SHIFT_MULTIPLIER,
    NIGHT_SPECIAL_RATE, WEEKEND_SPECIAL_RATE,
    WEEKDAYS, ALL_DAYS, WEEKEND_DAYS,
)

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def agent_refs(tier: str, start: int, count: int) -> List[str]:
    """Opaque, deterministic agent identifiers, e.g. n1-agent-1."""
    return [f"{tier.lower()}-agent-{i}" for i in range(start + 1, start + count + 1)]


def split_evenly(total: int, parts: int, offset: int = 0) -> List[int]:
    """Split total into `parts` counts that differ by at most one and sum to total.

    The extra units go to the parts starting at `offset`, wrapping around.
    """
    base, remainder = divmod(total, parts)
    counts = [base] * parts
    for i in range(remainder):
        counts[(offset + i) % parts] += 1
    return counts


def _business_hours(staffing: StaffingResult, short_shift: bool, cfg: dict) -> Schedule:
    n1, n2 = staffing.tier1_agents, staffing.tier2_agents
    shifts = [
        Shift(
            shift_id="n1-business",
            name="N1 - Morning (6h)" if short_shift else "N1 - Business (8h)",
            start_time="08:00",
            end_time="14:00" if short_shift else "17:00",
            days_of_week=list(WEEKDAYS),
            assigned_agent_refs=agent_refs("N1", 0, n1),
            tier="N1",
        ),
        Shift(
            shift_id="n2-business",
            name="N2 - Business (8h)",
            start_time="08:00",
            end_time="17:00",
            days_of_week=list(WEEKDAYS),
            assigned_agent_refs=agent_refs("N2", 0, n2),
            tier="N2",
        ),
    ]
    min_staff = min(n1 + n2, cfg.get("business_hours_min_staff", BUSINESS_HOURS_MIN_STAFF))
    return Schedule(
        name="Business Hours",
        coverage_policy=CoveragePolicy.BUSINESS_HOURS,
        shifts=shifts,
        coverage_rule=CoverageRule(minimum_staff=min_staff, preferred_staff=n1 + n2),
        window_start="08:00",
        window_end="17:00",
        window_days=list(WEEKDAYS),
    )


def _extended_hours(staffing: StaffingResult, short_shift: bool, cfg: dict) -> Schedule:
    n1, n2 = staffing.tier1_agents, staffing.tier2_agents
    morning, afternoon = split_evenly(n1, 2)
    shifts = [
        Shift(
            shift_id="n1-morning",
            name="N1 - Morning (6h)" if short_shift else "N1 - Morning (8h)",
            start_time="07:00",
            end_time="13:00" if short_shift else "15:00",
            days_of_week=list(WEEKDAYS),
            assigned_agent_refs=agent_refs("N1", 0, morning),
            tier="N1",
        ),
        Shift(
            shift_id="n1-afternoon",
            name="N1 - Afternoon (6h)" if short_shift else "N1 - Afternoon (8h)",
            start_time="13:00" if short_shift else "11:00",
            end_time="19:00",
            days_of_week=list(WEEKDAYS),
            assigned_agent_refs=agent_refs("N1", morning, afternoon),
            tier="N1",
        ),
        Shift(
            shift_id="n2-extended",
            name="N2 - Extended (12h)",
            start_time="07:00",
            end_time="19:00",
            days_of_week=list(WEEKDAYS),
            assigned_agent_refs=agent_refs("N2", 0, n2),
            tier="N2",
        ),
    ]
    min_staff = min(n1 + n2, cfg.get("extended_hours_min_staff", EXTENDED_HOURS_MIN_STAFF))
    return Schedule(
        name="Extended Hours",
        coverage_policy=CoveragePolicy.EXTENDED_HOURS,
        shifts=shifts,
        coverage_rule=CoverageRule(minimum_staff=min_staff, preferred_staff=n1 + n2),
        window_start="07:00",
        window_end="19:00",
        window_days=list(WEEKDAYS),
    )


# (shift_id, name, start, end, premium multiplier or None)
FULL_TIME_TEMPLATE = [
    ("shift1", "Shift 1 - Overnight (00h-06h)", "00:00", "06:00", NIGHT_SHIFT_MULTIPLIER),
    ("shift2", "Shift 2 - Morning (06h-12h)", "06:00", "12:00", None),
    ("shift3", "Shift 3 - Afternoon (12h-18h)", "12:00", "18:00", None),
    ("shift4", "Shift 4 - Evening (18h-00h)", "18:00", "23:59", EVENING_SHIFT_MULTIPLIER),
]


def _full_time(staffing: StaffingResult, short_shift: bool, cfg: dict) -> Schedule:
    n1, n2 = staffing.tier1_agents, staffing.tier2_agents
    shift_count = len(FULL_TIME_TEMPLATE)

    # Deal N1 then N2 round-robin so per-tier totals are exact and shifts stay balanced
    n1_counts = split_evenly(n1, shift_count)
    n2_counts = split_evenly(n2, shift_count, offset=n1 % shift_count)

    night_multiplier = cfg.get("night_shift_multiplier", NIGHT_SHIFT_MULTIPLIER)
    evening_multiplier = cfg.get("evening_shift_multiplier", EVENING_SHIFT_MULTIPLIER)
    premiums = {"shift1": night_multiplier, "shift4": evening_multiplier}

    shifts = []
    n1_cursor = n2_cursor = 0
    for i, (shift_id, name, start, end, premium) in enumerate(FULL_TIME_TEMPLATE):
        refs = agent_refs("N1", n1_cursor, n1_counts[i]) + agent_refs("N2", n2_cursor, n2_counts[i])
        n1_cursor += n1_counts[i]
        n2_cursor += n2_counts[i]
        shifts.append(Shift(
            shift_id=shift_id,
            name=name,
            start_time=start,
            end_time=end,
            days_of_week=list(ALL_DAYS),
            assigned_agent_refs=refs,
            is_premium_shift=premium is not None,
            rate_multiplier=premiums.get(shift_id, 1.0),
        ))

    special_rates = [
        SpecialRate(
            name="Night differential",
            condition="night",
            multiplier=cfg.get("night_special_rate", NIGHT_SPECIAL_RATE),
            applicable_shift_ids=["shift1", "shift4"],
        ),
        SpecialRate(
            name="Weekend differential",
            condition="weekend",
            multiplier=cfg.get("weekend_special_rate", WEEKEND_SPECIAL_RATE),
            applicable_shift_ids=[s.shift_id for s in shifts],
        ),
    ]

    total = n1 + n2
    ratio = cfg.get("full_time_min_staff_ratio", FULL_TIME_MIN_STAFF_RATIO)
    min_staff = max(1, int(total * ratio))
    preferred = -(-total // FULL_TIME_SHIFT_COUNT)  # ceil(total / shifts)
    return Schedule(
        name="24x7 Coverage",
        coverage_policy=CoveragePolicy.FULL_TIME,
        shifts=shifts,
        coverage_rule=CoverageRule(minimum_staff=min_staff, preferred_staff=preferred),
        special_rates=special_rates,
        window_start="00:00",
        window_end="23:59",
        window_days=list(ALL_DAYS),
    )


TEMPLATES: Dict[CoveragePolicy, Callable[[StaffingResult, bool, dict], Schedule]] = {
    CoveragePolicy.BUSINESS_HOURS: _business_hours,
    CoveragePolicy.EXTENDED_HOURS: _extended_hours,
    CoveragePolicy.FULL_TIME: _full_time,
}


def resolve_policy(policy) -> CoveragePolicy:
    """Accept a CoveragePolicy or its string value; anything else is a ConfigurationError."""
    if isinstance(policy, CoveragePolicy):
        return policy
    try:
        return CoveragePolicy(policy)
    except ValueError:
        raise ConfigurationError(f"Unknown coverage policy: {policy!r}") from None


def window_hours(schedule: Schedule) -> List[tuple]:
    """All (day, hour) slots inside the schedule's covered window."""
    start, end = time_to_hour_bounds(schedule.window_start, schedule.window_end)
    return [(day, hour) for day in schedule.window_days for hour in range(start, end)]


def thinnest_coverage(schedule: Schedule) -> int:
    """Lowest number of agents on duty at any instant of the covered window."""
    slots = window_hours(schedule)
    if not slots:
        return 0
    return min(schedule.staff_on_duty(day, hour) for day, hour in slots)


def synthesize_schedule(
    staffing: StaffingResult,
    policy,
    tier1_short_shift: bool = False,
    rule_config: Optional[dict] = None,
) -> Schedule:
    """Build the fixed shift template for a coverage policy from a staffing result."""
    cfg = rule_config or {}
    policy = resolve_policy(policy)
    builder = TEMPLATES.get(policy)
    if builder is None:
        raise ConfigurationError(f"No shift template for coverage policy {policy.value}")

    schedule = builder(staffing, tier1_short_shift, cfg)

    # The minimum staff rule must hold at every instant of the covered window
    thinnest = thinnest_coverage(schedule)
    if schedule.coverage_rule.minimum_staff > thinnest:
        logger.warning(
            "%s: minimum staff %d exceeds thinnest coverage %d, capping",
            schedule.name, schedule.coverage_rule.minimum_staff, thinnest,
        )
        schedule.coverage_rule.minimum_staff = thinnest

    logger.debug(
        "Synthesized %s schedule: %d shifts, %s",
        policy.value, len(schedule.shifts), schedule.headcount_by_tier(),
    )
    return schedule


def _gap_severity(start_hour: int, end_hour: int) -> str:
    duration = end_hour - start_hour
    # Business hours (8-18) are critical
    if 8 <= start_hour < 18 or 8 < end_hour <= 18:
        return "critical" if duration > 4 else "high"
    # Evening hours (18-22)
    if 18 <= start_hour < 22 or 18 < end_hour <= 22:
        return "medium" if duration > 2 else "low"
    # Night hours
    return "medium" if duration > 6 else "low"


def analyze_coverage(schedule: Schedule) -> CoverageAnalysis:
    """Hour-by-hour coverage over a full week: gaps, coverage % and hints."""
    matrix = [[schedule.staff_on_duty(day, hour) > 0 for hour in range(24)] for day in range(7)]
    total_hours = 7 * 24
    covered_hours = sum(1 for day in matrix for covered in day if covered)

    gaps = []
    for day_index, day in enumerate(matrix):
        gap_start = None
        for hour, covered in enumerate(day + [True]):
            if not covered and gap_start is None:
                gap_start = hour
            elif covered and gap_start is not None:
                gaps.append(CoverageGap(
                    day_of_week=day_index,
                    start_hour=gap_start,
                    end_hour=hour,
                    severity=_gap_severity(gap_start, hour),
                    suggestion=(
                        f"Consider adding coverage on {DAY_NAMES[day_index]} "
                        f"from {gap_start:02d}:00 to {hour:02d}:00"
                    ),
                ))
                gap_start = None

    coverage_pct = covered_hours / total_hours * 100

    recommendations = []
    if not schedule.shifts:
        recommendations.append("Configure at least one shift")
    elif coverage_pct < 30:
        recommendations.append("Very low coverage - add more shifts")
    elif coverage_pct < 60:
        recommendations.append("Low coverage - consider extending hours")
    elif coverage_pct < 80:
        recommendations.append("Adequate coverage - consider optimizing hours")
    else:
        recommendations.append("Good coverage")

    weekend_hours = sum(1 for day in WEEKEND_DAYS for covered in matrix[day] if covered)
    if weekend_hours / 48 * 100 < 50:
        recommendations.append("Consider improving weekend coverage")

    night_hours = sum(
        1 for day in matrix for hour in list(range(22, 24)) + list(range(0, 6)) if day[hour]
    )
    if night_hours / (8 * 7) * 100 < 30:
        recommendations.append("Consider adding night coverage")

    return CoverageAnalysis(
        total_hours=total_hours,
        covered_hours=covered_hours,
        coverage_pct=min(coverage_pct, 100.0),
        gaps=gaps,
        recommendations=recommendations,
    )


def shift_costs(schedule: Schedule, hourly_rate: float) -> List[dict]:
    """Weekly cost per shift at a flat hourly rate, including premiums."""
    rows = []
    for shift in schedule.shifts:
        multiplier = schedule.effective_multiplier(shift)
        weekly_hours = shift.duration_hours * len(shift.days_of_week)
        rows.append({
            "shift_id": shift.shift_id,
            "shift_name": shift.name,
            "headcount": shift.headcount,
            "multiplier": multiplier,
            "weekly_hours": weekly_hours,
            "weekly_cost": hourly_rate * multiplier * weekly_hours * shift.headcount,
        })
    return rows
