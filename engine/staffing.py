"""Staffing dimensioning — call demand to tier 1 / tier 2 agent counts."""

import logging
import math
from typing import Optional

from models.demand import DemandProfile, StaffingResult, TierCapacity
from engine.errors import InvalidInputError
from engine.explainer import explain_staffing
from config.defaults import (
    WORKING_DAYS_PER_MONTH, HOURS_PER_WORKDAY, MINUTES_PER_HOUR,
    WORKLOAD_SAFETY_FACTOR, SHORT_SHIFT_CAPACITY_FACTOR, MIN_AGENTS_PER_TIER,
)

logger = logging.getLogger(__name__)


def validate_demand(profile: DemandProfile, capacity: TierCapacity) -> None:
    """Raise InvalidInputError for out-of-range demand or capacity values."""
    numbers = {
        "user_count": profile.user_count,
        "incidents_per_user_per_month": profile.incidents_per_user_per_month,
        "average_handle_minutes": profile.average_handle_minutes,
        "occupancy_rate_pct": profile.occupancy_rate_pct,
        "tier1_share_pct": profile.tier1_share_pct,
        "tier1_capacity_per_agent": capacity.tier1_capacity_per_agent,
        "tier2_capacity_per_agent": capacity.tier2_capacity_per_agent,
    }
    for name, value in numbers.items():
        if not math.isfinite(value):
            raise InvalidInputError(f"{name} must be a finite number, got {value!r}")
    if profile.user_count != int(profile.user_count):
        raise InvalidInputError(f"user_count must be a whole number, got {profile.user_count}")
    if profile.user_count < 1:
        raise InvalidInputError(f"user_count must be >= 1, got {profile.user_count}")
    if profile.incidents_per_user_per_month < 0:
        raise InvalidInputError(
            f"incidents_per_user_per_month must be >= 0, got {profile.incidents_per_user_per_month}"
        )
    if profile.average_handle_minutes <= 0:
        raise InvalidInputError(
            f"average_handle_minutes must be > 0, got {profile.average_handle_minutes}"
        )
    if not 1 <= profile.occupancy_rate_pct <= 100:
        raise InvalidInputError(
            f"occupancy_rate_pct must be between 1 and 100, got {profile.occupancy_rate_pct}"
        )
    if not 0 <= profile.tier1_share_pct <= 100:
        raise InvalidInputError(
            f"tier1_share_pct must be between 0 and 100, got {profile.tier1_share_pct}"
        )
    if capacity.tier1_capacity_per_agent <= 0 or capacity.tier2_capacity_per_agent <= 0:
        raise InvalidInputError("Tier capacity per agent must be > 0")


def compute_staffing(
    profile: DemandProfile,
    capacity: Optional[TierCapacity] = None,
    rule_config: Optional[dict] = None,
) -> StaffingResult:
    """Size tier 1 and tier 2 from monthly demand.

    Two estimates are computed per tier, one from hourly workload and one from
    per-agent monthly capacity, and the larger one wins (floored at 1 agent).
    """
    cfg = rule_config or {}
    capacity = capacity or TierCapacity()
    validate_demand(profile, capacity)

    working_days = cfg.get("working_days_per_month", WORKING_DAYS_PER_MONTH)
    hours_per_day = cfg.get("hours_per_workday", HOURS_PER_WORKDAY)
    safety_factor = cfg.get("workload_safety_factor", WORKLOAD_SAFETY_FACTOR)
    short_factor = cfg.get("short_shift_capacity_factor", SHORT_SHIFT_CAPACITY_FACTOR)
    min_agents = cfg.get("min_agents_per_tier", MIN_AGENTS_PER_TIER)

    # Step 1: Monthly volume
    monthly_volume = profile.user_count * profile.incidents_per_user_per_month

    # Step 2: Workload-based estimate
    daily_volume = monthly_volume / working_days
    hourly_volume = daily_volume / hours_per_day
    workload_units = hourly_volume * profile.average_handle_minutes / MINUTES_PER_HOUR
    adjusted_workload = workload_units / profile.occupancy_rate_pct * 100 * safety_factor
    tier1_workload_basic = math.ceil(adjusted_workload * profile.tier1_share_pct / 100)
    tier2_workload_basic = math.ceil(adjusted_workload * (100 - profile.tier1_share_pct) / 100)

    # Step 3: Capacity-based estimate (only tier 1 is affected by the short shift)
    tier1_calls = monthly_volume * profile.tier1_share_pct / 100
    tier2_calls = monthly_volume * (100 - profile.tier1_share_pct) / 100
    tier1_effective = capacity.effective_tier1_capacity(profile.tier1_short_shift, short_factor)
    tier2_effective = capacity.tier2_capacity_per_agent
    tier1_capacity_agents = math.ceil(tier1_calls / tier1_effective)
    tier2_capacity_agents = math.ceil(tier2_calls / tier2_effective)

    # Step 4: Conservative sizing
    tier1_agents = max(min_agents, tier1_workload_basic, tier1_capacity_agents)
    tier2_agents = max(min_agents, tier2_workload_basic, tier2_capacity_agents)

    logger.debug(
        "Staffing for %s users: volume=%.1f workload=%.3f N1=%d N2=%d",
        profile.user_count, monthly_volume, adjusted_workload, tier1_agents, tier2_agents,
    )

    explanation = explain_staffing(
        profile=profile,
        monthly_volume=monthly_volume,
        hourly_volume=hourly_volume,
        workload_units=workload_units,
        adjusted_workload=adjusted_workload,
        tier1_workload_basic=tier1_workload_basic,
        tier2_workload_basic=tier2_workload_basic,
        tier1_calls=tier1_calls,
        tier2_calls=tier2_calls,
        tier1_effective_capacity=tier1_effective,
        tier2_effective_capacity=tier2_effective,
        tier1_capacity_agents=tier1_capacity_agents,
        tier2_capacity_agents=tier2_capacity_agents,
        tier1_agents=tier1_agents,
        tier2_agents=tier2_agents,
    )

    return StaffingResult(
        monthly_call_volume=monthly_volume,
        tier1_agents=tier1_agents,
        tier2_agents=tier2_agents,
        workload_units=workload_units,
        adjusted_workload=adjusted_workload,
        tier1_workload_basic=tier1_workload_basic,
        tier2_workload_basic=tier2_workload_basic,
        tier1_capacity_agents=tier1_capacity_agents,
        tier2_capacity_agents=tier2_capacity_agents,
        tier1_capacity_per_agent=tier1_effective,
        tier2_capacity_per_agent=tier2_effective,
        explanation_steps=explanation,
    )
