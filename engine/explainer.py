"""Generates human-readable explanations for staffing recommendations."""

from typing import List

from models.demand import DemandProfile


def explain_staffing(
    profile: DemandProfile,
    monthly_volume: float,
    hourly_volume: float,
    workload_units: float,
    adjusted_workload: float,
    tier1_workload_basic: int,
    tier2_workload_basic: int,
    tier1_calls: float,
    tier2_calls: float,
    tier1_effective_capacity: float,
    tier2_effective_capacity: float,
    tier1_capacity_agents: int,
    tier2_capacity_agents: int,
    tier1_agents: int,
    tier2_agents: int,
) -> List[str]:
    """Produce step-by-step explanation for a staffing result."""
    steps = []

    steps.append(
        f"Step 1 - Volume: {profile.user_count} users x {profile.incidents_per_user_per_month} "
        f"incidents/month => {monthly_volume:.1f} calls/month"
    )

    steps.append(
        f"Step 2 - Workload: {hourly_volume:.3f} calls/hour x {profile.average_handle_minutes} min "
        f"=> {workload_units:.3f} workload units, adjusted for {profile.occupancy_rate_pct}% occupancy "
        f"and safety margin => {adjusted_workload:.3f}"
    )

    steps.append(
        f"Step 3 - Workload split: N1 {profile.tier1_share_pct}% => {tier1_workload_basic} agents, "
        f"N2 {profile.tier2_share_pct}% => {tier2_workload_basic} agents"
    )

    shift_note = " (6h shift)" if profile.tier1_short_shift else ""
    steps.append(
        f"Step 4 - Capacity: N1 {tier1_calls:.1f} calls / {tier1_effective_capacity:g} per agent{shift_note} "
        f"=> {tier1_capacity_agents} agents, N2 {tier2_calls:.1f} calls / "
        f"{tier2_effective_capacity:g} per agent => {tier2_capacity_agents} agents"
    )

    steps.append(
        f"Step 5 - Conservative sizing: larger of both estimates, minimum 1 per tier "
        f"=> N1 {tier1_agents}, N2 {tier2_agents}"
    )

    return steps
