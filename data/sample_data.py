"""Demo dataset for the service desk pricing engine: 2000-user 24x7 contract."""

import pandas as pd
from datetime import date
from typing import Optional

from models.demand import DemandProfile
from models.costs import MarginPolicy, MarginType
from models.project import ProjectSnapshot
from models.schedule import CoveragePolicy
from engine.staffing import compute_staffing
from engine.scheduler import synthesize_schedule
from engine.cost_engine import tax_config_for
from data.loader import parse_project_tables
from config.defaults import WEEKLY_HOURS_FULL, WEEKLY_HOURS_SHORT


def generate_demand_profile() -> DemandProfile:
    return DemandProfile(
        user_count=2000,
        incidents_per_user_per_month=1.2,
        average_handle_minutes=12,
        occupancy_rate_pct=80,
        tier1_share_pct=75,
    )


def generate_positions_df() -> pd.DataFrame:
    """Job position catalog with monthly salaries per hour class."""
    return pd.DataFrame([
        {"Position ID": "analyst-n1", "Position Name": "Service Desk Analyst N1", "Salary 48h": 3200.0, "Salary 36h": 2500.0},
        {"Position ID": "analyst-n2", "Position Name": "Support Analyst N2",      "Salary 48h": 4800.0, "Salary 36h": 3700.0},
        {"Position ID": "supervisor", "Position Name": "Service Desk Supervisor", "Salary 48h": 7500.0, "Salary 36h": None},
    ])


def generate_team_df(tier1_agents: int, tier2_agents: int, tier1_short_shift: bool = False) -> pd.DataFrame:
    """Team rows sized from a staffing result, plus one supervisor."""
    return pd.DataFrame([
        {"Position ID": "analyst-n1", "Headcount": tier1_agents, "Weekly Hours": WEEKLY_HOURS_SHORT if tier1_short_shift else WEEKLY_HOURS_FULL},
        {"Position ID": "analyst-n2", "Headcount": tier2_agents, "Weekly Hours": WEEKLY_HOURS_FULL},
        {"Position ID": "supervisor", "Headcount": 1,            "Weekly Hours": WEEKLY_HOURS_FULL},
    ])


def generate_other_costs_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Name": "ITSM licenses",      "Amount": 4500.0,  "Type": "fixed",    "Recurrence": "monthly",   "Category": "licenses"},
        {"Name": "Telephony",          "Amount": 1800.0,  "Type": "variable", "Recurrence": "monthly",   "Category": "infrastructure"},
        {"Name": "Onboarding program", "Amount": 24000.0, "Type": "eventual", "Recurrence": "one_time",  "Category": "training"},
        {"Name": "Workstation refresh", "Amount": 9000.0, "Type": "fixed",    "Recurrence": "quarterly", "Category": "infrastructure"},
    ])


def build_demo_project(
    policy: CoveragePolicy = CoveragePolicy.FULL_TIME,
    start_date: Optional[date] = None,
) -> ProjectSnapshot:
    """Run staffing, schedule synthesis and table parsing end to end."""
    profile = generate_demand_profile()
    staffing = compute_staffing(profile)
    schedule = synthesize_schedule(staffing, policy, profile.tier1_short_shift)

    rates, team, other_costs = parse_project_tables(
        generate_positions_df(),
        generate_team_df(staffing.tier1_agents, staffing.tier2_agents, profile.tier1_short_shift),
        generate_other_costs_df(),
    )
    return ProjectSnapshot(
        name="Demo Service Desk",
        team=team,
        position_rates=rates,
        schedule=schedule,
        tax_config=tax_config_for("lucro_presumido"),
        margin_policy=MarginPolicy(MarginType.PERCENTAGE, 20.0),
        other_costs=other_costs,
        contract_months=24,
        start_date=start_date or date(2025, 1, 1),
    )


if __name__ == "__main__":
    from engine.cost_engine import compute_project_costs

    project = build_demo_project()
    costs = compute_project_costs(project)
    print(f"{project.name}: {project.team_headcount} people, "
          f"{costs.monthly_price:,.2f}/month, margin {costs.margin_pct:.1f}%")
