"""Table parsing — position, team and other-cost DataFrames into typed model lists."""

import logging
import pandas as pd
from typing import Dict, List, Optional, Tuple
from models.costs import CostType, OtherCost, PositionRate, Recurrence, TeamPosition
from engine.errors import InvalidInputError
from data.validator import (
    ValidationResult, validate_other_costs, validate_positions, validate_team,
    validate_team_positions,
)
from config.defaults import WEEKLY_HOURS_FULL

logger = logging.getLogger(__name__)


def _raise_if_invalid(result: ValidationResult) -> None:
    for warning in result.warnings:
        logger.warning(warning)
    if not result.is_valid:
        raise InvalidInputError(" ".join(result.errors))


def parse_positions(df: pd.DataFrame) -> Dict[str, PositionRate]:
    """Convert a positions DataFrame into a position_id -> PositionRate lookup."""
    _raise_if_invalid(validate_positions(df))
    rates = {}
    for _, row in df.iterrows():
        salary_36h = None
        if "Salary 36h" in df.columns and pd.notna(row.get("Salary 36h")):
            salary_36h = float(row["Salary 36h"])
        position_id = str(row["Position ID"]).strip()
        rates[position_id] = PositionRate(
            position_id=position_id,
            name=str(row["Position Name"]).strip(),
            salary_48h=float(row["Salary 48h"]),
            salary_36h=salary_36h,
        )
    return rates


def parse_team(df: pd.DataFrame) -> List[TeamPosition]:
    """Convert a team DataFrame into TeamPosition objects."""
    _raise_if_invalid(validate_team(df))
    team = []
    for _, row in df.iterrows():
        weekly_hours = WEEKLY_HOURS_FULL
        if "Weekly Hours" in df.columns and pd.notna(row.get("Weekly Hours")):
            weekly_hours = int(row["Weekly Hours"])
        team.append(TeamPosition(
            position_id=str(row["Position ID"]).strip(),
            headcount=int(row["Headcount"]),
            weekly_hours=weekly_hours,
        ))
    return team


def parse_other_costs(df: pd.DataFrame) -> List[OtherCost]:
    """Convert an other-costs DataFrame into OtherCost objects."""
    _raise_if_invalid(validate_other_costs(df))
    costs = []
    for _, row in df.iterrows():
        cost_type = CostType.FIXED
        if "Type" in df.columns and pd.notna(row.get("Type")):
            cost_type = CostType(str(row["Type"]).strip().lower())
        recurrence = Recurrence.MONTHLY
        if "Recurrence" in df.columns and pd.notna(row.get("Recurrence")):
            recurrence = Recurrence(str(row["Recurrence"]).strip().lower())
        category = "other"
        if "Category" in df.columns and pd.notna(row.get("Category")):
            category = str(row["Category"]).strip()
        costs.append(OtherCost(
            name=str(row["Name"]).strip(),
            amount=float(row["Amount"]),
            cost_type=cost_type,
            recurrence=recurrence,
            category=category,
        ))
    return costs


def parse_project_tables(
    positions_df: pd.DataFrame,
    team_df: pd.DataFrame,
    other_costs_df: Optional[pd.DataFrame] = None,
) -> Tuple[Dict[str, PositionRate], List[TeamPosition], List[OtherCost]]:
    """Parse the three cost tables together, checking team rows against the catalog.

    Returns (position_rates, team, other_costs).
    """
    rates = parse_positions(positions_df)
    team = parse_team(team_df)
    _raise_if_invalid(validate_team_positions(team_df, positions_df))
    other_costs = parse_other_costs(other_costs_df) if other_costs_df is not None else []
    return rates, team, other_costs
