"""Schema validation for position, team and other-cost tables."""

from dataclasses import dataclass, field
from typing import List
import pandas as pd

from config.defaults import SUPPORTED_WEEKLY_HOURS
from models.costs import CostType, Recurrence


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


POSITION_REQUIRED_COLUMNS = [
    "Position ID",
    "Position Name",
    "Salary 48h",
]

TEAM_REQUIRED_COLUMNS = [
    "Position ID",
    "Headcount",
]

OTHER_COST_REQUIRED_COLUMNS = [
    "Name",
    "Amount",
]


def _check_required_columns(df: pd.DataFrame, required: List[str], table_label: str) -> ValidationResult:
    result = ValidationResult()
    missing = [col for col in required if col not in df.columns]
    if missing:
        result.is_valid = False
        result.errors.append(f"{table_label}: Missing required columns: {', '.join(missing)}")
    if df.empty:
        result.is_valid = False
        result.errors.append(f"{table_label}: Table contains no data rows.")
    return result


def validate_positions(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, POSITION_REQUIRED_COLUMNS, "Positions")
    if not result.is_valid:
        return result

    if (df["Salary 48h"] < 0).any():
        result.is_valid = False
        result.errors.append("Positions: Salary 48h cannot be negative.")
    if "Salary 36h" in df.columns and (df["Salary 36h"].dropna() < 0).any():
        result.is_valid = False
        result.errors.append("Positions: Salary 36h cannot be negative.")

    dupes = df.duplicated(subset=["Position ID"], keep=False)
    if dupes.any():
        result.is_valid = False
        result.errors.append(f"Positions: Duplicate position IDs: {df[dupes]['Position ID'].unique().tolist()}")

    return result


def validate_team(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, TEAM_REQUIRED_COLUMNS, "Team")
    if not result.is_valid:
        return result

    if (df["Headcount"] < 1).any():
        result.is_valid = False
        result.errors.append("Team: Headcount must be at least 1.")

    if "Weekly Hours" in df.columns:
        bad_hours = ~df["Weekly Hours"].isin(SUPPORTED_WEEKLY_HOURS)
        if bad_hours.any():
            result.is_valid = False
            result.errors.append(
                f"Team: Weekly Hours must be one of {SUPPORTED_WEEKLY_HOURS}, "
                f"got {df[bad_hours]['Weekly Hours'].unique().tolist()}"
            )
    else:
        result.warnings.append("Team: No Weekly Hours column, assuming 48h positions.")

    return result


def validate_other_costs(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, OTHER_COST_REQUIRED_COLUMNS, "Other Costs")
    if not result.is_valid:
        return result

    if (df["Amount"] < 0).any():
        result.is_valid = False
        result.errors.append("Other Costs: Amount cannot be negative.")

    for column, enum_cls in (("Type", CostType), ("Recurrence", Recurrence)):
        if column not in df.columns:
            continue
        allowed = {member.value for member in enum_cls}
        values = df[column].dropna().astype(str).str.strip().str.lower()
        unknown = sorted(set(values) - allowed)
        if unknown:
            result.is_valid = False
            result.errors.append(f"Other Costs: Unknown {column} values: {unknown}")

    return result


def validate_team_positions(team_df: pd.DataFrame, positions_df: pd.DataFrame) -> ValidationResult:
    """Check that every team row references a known position."""
    result = ValidationResult()
    team_ids = set(team_df["Position ID"].astype(str).str.strip())
    position_ids = set(positions_df["Position ID"].astype(str).str.strip())

    unknown = team_ids - position_ids
    unused = position_ids - team_ids

    if unknown:
        result.is_valid = False
        result.errors.append(f"Team references unknown positions: {', '.join(sorted(unknown))}.")
    if unused:
        result.warnings.append(
            f"Positions not staffed in the team: {', '.join(sorted(unused))}."
        )
    return result
