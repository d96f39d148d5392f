"""DataFrame views over engine results for table display."""

import pandas as pd
from typing import List

from models.costs import CostBreakdown
from models.schedule import Schedule
from models.scenario import ScenarioComparison
from models.version import ScenarioVersion, VersionDiff
from engine.scheduler import DAY_NAMES


def comparison_frame(comparison: ScenarioComparison) -> pd.DataFrame:
    """One row per metric, one column per scenario."""
    rows = []
    for metric in comparison.metrics:
        row = {"Metric": metric.name, "Unit": metric.unit}
        for name, value in zip(comparison.scenario_names, metric.values):
            row[name] = value
        if len(metric.values) > 1:
            best = max(metric.values) if metric.higher_is_better else min(metric.values)
            row["Best"] = comparison.scenario_names[metric.values.index(best)]
        rows.append(row)
    return pd.DataFrame(rows)


def versions_frame(versions: List[ScenarioVersion]) -> pd.DataFrame:
    columns = ["Version", "Description", "Author", "Created", "Tags", "Total Price", "Profit"]
    rows = []
    for v in versions:
        results = v.data.results
        rows.append({
            "Version": v.version,
            "Description": v.change_description,
            "Author": v.created_by or "",
            "Created": v.created_at,
            "Tags": ", ".join(v.tags),
            "Total Price": results.total_price if results else None,
            "Profit": results.profit if results else None,
        })
    return pd.DataFrame(rows, columns=columns)


def diff_frame(diff: VersionDiff) -> pd.DataFrame:
    columns = ["Field", "Change", "Description"]
    rows = [
        {"Field": c.field, "Change": c.change_type, "Description": c.description}
        for c in diff.changes
    ]
    return pd.DataFrame(rows, columns=columns)


def schedule_frame(schedule: Schedule) -> pd.DataFrame:
    rows = []
    for shift in schedule.shifts:
        rows.append({
            "Shift": shift.name,
            "Start": shift.start_time,
            "End": shift.end_time,
            "Days": ", ".join(DAY_NAMES[d][:3] for d in sorted(shift.days_of_week)),
            "N1": len(shift.agents_for_tier("N1")),
            "N2": len(shift.agents_for_tier("N2")),
            "Headcount": shift.headcount,
            "Multiplier": schedule.effective_multiplier(shift),
        })
    return pd.DataFrame(rows)


def monthly_breakdown_frame(costs: CostBreakdown) -> pd.DataFrame:
    df = pd.DataFrame([
        {
            "Month": row.month_index,
            "Period Start": row.period_start,
            "Revenue": row.revenue,
            "Team Cost": row.team_cost,
            "Other Costs": row.other_costs,
            "Taxes": row.taxes,
            "Total Cost": row.total_cost,
            "Profit": row.profit,
            "Margin %": row.margin_pct,
        }
        for row in costs.monthly_breakdown
    ])
    if not df.empty:
        df["Cumulative Profit"] = df["Profit"].cumsum()
    return df
