from models.demand import DemandProfile, TierCapacity, StaffingResult
from models.schedule import CoveragePolicy, Shift, CoverageRule, SpecialRate, Schedule, CoverageGap, CoverageAnalysis
from models.costs import (
    PositionRate, TeamPosition, TaxBase, TaxComponent, TaxConfig, TaxLine, TaxBreakdown,
    CostType, Recurrence, OtherCost, MarginType, MarginPolicy, MarginResult,
    RoiResult, CashFlowPeriod, PaybackResult, MonthlyBudget, CostBreakdown,
)
from models.project import ProjectSnapshot
from models.scenario import AdjustmentCategory, Adjustment, NegotiationScenario, ComparisonMetric, ScenarioComparison
from models.version import ScenarioVersion, VersionChange, VersionDiff, VersionStats
