"""Negotiation scenario engine — clone the project, replay adjustments, recompute."""

import copy
import logging
import math
import uuid
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from models.costs import CostBreakdown
from models.project import ProjectSnapshot
from models.scenario import (
    Adjustment, AdjustmentCategory, ComparisonMetric, NegotiationScenario, ScenarioComparison,
)
from engine.cost_engine import compute_project_costs
from engine.errors import (
    BaselineImmutableError, ConfigurationError, InvalidInputError, NotFoundError,
)
from engine.locking import KeyedLocks
from config.defaults import BASELINE_SCENARIO_NAME, COMPARISON_METRICS

logger = logging.getLogger(__name__)


# --- Adjustment handlers ---

def _as_number(value, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{label} must be numeric, got {value!r}")
    if not math.isfinite(number):
        raise InvalidInputError(f"{label} must be a finite number, got {value!r}")
    return number


def _set_total_price(project: ProjectSnapshot, value) -> None:
    price = _as_number(value, "Total price")
    if price <= 0:
        raise InvalidInputError(f"Total price must be > 0, got {price}")
    project.total_price_override = price


def _set_margin(project: ProjectSnapshot, value) -> None:
    project.margin_policy.value = _as_number(value, "Margin")


def _set_contract_period(project: ProjectSnapshot, value) -> None:
    months = _as_number(value, "Contract period")
    if months < 1 or months != int(months):
        raise InvalidInputError(f"Contract period must be a whole number of months >= 1, got {value!r}")
    project.contract_months = int(months)


def _truncate_team(project: ProjectSnapshot, value) -> None:
    target = _as_number(value, "Team size")
    if target < 0 or target != int(target):
        raise InvalidInputError(f"Team size must be a whole number >= 0, got {value!r}")
    # Counts team rows, not headcount
    if target < len(project.team):
        project.team = project.team[:int(target)]


def _set_start_date(project: ProjectSnapshot, value) -> None:
    if isinstance(value, datetime):
        project.start_date = value.date()
    elif isinstance(value, date):
        project.start_date = value
    else:
        try:
            project.start_date = date.fromisoformat(str(value))
        except ValueError:
            raise InvalidInputError(f"Start date must be an ISO date, got {value!r}")


ADJUSTMENT_HANDLERS: Dict[Tuple[AdjustmentCategory, str], Callable[[ProjectSnapshot, object], None]] = {
    (AdjustmentCategory.PRICE, "totalPrice"): _set_total_price,
    (AdjustmentCategory.PRICE, "margin"): _set_margin,
    (AdjustmentCategory.TERMS, "contractPeriod"): _set_contract_period,
    (AdjustmentCategory.SCOPE, "teamSize"): _truncate_team,
    (AdjustmentCategory.TIMELINE, "startDate"): _set_start_date,
}


def _target_of(adjustment: Adjustment) -> Tuple[AdjustmentCategory, str]:
    try:
        return adjustment.target
    except ValueError:
        raise ConfigurationError(f"Unknown adjustment category: {adjustment.category!r}")


def apply_adjustment(project: ProjectSnapshot, adjustment: Adjustment) -> bool:
    """Apply one adjustment in place. Returns False when no handler exists for it."""
    handler = ADJUSTMENT_HANDLERS.get(_target_of(adjustment))
    if handler is None:
        logger.warning(
            "No handler for adjustment %s/%s; skipped",
            adjustment.target[0].value, adjustment.field,
        )
        return False
    handler(project, adjustment.adjusted_value)
    return True


def replay_adjustments(
    project: ProjectSnapshot,
    adjustments: Sequence[Adjustment],
) -> Tuple[ProjectSnapshot, List[str]]:
    """Apply adjustments in order to a deep copy of the project.

    Returns the adjusted copy and one warning per adjustment that had no effect.
    """
    adjusted = copy.deepcopy(project)
    warnings = []
    for index, adjustment in enumerate(adjustments):
        if not apply_adjustment(adjusted, adjustment):
            category, field_name = _target_of(adjustment)
            warnings.append(
                f"Adjustment {index + 1} ({category.value}/{field_name}) is not supported "
                f"and was not applied"
            )
    return adjusted, warnings


def compute_scenario_results(
    project: ProjectSnapshot,
    adjustments: Sequence[Adjustment],
    rule_config: Optional[dict] = None,
) -> CostBreakdown:
    adjusted, _ = replay_adjustments(project, adjustments)
    return compute_project_costs(adjusted, rule_config)


# --- Comparison ---

def recommend(active: CostBreakdown, baseline: CostBreakdown) -> Tuple[str, str]:
    """Verdict and recommendation text for an active scenario against the baseline."""
    profit_diff = active.profit - baseline.profit
    margin_diff = active.margin_pct - baseline.margin_pct

    if profit_diff > 0 and margin_diff > 0:
        return "recommended", "Recommended scenario: improves both profit and margin."
    if profit_diff > 0:
        return "higher_profit", "Higher profit scenario, but consider the impact on margin."
    if margin_diff > 0:
        return "better_margin", "Better margin scenario, but lower absolute profit."
    return "less_favorable", "Less favorable than the baseline. Revise the adjustments."


class ScenarioManager:
    """Holds the scenarios of one negotiation run over a fixed project snapshot."""

    def __init__(
        self,
        project: ProjectSnapshot,
        version_store=None,
        rule_config: Optional[dict] = None,
    ):
        self.project = project
        self.version_store = version_store
        self.rule_config = rule_config
        self._scenarios: Dict[str, NegotiationScenario] = {}
        self._locks = KeyedLocks()

    # --- Lookup ---

    def get_scenario(self, scenario_id: str) -> NegotiationScenario:
        scenario = self._scenarios.get(scenario_id)
        if scenario is None:
            raise NotFoundError(f"Scenario not found: {scenario_id}")
        return scenario

    def list_scenarios(self) -> List[NegotiationScenario]:
        return list(self._scenarios.values())

    @property
    def baseline(self) -> Optional[NegotiationScenario]:
        return next((s for s in self._scenarios.values() if s.is_baseline), None)

    # --- Lifecycle ---

    def create_scenario(self, name: str, description: str = "", is_baseline: bool = False) -> NegotiationScenario:
        """New scenario with no adjustments, costed from the current project."""
        if not name or not name.strip():
            raise InvalidInputError("Scenario name must not be empty")
        if is_baseline and self.baseline is not None:
            raise ConfigurationError(
                f"A baseline scenario already exists: {self.baseline.name}"
            )
        scenario = NegotiationScenario(
            scenario_id=f"scenario-{uuid.uuid4().hex[:12]}",
            name=name.strip(),
            description=description,
            is_baseline=is_baseline,
            results=compute_scenario_results(self.project, [], self.rule_config),
        )
        self._scenarios[scenario.scenario_id] = scenario
        logger.info("Created scenario %s (%s)%s", scenario.name, scenario.scenario_id,
                    " as baseline" if is_baseline else "")
        return scenario

    def create_baseline(self, description: str = "") -> NegotiationScenario:
        return self.create_scenario(BASELINE_SCENARIO_NAME, description, is_baseline=True)

    def duplicate_scenario(self, scenario_id: str) -> NegotiationScenario:
        with self._locks(scenario_id):
            source = self.get_scenario(scenario_id)
            clone = copy.deepcopy(source)
        clone.scenario_id = f"scenario-{uuid.uuid4().hex[:12]}"
        clone.name = f"{source.name} (copy)"
        clone.is_baseline = False
        clone.version = 1
        clone.created_at = datetime.now()
        self._scenarios[clone.scenario_id] = clone
        logger.info("Duplicated scenario %s into %s", scenario_id, clone.scenario_id)
        return clone

    def delete_scenario(self, scenario_id: str) -> None:
        scenario = self.get_scenario(scenario_id)
        if scenario.is_baseline:
            raise BaselineImmutableError("The baseline scenario cannot be deleted")
        with self._locks(scenario_id):
            del self._scenarios[scenario_id]
        self._locks.discard(scenario_id)
        logger.info("Deleted scenario %s", scenario_id)

    def replace_scenario(self, scenario: NegotiationScenario) -> NegotiationScenario:
        """Install a scenario restored outside the manager (e.g. from the UI's version history)."""
        existing = self._scenarios.get(scenario.scenario_id)
        if scenario.is_baseline and self.baseline is not None and self.baseline.scenario_id != scenario.scenario_id:
            raise ConfigurationError("Cannot install a second baseline scenario")
        if existing is not None and existing.is_baseline and not scenario.is_baseline:
            raise BaselineImmutableError("The baseline scenario cannot be replaced by a variant")
        with self._locks(scenario.scenario_id):
            restored = copy.deepcopy(scenario)
            self._recompute(restored)
            self._scenarios[restored.scenario_id] = restored
        return restored

    # --- Adjustments ---

    def _mutable(self, scenario_id: str) -> NegotiationScenario:
        scenario = self.get_scenario(scenario_id)
        if scenario.is_baseline:
            raise BaselineImmutableError("Adjustments on the baseline scenario are not allowed")
        return scenario

    def _recompute(self, scenario: NegotiationScenario) -> None:
        adjusted, warnings = replay_adjustments(self.project, scenario.adjustments)
        scenario.results = compute_project_costs(adjusted, self.rule_config)
        scenario.warnings = warnings

    def _commit(self, scenario: NegotiationScenario, adjustments: List[Adjustment]) -> None:
        # Results are computed before anything is swapped in, so a failed
        # recomputation leaves the scenario as it was.
        adjusted, warnings = replay_adjustments(self.project, adjustments)
        results = compute_project_costs(adjusted, self.rule_config)
        scenario.adjustments = adjustments
        scenario.results = results
        scenario.warnings = warnings

    def add_adjustment(self, scenario_id: str, adjustment: Adjustment) -> NegotiationScenario:
        _target_of(adjustment)
        # Fetch under the lock so a concurrent rollback cannot swap the object out
        with self._locks(scenario_id):
            scenario = self._mutable(scenario_id)
            self._commit(scenario, scenario.adjustments + [copy.deepcopy(adjustment)])
        logger.debug(
            "Scenario %s: added %s/%s adjustment (impact %.1f%%)",
            scenario_id, adjustment.target[0].value, adjustment.field, adjustment.impact_pct,
        )
        return scenario

    def update_adjustment(self, scenario_id: str, index: int, **patch) -> NegotiationScenario:
        allowed = {"category", "field", "original_value", "adjusted_value", "reason"}
        unknown = set(patch) - allowed
        if unknown:
            raise InvalidInputError(f"Unknown adjustment fields: {sorted(unknown)}")
        with self._locks(scenario_id):
            scenario = self._mutable(scenario_id)
            if not 0 <= index < len(scenario.adjustments):
                raise NotFoundError(f"Scenario {scenario_id} has no adjustment at index {index}")
            adjustments = copy.deepcopy(scenario.adjustments)
            for key, value in patch.items():
                setattr(adjustments[index], key, value)
            _target_of(adjustments[index])
            self._commit(scenario, adjustments)
        return scenario

    def remove_adjustment(self, scenario_id: str, index: int) -> NegotiationScenario:
        with self._locks(scenario_id):
            scenario = self._mutable(scenario_id)
            if not 0 <= index < len(scenario.adjustments):
                raise NotFoundError(f"Scenario {scenario_id} has no adjustment at index {index}")
            adjustments = scenario.adjustments[:index] + scenario.adjustments[index + 1:]
            self._commit(scenario, adjustments)
        return scenario

    # --- Comparison ---

    def compare_scenarios(self, scenario_ids: Sequence[str], active_id: Optional[str] = None) -> ScenarioComparison:
        """Side-by-side metrics, plus a verdict for the active scenario against the baseline."""
        scenarios = [self.get_scenario(sid) for sid in scenario_ids]
        if not scenarios:
            raise InvalidInputError("At least one scenario is required for a comparison")
        missing = [s.scenario_id for s in scenarios if s.results is None]
        if missing:
            raise InvalidInputError(f"Scenarios without results: {missing}")

        metrics = [
            ComparisonMetric(
                key=key,
                name=label,
                values=[s.results.metric(key) for s in scenarios],
                unit=unit,
                higher_is_better=higher_is_better,
            )
            for key, label, unit, higher_is_better in COMPARISON_METRICS
        ]

        if active_id is None:
            active = next((s for s in scenarios if not s.is_baseline), None)
        else:
            active = self.get_scenario(active_id)
        baseline = self.baseline

        if baseline is None or active is None or active.is_baseline:
            verdict = "no_baseline"
            recommendation = "Select a non-baseline scenario and define a baseline to get a recommendation."
        else:
            verdict, recommendation = recommend(active.results, baseline.results)

        return ScenarioComparison(
            scenario_ids=[s.scenario_id for s in scenarios],
            scenario_names=[s.name for s in scenarios],
            metrics=metrics,
            recommendation=recommendation,
            verdict=verdict,
        )

    # --- Versioning ---

    def _require_store(self):
        if self.version_store is None:
            raise ConfigurationError("No version store is attached to this scenario manager")
        return self.version_store

    def save_version(
        self,
        scenario_id: str,
        change_description: str = "",
        author: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ):
        store = self._require_store()
        with self._locks(scenario_id):
            scenario = self.get_scenario(scenario_id)
            saved = store.save_version(scenario, change_description, author, tags)
            scenario.version = saved.version
        return saved

    def rollback(self, scenario_id: str, target_version: int, create_backup: bool = True) -> NegotiationScenario:
        """Restore a saved version as a new forward version of the live scenario."""
        store = self._require_store()
        with self._locks(scenario_id):
            current = self._scenarios.get(scenario_id)
            restored = store.rollback(scenario_id, target_version, create_backup, current=current)
            self._recompute(restored)
            self._scenarios[scenario_id] = restored
        logger.info("Scenario %s rolled back to v%d as v%d", scenario_id, target_version, restored.version)
        return restored
