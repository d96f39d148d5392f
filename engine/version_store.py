"""Append-only version log for negotiation scenarios.

Versions are kept per scenario id behind a small persistence port so the same
store works in memory (tests, scripts) and on top of Streamlit session state
(see data/session_store.py).
"""

import copy
import logging
import uuid
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Protocol, Sequence

from models.scenario import Adjustment, NegotiationScenario
from models.version import ScenarioVersion, VersionChange, VersionDiff, VersionStats
from engine.errors import NotFoundError
from engine.locking import KeyedLocks
from config.defaults import (
    AUTO_BACKUP_TAG, ROLLBACK_TAG, KEEP_TAG, SYSTEM_AUTHOR,
    MAX_VERSIONS_PER_SCENARIO, VERSION_RETENTION_DAYS,
)

logger = logging.getLogger(__name__)

# (attribute, label) pairs of CostBreakdown tracked by diffs
TRACKED_RESULT_FIELDS = [
    ("total_price", "Total price"),
    ("total_cost", "Total cost"),
    ("profit", "Profit"),
    ("margin_pct", "Margin %"),
    ("roi_pct", "ROI %"),
    ("payback_months", "Payback (months)"),
    ("risk_level", "Risk level"),
]

ADJUSTMENT_FIELDS = ["category", "field", "original_value", "adjusted_value", "reason"]


class VersionPort(Protocol):
    """Backing store for version logs. Each call is one atomic operation."""

    def get(self, scenario_id: str) -> List[ScenarioVersion]:
        ...

    def append(self, scenario_id: str, version: ScenarioVersion) -> None:
        ...

    def replace(self, scenario_id: str, versions: List[ScenarioVersion]) -> None:
        ...

    def scenario_ids(self) -> List[str]:
        ...


class InMemoryVersionPort:
    def __init__(self):
        self._log: Dict[str, List[ScenarioVersion]] = {}

    def get(self, scenario_id: str) -> List[ScenarioVersion]:
        return list(self._log.get(scenario_id, []))

    def append(self, scenario_id: str, version: ScenarioVersion) -> None:
        self._log.setdefault(scenario_id, []).append(version)

    def replace(self, scenario_id: str, versions: List[ScenarioVersion]) -> None:
        self._log[scenario_id] = list(versions)

    def scenario_ids(self) -> List[str]:
        return list(self._log)


def _describe(value) -> str:
    if hasattr(value, "value"):
        value = value.value
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)


def _adjustment_label(adjustment: Adjustment) -> str:
    category = getattr(adjustment.category, "value", adjustment.category)
    return f"{category}/{adjustment.field}"


def diff_scenarios(old: NegotiationScenario, new: NegotiationScenario) -> List[VersionChange]:
    """Field-level changes between two scenario snapshots (empty when identical)."""
    changes = []

    for attr in ("name", "description"):
        old_value, new_value = getattr(old, attr), getattr(new, attr)
        if old_value != new_value:
            changes.append(VersionChange(
                field=attr,
                change_type="modified",
                description=f"{attr.capitalize()} changed from '{old_value}' to '{new_value}'",
                old_value=old_value,
                new_value=new_value,
            ))

    # Adjustments are compared by position
    for i in range(max(len(old.adjustments), len(new.adjustments))):
        path = f"adjustments[{i}]"
        before = old.adjustments[i] if i < len(old.adjustments) else None
        after = new.adjustments[i] if i < len(new.adjustments) else None
        if before is None:
            changes.append(VersionChange(
                path, "added", f"Adjustment added: {_adjustment_label(after)}", new_value=after,
            ))
        elif after is None:
            changes.append(VersionChange(
                path, "removed", f"Adjustment removed: {_adjustment_label(before)}", old_value=before,
            ))
        else:
            modified = [f for f in ADJUSTMENT_FIELDS if getattr(before, f) != getattr(after, f)]
            if modified:
                details = ", ".join(
                    f"{f}: {_describe(getattr(before, f))} -> {_describe(getattr(after, f))}"
                    for f in modified
                )
                changes.append(VersionChange(
                    path, "modified", f"Adjustment {_adjustment_label(after)} modified ({details})",
                    old_value=before, new_value=after,
                ))

    if old.results is None and new.results is not None:
        changes.append(VersionChange("results", "added", "Results calculated", new_value=new.results))
    elif old.results is not None and new.results is None:
        changes.append(VersionChange("results", "removed", "Results cleared", old_value=old.results))
    elif old.results is not None and new.results is not None:
        for attr, label in TRACKED_RESULT_FIELDS:
            before, after = getattr(old.results, attr), getattr(new.results, attr)
            if before != after:
                changes.append(VersionChange(
                    field=f"results.{attr}",
                    change_type="modified",
                    description=f"{label} changed from {_describe(before)} to {_describe(after)}",
                    old_value=before,
                    new_value=after,
                ))

    return changes


class VersionStore:
    def __init__(self, port: Optional[VersionPort] = None, max_versions: int = MAX_VERSIONS_PER_SCENARIO):
        self.port = port if port is not None else InMemoryVersionPort()
        self.max_versions = max_versions
        self._locks = KeyedLocks()

    # --- Reads ---

    def list_versions(self, scenario_id: str) -> List[ScenarioVersion]:
        return sorted(self.port.get(scenario_id), key=lambda v: v.version)

    def latest_version(self, scenario_id: str) -> ScenarioVersion:
        versions = self.list_versions(scenario_id)
        if not versions:
            raise NotFoundError(f"No saved versions for scenario {scenario_id}")
        return versions[-1]

    def get_version(self, scenario_id: str, version: int) -> ScenarioVersion:
        versions = self.list_versions(scenario_id)
        if not versions:
            raise NotFoundError(f"No saved versions for scenario {scenario_id}")
        for entry in versions:
            if entry.version == version:
                return entry
        raise NotFoundError(f"Version {version} not found for scenario {scenario_id}")

    def _next_number(self, scenario_id: str) -> int:
        versions = self.port.get(scenario_id)
        return max((v.version for v in versions), default=0) + 1

    # --- Writes ---

    def _append(
        self,
        scenario: NegotiationScenario,
        change_description: str,
        author: Optional[str],
        tags: Sequence[str],
    ) -> ScenarioVersion:
        number = self._next_number(scenario.scenario_id)
        snapshot = copy.deepcopy(scenario)
        snapshot.version = number
        entry = ScenarioVersion(
            version_id=f"version-{uuid.uuid4().hex[:12]}",
            scenario_id=scenario.scenario_id,
            version=number,
            data=snapshot,
            change_description=change_description,
            created_by=author,
            tags=tuple(tags),
        )
        self.port.append(scenario.scenario_id, entry)
        return entry

    def save_version(
        self,
        scenario: NegotiationScenario,
        change_description: str = "",
        author: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> ScenarioVersion:
        """Back up the current state, then append the requested version after it."""
        with self._locks(scenario.scenario_id):
            self._append(scenario, "Automatic backup before save", SYSTEM_AUTHOR, (AUTO_BACKUP_TAG,))
            saved = self._append(scenario, change_description, author, tags or ())
            self._enforce_limit(scenario.scenario_id)
        logger.info(
            "Saved %s v%d%s", scenario.scenario_id, saved.version,
            f" ({change_description})" if change_description else "",
        )
        return saved

    def rollback(
        self,
        scenario_id: str,
        target_version: int,
        create_backup: bool = True,
        current: Optional[NegotiationScenario] = None,
    ) -> NegotiationScenario:
        """Restore target_version as a new forward version and return its data."""
        with self._locks(scenario_id):
            target = self.get_version(scenario_id, target_version)

            if create_backup:
                state = current if current is not None else self.latest_version(scenario_id).data
                self._append(
                    state, f"Automatic backup before rollback to v{target_version}",
                    SYSTEM_AUTHOR, (AUTO_BACKUP_TAG, ROLLBACK_TAG),
                )

            restored = self._append(
                target.data, f"Rollback to v{target_version}", SYSTEM_AUTHOR, (ROLLBACK_TAG,),
            )
            self._enforce_limit(scenario_id)
        logger.info("Rolled back %s to v%d as v%d", scenario_id, target_version, restored.version)
        return copy.deepcopy(restored.data)

    # --- Diff ---

    def diff(self, version_a: ScenarioVersion, version_b: ScenarioVersion) -> VersionDiff:
        return VersionDiff(
            from_version=version_a,
            to_version=version_b,
            changes=diff_scenarios(version_a.data, version_b.data),
        )

    def diff_versions(self, scenario_id: str, version_a: int, version_b: int) -> VersionDiff:
        return self.diff(
            self.get_version(scenario_id, version_a),
            self.get_version(scenario_id, version_b),
        )

    # --- History tools ---

    def search_versions(self, query: str, scenario_id: Optional[str] = None) -> List[ScenarioVersion]:
        """Case-insensitive match on change description, tags and author."""
        needle = query.lower()
        ids = [scenario_id] if scenario_id else self.port.scenario_ids()
        found = []
        for sid in ids:
            for entry in self.list_versions(sid):
                haystack = [entry.change_description, entry.created_by or "", *entry.tags]
                if any(needle in text.lower() for text in haystack):
                    found.append(entry)
        return sorted(found, key=lambda v: v.created_at, reverse=True)

    def version_stats(self, scenario_id: str) -> VersionStats:
        versions = self.list_versions(scenario_id)
        if not versions:
            return VersionStats(0, None, None, 0.0, "")

        timestamps = sorted(v.created_at for v in versions)
        if len(timestamps) > 1:
            span = (timestamps[-1] - timestamps[0]).total_seconds() / 3600
            average_hours = span / (len(timestamps) - 1)
        else:
            average_hours = 0.0
        by_day = Counter(ts.strftime("%Y-%m-%d") for ts in timestamps)

        return VersionStats(
            total_versions=len(versions),
            oldest=timestamps[0],
            newest=timestamps[-1],
            average_hours_between_versions=average_hours,
            most_active_day=by_day.most_common(1)[0][0],
        )

    def version_tree(self, scenario_id: str) -> Dict[str, list]:
        """Linear history as nodes and edges, rollbacks marked for the UI."""
        versions = self.list_versions(scenario_id)
        nodes = [
            {
                "id": v.version_id,
                "version": v.version,
                "label": f"v{v.version}",
                "description": v.change_description,
                "created_at": v.created_at,
                "is_backup": AUTO_BACKUP_TAG in v.tags,
                "is_rollback": ROLLBACK_TAG in v.tags,
            }
            for v in versions
        ]
        edges = [
            {"from": a.version_id, "to": b.version_id}
            for a, b in zip(versions, versions[1:])
        ]
        return {"nodes": nodes, "edges": edges}

    # --- Pruning ---

    def _enforce_limit(self, scenario_id: str) -> None:
        # Hard cap: only the newest max_versions entries survive a save
        versions = sorted(self.port.get(scenario_id), key=lambda v: v.version)
        limit = max(self.max_versions, 1)
        if len(versions) > limit:
            self.port.replace(scenario_id, versions[-limit:])
            logger.info("Trimmed %s to its newest %d versions", scenario_id, limit)

    def prune(
        self,
        scenario_id: str,
        retention_days: int = VERSION_RETENTION_DAYS,
        keep_latest: int = MAX_VERSIONS_PER_SCENARIO,
        now: Optional[datetime] = None,
    ) -> int:
        """Drop old versions; returns how many were removed.

        Kept: the newest keep_latest versions, anything inside the retention
        window, auto-backups and versions tagged 'keep'. The highest version is
        always kept so numbers are never handed out twice.
        """
        with self._locks(scenario_id):
            return self._prune_locked(scenario_id, retention_days, keep_latest, now or datetime.now())

    def _prune_locked(self, scenario_id: str, retention_days: int, keep_latest: int, now: datetime) -> int:
        versions = sorted(self.port.get(scenario_id), key=lambda v: v.version)
        if not versions:
            return 0
        cutoff = now - timedelta(days=retention_days)
        newest = {v.version for v in versions[-max(keep_latest, 1):]}

        kept = [
            v for v in versions
            if v.version in newest
            or v.created_at >= cutoff
            or AUTO_BACKUP_TAG in v.tags
            or KEEP_TAG in v.tags
        ]
        removed = len(versions) - len(kept)
        if removed:
            self.port.replace(scenario_id, kept)
            logger.info("Pruned %d versions of %s", removed, scenario_id)
        return removed
