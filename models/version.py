from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from models.scenario import NegotiationScenario


@dataclass(frozen=True)
class ScenarioVersion:
    """Immutable snapshot of a scenario; the log is append-only."""
    version_id: str
    scenario_id: str
    version: int
    data: NegotiationScenario
    change_description: str = ""
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    tags: tuple = ()


@dataclass
class VersionChange:
    field: str                      # "name", "adjustments[2]", "results.profit"
    change_type: str                # "added", "removed", "modified"
    description: str
    old_value: Any = None
    new_value: Any = None


@dataclass
class VersionDiff:
    from_version: ScenarioVersion
    to_version: ScenarioVersion
    changes: List[VersionChange] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.changes


@dataclass
class VersionStats:
    total_versions: int
    oldest: Optional[datetime]
    newest: Optional[datetime]
    average_hours_between_versions: float
    most_active_day: str
