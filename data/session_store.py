"""Typed wrapper around st.session_state for negotiation data."""

import streamlit as st
from typing import Dict, List, Optional
from models.project import ProjectSnapshot
from models.scenario import NegotiationScenario
from models.version import ScenarioVersion

VERSIONS_KEY = "negotiation_versions"


def initialize_session_state():
    """Initialize all session state keys with defaults."""
    defaults = {
        "project": None,
        "scenarios": {},
        "active_scenario_id": None,
        VERSIONS_KEY: {},
        "rule_config": {},
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default


class SessionStateVersionPort:
    """Version log kept in st.session_state, one list per scenario id."""

    def __init__(self, key: str = VERSIONS_KEY):
        self.key = key

    def _log(self) -> Dict[str, List[ScenarioVersion]]:
        if self.key not in st.session_state:
            st.session_state[self.key] = {}
        return st.session_state[self.key]

    def get(self, scenario_id: str) -> List[ScenarioVersion]:
        return list(self._log().get(scenario_id, []))

    def append(self, scenario_id: str, version: ScenarioVersion) -> None:
        self._log().setdefault(scenario_id, []).append(version)

    def replace(self, scenario_id: str, versions: List[ScenarioVersion]) -> None:
        self._log()[scenario_id] = list(versions)

    def scenario_ids(self) -> List[str]:
        return list(self._log())


# --- Getters ---

def get_project() -> Optional[ProjectSnapshot]:
    return st.session_state.get("project")


def get_scenarios() -> Dict[str, NegotiationScenario]:
    return st.session_state.get("scenarios", {})


def get_active_scenario_id() -> Optional[str]:
    return st.session_state.get("active_scenario_id")


def get_active_scenario() -> Optional[NegotiationScenario]:
    scenario_id = get_active_scenario_id()
    if scenario_id is None:
        return None
    return get_scenarios().get(scenario_id)


def get_rule_config() -> dict:
    return st.session_state.get("rule_config", {})


# --- Setters ---

def set_project(project: ProjectSnapshot):
    st.session_state["project"] = project


def set_active_scenario_id(scenario_id: Optional[str]):
    st.session_state["active_scenario_id"] = scenario_id


def set_rule_config(config: dict):
    st.session_state["rule_config"] = config


# --- Scenario Management ---

def store_scenarios(scenarios: List[NegotiationScenario]):
    """Mirror the manager's scenarios into session state, keeping their order."""
    st.session_state["scenarios"] = {s.scenario_id: s for s in scenarios}
    if get_active_scenario_id() not in st.session_state["scenarios"]:
        set_active_scenario_id(scenarios[0].scenario_id if scenarios else None)


def update_scenario(scenario: NegotiationScenario):
    if "scenarios" not in st.session_state:
        st.session_state["scenarios"] = {}
    st.session_state["scenarios"][scenario.scenario_id] = scenario


def remove_scenario(scenario_id: str):
    st.session_state.get("scenarios", {}).pop(scenario_id, None)
    if get_active_scenario_id() == scenario_id:
        set_active_scenario_id(None)
