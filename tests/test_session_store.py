"""Tests for the session-state adapters."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from models.scenario import Adjustment, NegotiationScenario
from engine.version_store import VersionStore
from data import session_store


@pytest.fixture
def state(monkeypatch):
    fake = {}
    monkeypatch.setattr(session_store.st, "session_state", fake)
    return fake


def make_scenario(scenario_id="s1"):
    return NegotiationScenario(scenario_id=scenario_id, name="Variant", description="")


class TestInitialize:
    def test_defaults(self, state):
        session_store.initialize_session_state()
        assert state["scenarios"] == {}
        assert state["negotiation_versions"] == {}
        assert session_store.get_active_scenario() is None

    def test_existing_values_are_kept(self, state):
        state["rule_config"] = {"discount_rate": 0.05}
        session_store.initialize_session_state()
        assert session_store.get_rule_config() == {"discount_rate": 0.05}


class TestVersionPort:
    def test_round_trip_through_session_state(self, state):
        store = VersionStore(session_store.SessionStateVersionPort())
        scenario = make_scenario()
        scenario.adjustments.append(Adjustment("price", "margin", 20, 25))
        store.save_version(scenario, "first")

        # A fresh store over the same session sees the same log
        reloaded = VersionStore(session_store.SessionStateVersionPort())
        versions = reloaded.list_versions("s1")
        assert [v.version for v in versions] == [1, 2]
        assert versions[-1].data.adjustments[0].adjusted_value == 25
        assert "s1" in state["negotiation_versions"]

    def test_custom_key(self, state):
        port = session_store.SessionStateVersionPort(key="history")
        VersionStore(port).save_version(make_scenario())
        assert len(state["history"]["s1"]) == 2

    def test_rollback_through_session_state(self, state):
        store = VersionStore(session_store.SessionStateVersionPort())
        store.save_version(make_scenario())
        restored = store.rollback("s1", 1)
        assert restored.version == 4


class TestScenarios:
    def test_store_and_select(self, state):
        a, b = make_scenario("a"), make_scenario("b")
        session_store.store_scenarios([a, b])
        assert list(session_store.get_scenarios()) == ["a", "b"]
        assert session_store.get_active_scenario_id() == "a"

        session_store.set_active_scenario_id("b")
        assert session_store.get_active_scenario() is b

    def test_remove_active_clears_selection(self, state):
        session_store.store_scenarios([make_scenario("a")])
        session_store.remove_scenario("a")
        assert session_store.get_active_scenario_id() is None
        assert session_store.get_scenarios() == {}

    def test_update(self, state):
        session_store.update_scenario(make_scenario("a"))
        assert "a" in session_store.get_scenarios()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
