"""Tests for the narrative engine: discovery, stages, knowledge, and the crisis."""

import random

import pytest

from models import Session, Role, GlobalStage, CharacterStage, NarrativeContext
from narrative import NarrativeEngine, compute_progress


@pytest.fixture
def engine():
    return NarrativeEngine(rng=random.Random(11))


def desktop(session_id="d1"):
    return Session(id=session_id, role=Role.DESKTOP, pairing_code="123456")


# ── Tuning ─────────────────────────────────────────

def test_tune_known_frequency(engine):
    d = desktop()
    result = engine.tune(d, "87.5")

    assert result == {
        "active": True,
        "character": "Commander",
        "location": "Command Center Alpha",
        "narrativeContext": "initial",
    }
    assert d.current_frequency == "87.5"
    assert engine.state.user_discoveries["d1"] == {"87.5"}
    assert "87.5" in engine.state.discovered_frequencies


def test_tune_unknown_frequency_is_static(engine):
    d = desktop()
    result = engine.tune(d, "99.9")

    assert result == {"active": False}
    assert d.current_frequency == "99.9"
    assert "d1" not in engine.state.user_discoveries


def test_tune_same_frequency_discovers_once(engine):
    d = desktop()
    engine.tune(d, "92.1")
    engine.tune(d, "92.1")

    assert engine.state.user_discoveries["d1"] == {"92.1"}


def test_discoveries_are_per_desktop(engine):
    engine.tune(desktop("d1"), "87.5")
    engine.tune(desktop("d2"), "92.1")

    assert engine.state.user_discoveries["d1"] == {"87.5"}
    assert engine.state.user_discoveries["d2"] == {"92.1"}
    assert engine.state.discovered_frequencies == {"87.5", "92.1"}


def test_narrative_context_without_twist(engine):
    d = desktop()
    contexts = [engine.tune(d, f)["narrativeContext"]
                for f in ("87.5", "98.7", "92.1", "104.3")]

    assert contexts == ["initial", "developing", "developing", "advanced"]
    assert engine.state.plot_twist_triggered is False


def test_plot_twist_when_pivotal_frequency_missed(engine):
    d = desktop()
    engine.tune(d, "87.5")
    engine.tune(d, "92.1")
    result = engine.tune(d, "104.3")

    assert engine.state.plot_twist_triggered is True
    assert result["narrativeContext"] == "plot_twist"

    # Never reset, even once the pivotal frequency turns up
    engine.tune(d, "98.7")
    assert engine.state.plot_twist_triggered is True


def test_first_discovery_context_is_initial_even_after_twist(engine):
    other = desktop("d1")
    for f in ("87.5", "92.1", "104.3"):
        engine.tune(other, f)

    assert engine.tune(desktop("d2"), "95.7")["narrativeContext"] == NarrativeContext.INITIAL.value


# ── Story progress ─────────────────────────────────

def test_compute_progress_values():
    assert compute_progress([]) == 0
    assert compute_progress(["87.5"]) == 17
    assert compute_progress(["110.5"]) == 100
    assert compute_progress(["87.5", "110.5"]) == 58
    assert compute_progress(["99.9"]) == 0


def test_story_progress_recomputed_not_accumulated(engine):
    d = desktop()
    engine.tune(d, "110.5")
    assert engine.state.story_progress == 100

    engine.tune(d, "87.5")
    assert engine.state.story_progress == 58
    assert engine.progress_for("d1") == 58


# ── Messages ───────────────────────────────────────

def test_character_stage_thresholds(engine):
    stages = [engine.record_message("d1", "Commander", "hello")["stage"] for _ in range(7)]

    assert stages == [
        "introduction", "introduction", "discovery",
        "discovery", "discovery", "crisis", "crisis",
    ]
    cs = engine.state.character_states["Commander"]
    assert cs.interaction_count == 7
    assert cs.stage == CharacterStage.CRISIS


def test_interaction_count_monotonic(engine):
    counts = [engine.record_message("d1", "Spy", "status?")["interaction_count"]
              for _ in range(10)]
    assert counts == sorted(counts)
    assert counts[-1] == 10


def test_knowledge_flag_gated_by_character(engine):
    result = engine.record_message("d1", "Commander", "What was the experiment?")
    assert result["key_info"] is None
    assert engine.state.knowledge["experiment"] is False

    result = engine.record_message("d1", "Scientist", "What was the EXPERIMENT?")
    assert result["key_info"] == "experiment"
    assert engine.state.knowledge["experiment"] is True


def test_first_matching_rule_wins(engine):
    result = engine.record_message("d1", "Scientist", "Is the containment field holding?")
    assert result["key_info"] == "containment"
    assert engine.state.knowledge["breach"] is False


def test_knowledge_flags_never_reset(engine):
    engine.record_message("d1", "Pilot", "We need a rescue")
    engine.record_message("d1", "Pilot", "nothing of note")
    assert engine.state.knowledge["evacuation"] is True


def test_response_text_is_never_empty(engine):
    for character in ("Commander", "Doctor", "Director", "Nobody"):
        assert engine.record_message("d1", character, "hi")["text"]


# ── Global stage ───────────────────────────────────

def test_global_crisis_fires_exactly_once(engine):
    first = engine.record_message("d1", "Commander", "hi")
    again = engine.record_message("d1", "Commander", "hi")
    second = engine.record_message("d1", "Scientist", "hi")

    assert engine.state.global_stage == GlobalStage.DISCOVERY
    assert not any(r["crisis_triggered"] for r in (first, again, second))

    third = engine.record_message("d1", "Survivor", "hi")
    assert third["crisis_triggered"] is True
    assert engine.state.global_stage == GlobalStage.CRISIS

    fourth = engine.record_message("d1", "Pilot", "hi")
    assert fourth["crisis_triggered"] is False
    assert engine.state.global_stage == GlobalStage.CRISIS


def test_crisis_broadcast_targets(engine):
    tuned_commander = desktop("d1")
    tuned_doctor = desktop("d2")
    tuned_static = desktop("d3")
    untuned = desktop("d4")
    engine.tune(tuned_commander, "87.5")
    engine.tune(tuned_doctor, "95.7")
    engine.tune(tuned_static, "99.9")

    targets = engine.crisis_broadcasts([tuned_commander, tuned_doctor, tuned_static, untuned])

    assert len(targets) == 1
    d, character, line = targets[0]
    assert d is tuned_commander
    assert character == "Commander"
    assert line.startswith("ALERT")


def test_snapshot_is_json_friendly(engine):
    engine.tune(desktop(), "87.5")
    engine.record_message("d1", "Commander", "security breach!")
    snap = engine.snapshot()

    assert snap["global_stage"] == "discovery"
    assert snap["user_discoveries"] == {"d1": ["87.5"]}
    assert snap["knowledge"]["breach"] is True
    assert snap["character_states"]["Commander"]["interaction_count"] == 1
