"""Tests for response selection and the static dialogue tables."""

import random

import pytest

from dialogue import (
    STAGE_LINES, CROSS_REFERENCES, DEFAULT_LINES, STATIC_LINE,
    select_response, cross_reference, match_knowledge, crisis_broadcast_line,
)
from frequencies import CHARACTERS
from models import CharacterStage, KNOWLEDGE_FLAGS


class FixedRng:
    """random() always returns `value`; choice() always takes the first item."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value

    def choice(self, seq):
        return seq[0]


def no_knowledge():
    return {flag: False for flag in KNOWLEDGE_FLAGS}


def test_every_character_has_pools_for_every_stage():
    for character in CHARACTERS:
        for stage in CharacterStage:
            pool = STAGE_LINES[(character, stage.value)]
            assert 7 <= len(pool) <= 10


def test_cross_references_only_use_known_flags():
    for lines in CROSS_REFERENCES.values():
        for flag, _ in lines:
            assert flag in KNOWLEDGE_FLAGS


def test_stage_pool_used_when_cross_reference_not_drawn():
    knowledge = no_knowledge()
    knowledge["experiment"] = True
    line = select_response("Commander", CharacterStage.DISCOVERY, knowledge, FixedRng(0.9))
    assert line == STAGE_LINES[("Commander", "discovery")][0]


def test_cross_reference_used_when_drawn_and_known():
    knowledge = no_knowledge()
    knowledge["creature"] = True
    line = select_response("Commander", "discovery", knowledge, FixedRng(0.1))
    assert line.startswith("If what the survivor reported is true")


def test_cross_reference_prefers_first_known_flag():
    knowledge = no_knowledge()
    knowledge["breach"] = True
    knowledge["government"] = True
    assert cross_reference("Scientist", "crisis", knowledge).startswith("You spoke with security?")


def test_cross_reference_falls_through_without_knowledge():
    line = select_response("Spy", "crisis", no_knowledge(), FixedRng(0.1))
    assert line == STAGE_LINES[("Spy", "crisis")][0]


def test_default_line_when_stage_has_no_pool():
    assert select_response("Commander", "resolution", no_knowledge(), FixedRng(0.9)) == \
        DEFAULT_LINES["Commander"]


def test_static_line_fallbacks():
    assert select_response("Doctor", "resolution", no_knowledge(), FixedRng(0.9)) == STATIC_LINE
    assert select_response("Nobody", "introduction", no_knowledge(), FixedRng(0.1)) == STATIC_LINE


def test_seeded_selection_is_deterministic():
    rng_a, rng_b = random.Random(42), random.Random(42)
    picks_a = [select_response("Pilot", "crisis", no_knowledge(), rng_a) for _ in range(5)]
    picks_b = [select_response("Pilot", "crisis", no_knowledge(), rng_b) for _ in range(5)]
    assert picks_a == picks_b


@pytest.mark.parametrize("message,character,flag", [
    ("Any research notes?", "Engineer", "experiment"),
    ("The security grid is down", "Security Officer", "breach"),
    ("I saw a MONSTER", "Survivor", "creature"),
    ("When is extraction?", "Commander", "evacuation"),
    ("Is this classified?", "Spy", "government"),
    ("Check the barrier", "Engineer", "containment"),
    ("Any exposure?", "Doctor", "radiation"),
    ("Did they transform?", "Survivor", "mutation"),
    ("I saw a monster", "Pilot", None),
    ("hello", "Scientist", None),
])
def test_match_knowledge(message, character, flag):
    assert match_knowledge(message, character) == flag


def test_crisis_broadcast_lines():
    assert crisis_broadcast_line("Scientist") == "The containment field is collapsing! We're out of time!"
    assert crisis_broadcast_line("Doctor") is None
