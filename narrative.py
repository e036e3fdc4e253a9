"""
RADIO RELAY v1.0 — Narrative Engine
The story state machine. Tuning discovers characters, talking to them
advances their stage, and enough contact tips the whole world into crisis.

State:
  discovery  -> Listeners are finding voices on the dial.
  crisis     -> Three distinct characters have been contacted. Broadcast fires once.
  resolution -> Reserved.

Every method here mutates synchronously. Nothing awaits, so callers on the
event loop never observe a half-applied update.
"""

import logging
import math
import random

from dialogue import match_knowledge, select_response, crisis_broadcast_line
from frequencies import lookup, PIVOTAL_FREQUENCY, MAX_DISCOVERY_ORDER
from models import (
    NarrativeState, Session, GlobalStage, NarrativeContext,
    CRISIS_CHARACTER_COUNT,
)

logger = logging.getLogger("radio.narrative")


def compute_progress(discoveries) -> int:
    """
    Story progress (0-100) from the average discovery order of a listener's
    frequencies. Recomputed from scratch, so a late low-order find can lower it.
    """
    orders = [entry.discovery_order for entry in map(lookup, discoveries) if entry]
    if not orders:
        return 0
    average = sum(orders) / len(orders)
    # Half-up rounding, not banker's
    return min(100, int(math.floor(average / MAX_DISCOVERY_ORDER * 100 + 0.5)))


class NarrativeEngine:
    """Owns the NarrativeState and every rule that changes it."""

    def __init__(self, state: NarrativeState = None, rng: random.Random = None):
        self.state = state or NarrativeState()
        self.rng = rng or random.Random()

    # ─────────────────────────────────────────────────
    # TUNING
    # ─────────────────────────────────────────────────

    def tune(self, desktop: Session, frequency: str) -> dict:
        """
        Point a desktop's dial at `frequency`. Returns the frequency_active
        payload for the desktop and its mobile.
        """
        desktop.current_frequency = frequency
        entry = lookup(frequency)
        if not entry:
            return {"active": False}

        discoveries = self.state.user_discoveries.setdefault(desktop.id, set())
        if frequency not in discoveries:
            discoveries.add(frequency)
            self.state.discovered_frequencies.add(frequency)
            logger.info(f"{desktop.id} discovered {frequency} ({entry.character})")
            self._check_progression(desktop.id)

        return {
            "active": True,
            "character": entry.character,
            "location": entry.location,
            "narrativeContext": self.narrative_context(desktop.id).value,
        }

    def _check_progression(self, session_id: str):
        discoveries = self.state.discoveries_for(session_id)
        self.state.story_progress = compute_progress(discoveries)
        logger.info(f"Story progress for {session_id}: {self.state.story_progress}% "
                    f"({len(discoveries)} frequencies)")

        if (len(discoveries) >= 3 and PIVOTAL_FREQUENCY not in discoveries
                and not self.state.plot_twist_triggered):
            self.state.plot_twist_triggered = True
            logger.info(f"Plot twist triggered by {session_id}")

    def narrative_context(self, session_id: str) -> NarrativeContext:
        count = len(self.state.discoveries_for(session_id))
        if count <= 1:
            return NarrativeContext.INITIAL
        if self.state.plot_twist_triggered:
            return NarrativeContext.PLOT_TWIST
        if count > 3:
            return NarrativeContext.ADVANCED
        return NarrativeContext.DEVELOPING

    def progress_for(self, session_id: str) -> int:
        """Progress a single listener would see, without touching shared state."""
        return compute_progress(self.state.discoveries_for(session_id))

    # ─────────────────────────────────────────────────
    # MESSAGES
    # ─────────────────────────────────────────────────

    def record_message(self, desktop_id: str, character: str, text: str) -> dict:
        """
        Apply one listener message to `character` and choose the reply.
        Synthesis happens afterwards in the relay; this never awaits.
        """
        key_info = match_knowledge(text, character)
        if key_info:
            if not self.state.knowledge.get(key_info):
                logger.info(f"Knowledge unlocked: {key_info} via {character}")
            self.state.knowledge[key_info] = True

        cs = self.state.character(character)
        promoted = cs.record_interaction()
        if promoted:
            logger.info(f"{character} advanced to {promoted.value} "
                        f"after {cs.interaction_count} interactions")

        self.state.discovered_characters.add(character)
        crisis_triggered = self._advance_global_stage()

        text_out = select_response(character, cs.stage, self.state.knowledge, self.rng)
        return {
            "success": True,
            "desktop_id": desktop_id,
            "character": character,
            "stage": cs.stage.value,
            "interaction_count": cs.interaction_count,
            "key_info": key_info,
            "crisis_triggered": crisis_triggered,
            "text": text_out,
        }

    def _advance_global_stage(self) -> bool:
        if (self.state.global_stage == GlobalStage.DISCOVERY
                and len(self.state.discovered_characters) >= CRISIS_CHARACTER_COUNT):
            self.state.global_stage = GlobalStage.CRISIS
            logger.warning("Global narrative advanced to CRISIS "
                           f"({', '.join(sorted(self.state.discovered_characters))})")
            return True
        return False

    # ─────────────────────────────────────────────────
    # BROADCAST
    # ─────────────────────────────────────────────────

    def crisis_broadcasts(self, desktops: list[Session]) -> list[tuple]:
        """(desktop, character, line) for every desktop tuned to a voice with a crisis line."""
        out = []
        for desktop in desktops:
            entry = lookup(desktop.current_frequency)
            if not entry:
                continue
            line = crisis_broadcast_line(entry.character)
            if line:
                out.append((desktop, entry.character, line))
        return out

    def snapshot(self) -> dict:
        return self.state.to_dict()
