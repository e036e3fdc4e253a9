"""
RADIO RELAY v1.0 — Data Models
Core data structures for connected sessions and the shared narrative state.

Everything here is memory-only. A server restart begins a fresh story.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


# ─────────────────────────────────────────────────────
# ENUMS
# ─────────────────────────────────────────────────────

class Role(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"


class GlobalStage(str, Enum):
    DISCOVERY = "discovery"
    CRISIS = "crisis"
    RESOLUTION = "resolution"   # reserved; nothing advances the story this far yet


class CharacterStage(str, Enum):
    INTRODUCTION = "introduction"
    DISCOVERY = "discovery"
    CRISIS = "crisis"


class NarrativeContext(str, Enum):
    INITIAL = "initial"
    DEVELOPING = "developing"
    ADVANCED = "advanced"
    PLOT_TWIST = "plot_twist"


class ErrorKind(str, Enum):
    INVALID_PAIRING_CODE = "invalid_pairing_code"
    NOT_PAIRED = "not_paired"
    NOT_REGISTERED = "not_registered"
    NO_ACTIVE_CHARACTER = "no_active_character"
    UNKNOWN_FREQUENCY = "unknown_frequency"     # inactive dial position, never surfaced as an error
    SYNTHESIS_FAILURE = "synthesis_failure"
    INVALID_MESSAGE_FORMAT = "invalid_message_format"
    INTERNAL_ERROR = "internal_error"


KNOWLEDGE_FLAGS = (
    "experiment", "breach", "creature", "evacuation",
    "government", "containment", "radiation", "mutation",
)

# Interaction counts at which a character moves to the next stage
DISCOVERY_THRESHOLD = 3
CRISIS_THRESHOLD = 6

# Distinct characters contacted before the whole world tips into crisis
CRISIS_CHARACTER_COUNT = 3


def failure(kind: ErrorKind, message: str) -> dict:
    """Uniform failure result for registry and narrative operations."""
    return {"success": False, "error": kind, "message": message}


# ─────────────────────────────────────────────────────
# SESSION
# ─────────────────────────────────────────────────────

@dataclass
class Session:
    """One transport connection after it has announced its role."""
    id: str
    role: Role
    pairing_code: Optional[str] = None      # desktop only
    paired_peer_id: Optional[str] = None
    current_frequency: Optional[str] = None  # desktop only
    connected_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_desktop(self) -> bool:
        return self.role == Role.DESKTOP

    @property
    def is_mobile(self) -> bool:
        return self.role == Role.MOBILE

    @property
    def is_paired(self) -> bool:
        return self.paired_peer_id is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "pairing_code": self.pairing_code,
            "paired_peer_id": self.paired_peer_id,
            "current_frequency": self.current_frequency,
            "connected_at": self.connected_at,
        }


# ─────────────────────────────────────────────────────
# CHARACTER STATE
# ─────────────────────────────────────────────────────

@dataclass
class CharacterState:
    """Per-character progression, driven purely by how often they are spoken to."""
    interaction_count: int = 0
    stage: CharacterStage = CharacterStage.INTRODUCTION
    last_interaction: str = ""

    def record_interaction(self) -> Optional[CharacterStage]:
        """
        Count one interaction and promote the stage when a threshold is crossed.
        Returns the new stage if it changed, else None.
        """
        self.interaction_count += 1
        self.last_interaction = datetime.now().isoformat()

        old = self.stage
        if (self.interaction_count >= DISCOVERY_THRESHOLD
                and self.stage == CharacterStage.INTRODUCTION):
            self.stage = CharacterStage.DISCOVERY
        if (self.interaction_count >= CRISIS_THRESHOLD
                and self.stage == CharacterStage.DISCOVERY):
            self.stage = CharacterStage.CRISIS

        return self.stage if self.stage != old else None

    def to_dict(self) -> dict:
        return {
            "interaction_count": self.interaction_count,
            "stage": self.stage.value,
            "last_interaction": self.last_interaction,
        }


# ─────────────────────────────────────────────────────
# NARRATIVE STATE
# ─────────────────────────────────────────────────────

@dataclass
class NarrativeState:
    """The single shared story every connected listener advances together."""
    global_stage: GlobalStage = GlobalStage.DISCOVERY
    character_states: dict = field(default_factory=dict)     # character -> CharacterState
    user_discoveries: dict = field(default_factory=dict)     # desktop session id -> set of keys
    discovered_frequencies: set = field(default_factory=set)
    discovered_characters: set = field(default_factory=set)
    knowledge: dict = field(default_factory=lambda: {flag: False for flag in KNOWLEDGE_FLAGS})
    story_progress: int = 0
    plot_twist_triggered: bool = False

    def character(self, name: str) -> CharacterState:
        """Return the character's state, creating it on first contact."""
        if name not in self.character_states:
            self.character_states[name] = CharacterState()
        return self.character_states[name]

    def discoveries_for(self, session_id: str) -> set:
        return self.user_discoveries.get(session_id, set())

    def known_flags(self) -> list[str]:
        return [flag for flag, known in self.knowledge.items() if known]

    def to_dict(self) -> dict:
        return {
            "global_stage": self.global_stage.value,
            "character_states": {
                name: cs.to_dict() for name, cs in sorted(self.character_states.items())
            },
            "user_discoveries": {
                sid: sorted(keys) for sid, keys in self.user_discoveries.items()
            },
            "discovered_frequencies": sorted(self.discovered_frequencies),
            "discovered_characters": sorted(self.discovered_characters),
            "knowledge": dict(self.knowledge),
            "story_progress": self.story_progress,
            "plot_twist_triggered": self.plot_twist_triggered,
        }
