"""
RADIO RELAY v1.0 — Frequency Catalog
Which voices live where on the dial. Edit this file to rearrange the story.
"""

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FrequencyEntry:
    frequency: str          # one-decimal key, e.g. "87.5"
    character: str
    location: str
    context: str
    narrative_stage: str    # authoring label only
    discovery_order: float  # weight used for story progress


# The frequency whose absence after several discoveries triggers the plot twist
PIVOTAL_FREQUENCY = "98.7"

# Highest discovery order; story progress is scaled against it
MAX_DISCOVERY_ORDER = 6


FREQUENCIES = {
    entry.frequency: entry for entry in (
        FrequencyEntry("87.5", "Commander", "Command Center Alpha",
                       "mission_control", "introduction", 1),
        FrequencyEntry("89.3", "Security Officer", "Facility Perimeter",
                       "perimeter_breach", "introduction_alt", 1.5),
        FrequencyEntry("92.1", "Survivor", "Northern Forest",
                       "wilderness", "complication", 2),
        FrequencyEntry("95.7", "Doctor", "Field Hospital",
                       "medical_emergency", "complication_alt", 2.5),
        FrequencyEntry("98.7", "Scientist", "Research Facility",
                       "laboratory", "revelation", 3),
        FrequencyEntry("101.2", "Engineer", "Power Station",
                       "power_failure", "revelation_alt", 3.5),
        FrequencyEntry("104.3", "Spy", "Facility Basement",
                       "undercover", "escalation", 4),
        FrequencyEntry("107.9", "Pilot", "Airspace Above Site",
                       "emergency_landing", "climax", 5),
        FrequencyEntry("110.5", "Director", "Emergency Bunker",
                       "evacuation", "resolution", 6),
    )
}

CHARACTERS = tuple(entry.character for entry in FREQUENCIES.values())


def normalize_frequency(value) -> Optional[str]:
    """
    Coerce a tuned value to its one-decimal catalog key.
    Accepts numbers and numeric strings. Returns None for anything else.
    Finer dial positions keep their digits so they never land on a catalog key.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    if round(number, 1) != number:
        return repr(number)
    return f"{number:.1f}"


def lookup(frequency: Optional[str]) -> Optional[FrequencyEntry]:
    """Exact-key lookup. Unknown or empty keys are static."""
    if not frequency:
        return None
    return FREQUENCIES.get(frequency)


def character_on(frequency: Optional[str]) -> Optional[str]:
    entry = lookup(frequency)
    return entry.character if entry else None
