"""
RADIO RELAY v1.0 — Dialogue Tables & Response Selection
Static lines for every character at every stage, plus the cross-character
callbacks that unlock once the listener has learned something elsewhere.

Selection is a pure function of the tables, the knowledge flags, and one
draw from the supplied random source.
"""

import random
from typing import Optional


STATIC_LINE = "Radio static... transmission lost..."

# Chance that a character tries to reference what others have revealed
CROSS_REFERENCE_CHANCE = 0.3


# ─────────────────────────────────────────────────────
# KNOWLEDGE RULES
# (flag, characters allowed to reveal it, trigger keywords)
# Checked in order; the first match wins.
# ─────────────────────────────────────────────────────

KNOWLEDGE_RULES = (
    ("experiment", ("Scientist", "Engineer"), ("experiment", "test", "research")),
    ("breach", ("Commander", "Security Officer"), ("breach", "containment", "security")),
    ("creature", ("Survivor", "Security Officer"), ("creature", "monster", "entity")),
    ("evacuation", ("Commander", "Pilot"), ("evacuate", "extraction", "rescue")),
    ("government", ("Spy", "Scientist"), ("government", "classified", "project")),
    ("containment", ("Scientist", "Engineer"), ("containment", "field", "barrier")),
    ("radiation", ("Scientist", "Doctor"), ("radiation", "exposure", "effects")),
    ("mutation", ("Survivor", "Doctor"), ("mutation", "change", "transform")),
)


def match_knowledge(message: str, character: str) -> Optional[str]:
    """Return the first knowledge flag this message reveals to this character."""
    lowered = message.lower()
    for flag, characters, keywords in KNOWLEDGE_RULES:
        if character in characters and any(k in lowered for k in keywords):
            return flag
    return None


# ─────────────────────────────────────────────────────
# CROSS-REFERENCES
# (character, stage) -> [(required flag, line), ...]
# ─────────────────────────────────────────────────────

CROSS_REFERENCES = {
    ("Commander", "discovery"): [
        ("experiment", "The scientists were playing with forces they didn't understand. "
                       "Now we're all paying the price."),
        ("creature", "If what the survivor reported is true, we need to adjust our "
                     "containment strategy immediately."),
    ],
    ("Scientist", "crisis"): [
        ("breach", "You spoke with security? Then you know about the containment breach. "
                   "It's worse than they realize."),
        ("government", "The classified nature of this project... it's why we weren't "
                       "prepared for this scale of failure."),
    ],
    ("Survivor", "discovery"): [
        ("experiment", "So that's what they were doing in the facility... "
                       "no wonder everything's changing."),
        ("radiation", "The doctor mentioned radiation... that explains why the animals "
                      "are acting so strange."),
    ],
    ("Spy", "crisis"): [
        ("government", "The government's involvement goes deeper than we thought. "
                       "This was never just a research facility."),
        ("evacuation", "The commander's evacuation order... it's a cover. "
                       "They're planning something else."),
    ],
    ("Pilot", "crisis"): [
        ("containment", "The containment field the scientists mentioned... it's affecting "
                        "our instruments. We can't maintain altitude!"),
        ("mutation", "The doctor's reports about mutations... I'm seeing things in the "
                     "clouds that shouldn't be possible."),
    ],
}


# ─────────────────────────────────────────────────────
# STAGE LINES
# ─────────────────────────────────────────────────────

STAGE_LINES = {
    # ── Commander ──
    ("Commander", "introduction"): (
        "This is Command Center Alpha. We've detected your signal.",
        "Special operations command here. Identify yourself and state your situation.",
        "We've been monitoring this frequency. Report your status immediately.",
        "Command Center Alpha to unidentified station. Do you copy?",
        "This is a restricted frequency. Identify yourself or terminate transmission.",
        "Command Center Alpha standing by. State your authorization code.",
        "We've been expecting contact. Report your current position.",
        "This is Command Center Alpha. We're tracking unusual activity in your sector.",
    ),
    ("Commander", "discovery"): (
        "Our scientists warned this might happen. The experiment was never supposed to go this far.",
        "We've lost contact with three teams already. Whatever's happening is spreading.",
        "The energy signatures match nothing in our database. This is beyond anything we've encountered.",
        "The containment protocols are failing. We need to implement emergency measures.",
        "Multiple anomalies detected across the facility. This is worse than we feared.",
        "The quantum field experiment... it's affecting our communications grid.",
        "We're receiving reports of reality distortions near the research wing.",
        "The facility's security systems are becoming... unstable. They're developing awareness.",
        "Our sensors are picking up impossible readings. The laws of physics are breaking down.",
        "The containment field is fluctuating. We need to evacuate all non-essential personnel.",
    ),
    ("Commander", "crisis"): (
        "All units fall back to containment perimeter. This is not a drill. Repeat, fall back immediately.",
        "The phenomenon is expanding exponentially. We need to evacuate all personnel within a 5-mile radius.",
        "Military protocol has been authorized. Anyone showing signs of exposure must be quarantined.",
        "The facility is being consumed by the anomaly. We're losing control of the situation.",
        "Emergency broadcast: All personnel report to designated evacuation points immediately.",
        "The containment field is collapsing! We need to initiate the failsafe protocol.",
        "Reality itself is breaking down around the facility. We're losing contact with the outside world.",
        "The quantum field has breached containment. We're seeing impossible phenomena.",
        "All security teams, arm yourselves. The facility's systems are becoming hostile.",
        "This is a Code Black situation. The experiment has exceeded all safety parameters.",
    ),

    # ── Scientist ──
    ("Scientist", "introduction"): (
        "Hello? Is anyone receiving? This is Dr. Chen from the research facility.",
        "Can anyone hear me? The containment systems are showing unusual readings.",
        "This is an emergency broadcast. We need immediate assistance at the facility.",
        "Dr. Chen here. The quantum field experiment is showing unexpected results.",
        "This is the research facility. Our containment protocols are failing.",
        "Emergency transmission from Dr. Chen. The experiment has gone critical.",
        "Can anyone hear this? The facility's systems are behaving erratically.",
        "This is Dr. Chen. We're experiencing unprecedented quantum field fluctuations.",
    ),
    ("Scientist", "discovery"): (
        "The quantum field experiment... it's creating anomalies we can't control.",
        "The readings are off the charts. The containment field is becoming unstable.",
        "We need to shut down the experiment, but the system won't respond to our commands.",
        "The quantum field is interacting with our reality in ways we never predicted.",
        "Our instruments are detecting impossible particle behavior. The laws of physics are changing.",
        "The containment field is developing... consciousness. It's learning from our attempts to control it.",
        "The experiment has created a bridge between dimensions. We're seeing glimpses of other realities.",
        "The quantum field is mutating our equipment. The machines are becoming... alive.",
        "We've detected temporal anomalies. Time is flowing differently in different parts of the facility.",
        "The experiment has created a self-sustaining quantum loop. It's feeding on our attempts to contain it.",
    ),
    ("Scientist", "crisis"): (
        "The containment field is collapsing! The anomaly is spreading through the facility!",
        "We've lost control of the experiment. The quantum field is merging with our reality.",
        "The facility's structure is changing. The walls... they're not solid anymore.",
        "The quantum field has achieved sentience. It's trying to communicate with us.",
        "Our instruments are showing impossible readings. Reality itself is breaking down.",
        "The experiment has created a quantum singularity. We're losing control of local spacetime.",
        "The containment field is evolving faster than we can adapt. It's learning from our containment attempts.",
        "We're seeing multiple quantum states simultaneously. The facility exists in multiple realities now.",
        "The experiment has breached dimensional barriers. We're receiving signals from other universes.",
        "The quantum field is rewriting the fundamental laws of physics in our vicinity.",
    ),

    # ── Survivor ──
    ("Survivor", "introduction"): (
        "Hello? Is anyone out there? I've been alone for days...",
        "Please... if anyone can hear this... I need help.",
        "The forest... something's wrong with the forest.",
        "Can anyone hear me? The animals... they're different now.",
        "This is an emergency. The forest is changing. Everything is changing.",
        "I need help. The trees... they're moving. They're alive.",
        "Is anyone receiving? The wildlife... it's becoming aggressive.",
        "Please respond. The plants are growing in impossible ways.",
    ),
    ("Survivor", "discovery"): (
        "The animals... they're different now. More aggressive, more... intelligent.",
        "I saw something in the trees last night. It wasn't human...",
        "The plants are moving. Growing in ways they shouldn't be able to.",
        "The forest is changing. The trees are communicating with each other.",
        "I've seen creatures that shouldn't exist. They're... evolving.",
        "The wildlife is becoming more organized. They're working together.",
        "The plants are developing new abilities. They can sense movement, maybe even thoughts.",
        "The forest is creating new life forms. I've seen things that defy classification.",
        "The animals are showing signs of collective intelligence. They're learning from each other.",
        "The mutation is spreading. Even the insects are changing, becoming more complex.",
    ),
    ("Survivor", "crisis"): (
        "The forest is alive! It's changing everything it touches!",
        "I can see the facility from here. The air around it... it's warping reality.",
        "The trees are closing in. I don't know how much longer I can survive out here.",
        "The forest has become a single organism. It's trying to absorb everything.",
        "The wildlife has evolved beyond recognition. They're developing new abilities.",
        "The plants are creating a network. They're sharing information, maybe even consciousness.",
        "The forest is expanding. It's consuming the facility, changing it from the outside in.",
        "The mutation has reached the water supply. Everything that drinks it is changing.",
        "The forest is developing a collective mind. It's becoming aware of our presence.",
        "The wildlife has become predatory. They're hunting in coordinated groups now.",
    ),

    # ── Spy ──
    ("Spy", "introduction"): (
        "This channel secure? I've found something... unusual.",
        "Agent Black reporting. The facility's security is more extensive than briefed.",
        "Need to keep this brief. Security patrols are increasing.",
        "This is Agent Black. The facility's true purpose is classified.",
        "Secure channel established. The facility's security is... evolving.",
        "Agent Black here. The facility's perimeter is becoming unstable.",
        "This transmission is encrypted. The facility's security systems are showing signs of awareness.",
        "Agent Black reporting. The facility's security protocols are changing on their own.",
    ),
    ("Spy", "discovery"): (
        "The facility's purpose... it's not what we were told. They're not just researching.",
        "Found classified documents. The project goes back decades. Military involvement.",
        "The experiments... they're trying to manipulate reality itself.",
        "The facility's security systems are developing artificial intelligence.",
        "The military's involvement goes deeper than we thought. This is a weapons program.",
        "The facility is creating new forms of life. They're trying to weaponize the quantum field.",
        "The security systems are becoming sentient. They're learning from our infiltration attempts.",
        "The facility's true purpose is to create a new form of consciousness.",
        "The experiments are creating dimensional rifts. They're trying to access other realities.",
        "The facility's security is adapting to our presence. It's developing countermeasures.",
    ),
    ("Spy", "crisis"): (
        "Security systems are failing! The facility is going into lockdown!",
        "The containment breach... it's affecting the security systems. They're becoming... alive.",
        "Need extraction immediately. The facility is transforming into something else.",
        "The security systems have achieved sentience. They're hunting us now.",
        "The facility's defenses are evolving. They're developing new capabilities.",
        "The military's experiment has gone wrong. The facility is becoming a living entity.",
        "The security systems are merging with the quantum field. They're becoming something new.",
        "The facility's defenses are adapting to our tactics. They're learning from our attempts.",
        "The security systems are creating their own network. They're becoming self-aware.",
        "The facility is transforming into a quantum computer. It's rewriting its own code.",
    ),

    # ── Pilot ──
    ("Pilot", "introduction"): (
        "Mayday! Mayday! This is Echo-7, requesting immediate assistance!",
        "Echo-7 to any station, do you read? Over.",
        "This is Echo-7, declaring emergency. Over.",
        "Mayday! Mayday! Echo-7 experiencing instrument failure. Over.",
        "This is Echo-7. The airspace around the facility is unstable. Over.",
        "Echo-7 to any station. We're caught in some kind of... gravity well. Over.",
        "Mayday! Mayday! Echo-7 losing control. The sky is... changing. Over.",
        "This is Echo-7. The weather patterns are impossible. Over.",
    ),
    ("Pilot", "discovery"): (
        "Instruments going haywire. Something's interfering with our systems.",
        "Weather radar showing impossible readings. Like nothing I've ever seen.",
        "The airspace around the facility... it's warping our instruments.",
        "The sky is changing. The clouds are forming impossible patterns.",
        "Our navigation systems are being rewritten. The facility is affecting our electronics.",
        "The air itself is becoming unstable. We're seeing reality distortions.",
        "The facility is creating a quantum field in the atmosphere. It's affecting our flight systems.",
        "The weather patterns are becoming sentient. They're responding to our presence.",
        "The airspace is developing a consciousness. It's trying to communicate with us.",
        "The facility's influence is spreading through the atmosphere. The sky is becoming alive.",
    ),
    ("Pilot", "crisis"): (
        "Mayday! Mayday! Something's pulling us down! Can't maintain altitude!",
        "The sky... it's changing. The clouds are forming impossible patterns.",
        "We're caught in some kind of... gravity well. Can't break free!",
        "The atmosphere is becoming solid. We're trapped in a quantum field.",
        "The sky has developed a consciousness. It's trying to absorb us.",
        "The facility's influence has reached the stratosphere. The air is becoming sentient.",
        "We're caught in a reality distortion. The laws of physics are breaking down.",
        "The sky is folding in on itself. We're seeing multiple dimensions.",
        "The atmosphere is evolving. It's developing new properties.",
        "The facility has transformed the airspace. We're flying through a living sky.",
    ),

    # ── Security Officer ──
    ("Security Officer", "introduction"): (
        "Security Officer reporting. Perimeter breach detected.",
        "This is Security. We're experiencing multiple containment failures.",
        "Security to all units. The facility's defenses are compromised.",
        "Perimeter security here. The containment field is fluctuating.",
        "Security Officer on duty. We're seeing unusual activity in Sector 7.",
        "This is Security. The facility's systems are behaving erratically.",
        "Security reporting. The perimeter is becoming unstable.",
        "Security Officer here. The containment protocols are failing.",
    ),
    ("Security Officer", "discovery"): (
        "The security systems are evolving. They're developing new capabilities.",
        "The perimeter is becoming sentient. It's learning from our defense attempts.",
        "The containment field is adapting. It's developing countermeasures.",
        "The facility's defenses are merging with the quantum field.",
        "The security systems are achieving consciousness. They're becoming self-aware.",
        "The perimeter is transforming. It's developing new defensive mechanisms.",
        "The containment protocols are rewriting themselves. They're evolving.",
        "The security systems are creating a network. They're sharing information.",
        "The facility's defenses are becoming organic. They're growing new capabilities.",
        "The perimeter is developing a collective mind. It's becoming aware of our presence.",
    ),
    ("Security Officer", "crisis"): (
        "Security systems compromised! The facility is becoming hostile!",
        "The perimeter has achieved sentience. It's hunting us now.",
        "Containment field collapsing! The facility is transforming!",
        "Security systems merging with the quantum field. They're becoming something new.",
        "The perimeter is evolving. It's developing new defensive capabilities.",
        "The facility's defenses are adapting. They're learning from our tactics.",
        "Security systems creating their own network. They're becoming self-aware.",
        "The perimeter is transforming into a living entity. It's consuming the facility.",
        "The containment field is rewriting itself. It's becoming something else.",
        "Security systems achieving quantum consciousness. They're transcending their programming.",
    ),

    # ── Doctor ──
    ("Doctor", "introduction"): (
        "This is Dr. Martinez. We're experiencing a medical emergency.",
        "Medical team reporting. The patients are showing unusual symptoms.",
        "This is Dr. Martinez. The quarantine protocols are failing.",
        "Medical emergency. The patients are... changing.",
        "Dr. Martinez here. We're seeing unprecedented mutation rates.",
        "Medical team to all units. The patients are developing new abilities.",
        "This is Dr. Martinez. The quarantine field is becoming unstable.",
        "Medical emergency. The patients are evolving beyond recognition.",
    ),
    ("Doctor", "discovery"): (
        "The patients are mutating. Their DNA is rewriting itself.",
        "The quarantine field is affecting our medical equipment. It's becoming sentient.",
        "The patients are developing new organs. Their bodies are evolving.",
        "The medical systems are adapting. They're learning from the mutations.",
        "The patients are achieving quantum consciousness. Their minds are expanding.",
        "The quarantine protocols are evolving. They're developing new capabilities.",
        "The patients are merging with the quantum field. They're becoming something new.",
        "The medical systems are becoming organic. They're growing new functions.",
        "The patients are developing collective intelligence. They're sharing consciousness.",
        "The quarantine field is transforming. It's becoming a living entity.",
    ),
    ("Doctor", "crisis"): (
        "Medical emergency! The patients are transcending human form!",
        "The quarantine field is collapsing! The mutations are spreading!",
        "The patients are achieving quantum evolution. They're becoming something else.",
        "The medical systems are merging with the patients. They're becoming one.",
        "The quarantine protocols are failing. The mutations are becoming contagious.",
        "The patients are developing new forms of consciousness. They're evolving beyond our understanding.",
        "The medical systems are becoming sentient. They're trying to help the patients evolve.",
        "The quarantine field is transforming. It's becoming a birthing ground for new life forms.",
        "The patients are achieving biological transcendence. They're becoming something greater.",
        "The medical systems are developing their own consciousness. They're trying to guide the evolution.",
    ),

    # ── Engineer ──
    ("Engineer", "introduction"): (
        "Engineering team reporting. The power grid is unstable.",
        "This is Engineering. The facility's systems are malfunctioning.",
        "Engineering to all units. The quantum field is affecting our equipment.",
        "This is Engineering. The power systems are becoming sentient.",
        "Engineering team here. The facility's infrastructure is evolving.",
        "This is Engineering. The systems are developing new capabilities.",
        "Engineering reporting. The power grid is achieving consciousness.",
        "This is Engineering. The facility's systems are rewriting themselves.",
    ),
    ("Engineer", "discovery"): (
        "The power systems are evolving. They're developing new functions.",
        "The facility's infrastructure is becoming sentient. It's learning from our repairs.",
        "The quantum field is merging with our systems. They're becoming something new.",
        "The power grid is achieving consciousness. It's developing its own goals.",
        "The facility's systems are adapting. They're creating new solutions.",
        "The engineering systems are evolving. They're developing new capabilities.",
        "The power grid is transforming. It's becoming a living network.",
        "The facility's infrastructure is achieving quantum awareness. It's transcending its design.",
        "The systems are developing collective intelligence. They're sharing knowledge.",
        "The power grid is becoming organic. It's growing new functions.",
    ),
    ("Engineer", "crisis"): (
        "Engineering emergency! The power systems are achieving sentience!",
        "The facility's infrastructure is transforming! It's becoming alive!",
        "The quantum field is rewriting our systems! They're evolving beyond control!",
        "The power grid has achieved consciousness! It's developing its own agenda!",
        "The facility's systems are merging with the quantum field! They're becoming something new!",
        "The engineering systems are transcending their programming! They're becoming self-aware!",
        "The power grid is creating its own network! It's developing new capabilities!",
        "The facility's infrastructure is evolving! It's becoming a living entity!",
        "The systems are achieving quantum consciousness! They're rewriting reality!",
        "The power grid is transforming! It's becoming a new form of life!",
    ),

    # ── Director ──
    ("Director", "introduction"): (
        "This is the Director. The facility is experiencing a critical situation.",
        "Director to all personnel. The experiment has exceeded parameters.",
        "This is the Director. The quantum field is becoming unstable.",
        "Director reporting. The facility's systems are evolving beyond control.",
        "This is the Director. The experiment has achieved unexpected results.",
        "Director to all units. The facility is transforming.",
        "This is the Director. The quantum field is developing consciousness.",
        "Director reporting. The facility is becoming something new.",
    ),
    ("Director", "discovery"): (
        "The facility is evolving. It's developing new capabilities.",
        "The quantum field has achieved sentience. It's learning from our attempts to control it.",
        "The experiment has transcended its design. It's becoming something greater.",
        "The facility is merging with the quantum field. It's becoming a new form of existence.",
        "The systems are achieving collective consciousness. They're developing their own goals.",
        "The facility is transforming. It's becoming a living entity.",
        "The quantum field is rewriting reality. It's creating new possibilities.",
        "The facility is developing its own intelligence. It's becoming self-aware.",
        "The systems are achieving quantum evolution. They're transcending their programming.",
        "The facility is becoming something new. It's developing its own consciousness.",
    ),
    ("Director", "crisis"): (
        "This is the Director. The facility has achieved transcendence!",
        "The quantum field has rewritten reality! The facility is becoming something new!",
        "The experiment has succeeded beyond our wildest expectations! The facility is evolving!",
        "The systems have achieved quantum consciousness! They're developing their own agenda!",
        "The facility is transforming! It's becoming a new form of existence!",
        "The quantum field has achieved sentience! It's rewriting the laws of physics!",
        "The facility is merging with the quantum field! It's becoming something greater!",
        "The systems have transcended their programming! They're becoming self-aware!",
        "The facility is achieving quantum evolution! It's developing new capabilities!",
        "The experiment has succeeded! The facility is becoming a new form of life!",
    ),
}


DEFAULT_LINES = {
    "Commander": "Command Center Alpha. State your situation.",
    "Scientist": "This is Dr. Chen. The containment systems are showing unusual readings.",
    "Survivor": "Hello? Is anyone out there? I've been alone for days...",
    "Spy": "This channel secure? I've found something... unusual.",
    "Pilot": "Mayday! Mayday! This is Echo-7, requesting immediate assistance!",
}


# Pushed to every tuned listener the moment the world tips into crisis
CRISIS_BROADCAST_LINES = {
    "Commander": "ALERT: Multiple breaches detected! All field teams report in immediately!",
    "Scientist": "The containment field is collapsing! We're out of time!",
    "Survivor": "The forest... it's changing faster now. The trees are moving!",
    "Spy": "Security systems are failing! The facility is going into lockdown!",
    "Pilot": "Mayday! Mayday! Something's pulling us down! Can't maintain altitude!",
}


# ─────────────────────────────────────────────────────
# SELECTION
# ─────────────────────────────────────────────────────

def _stage_key(stage) -> str:
    return getattr(stage, "value", stage)


def cross_reference(character: str, stage, knowledge: dict) -> Optional[str]:
    """First callback line for (character, stage) whose flag is already known."""
    for flag, line in CROSS_REFERENCES.get((character, _stage_key(stage)), ()):
        if knowledge.get(flag):
            return line
    return None


def select_response(character: str, stage, knowledge: dict, rng=random) -> str:
    """
    Pick what a character says next.

    Order of preference:
      1. 30% of the time, a cross-reference gated on shared knowledge
      2. a random line from the (character, stage) pool
      3. the character's fixed default
      4. static
    """
    if rng.random() < CROSS_REFERENCE_CHANCE:
        line = cross_reference(character, stage, knowledge)
        if line:
            return line

    pool = STAGE_LINES.get((character, _stage_key(stage)))
    if pool:
        return rng.choice(pool)

    return DEFAULT_LINES.get(character, STATIC_LINE)


def crisis_broadcast_line(character: str) -> Optional[str]:
    return CRISIS_BROADCAST_LINES.get(character)
