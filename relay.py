"""
RADIO RELAY v1.0 — Event Relay
Routes transport events between paired desktops and mobiles, and drives the
session registry and narrative engine in response.

Each handler validates everything it needs before touching shared state,
so a rejected event leaves the registry and the story exactly as they were.
The only suspension point inside a handler is speech synthesis, which runs
after all mutation for that event is done.
"""

import json
import logging
import random
import time
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from config import RadioConfig
from frequencies import normalize_frequency, character_on
from models import Role, ErrorKind
from narrative import NarrativeEngine
from sessions import SessionRegistry
from tts import SpeechSynthesizer, voice_for

logger = logging.getLogger("radio.relay")


def _now_ms() -> int:
    return int(time.time() * 1000)


async def _drop_event(*args, **kwargs):
    """Default sink used until a transport is attached."""


# ─────────────────────────────────────────────────────
# INBOUND PAYLOADS
# ─────────────────────────────────────────────────────

class RegisterPayload(BaseModel):
    type: Role


class PairPayload(BaseModel):
    pairing_code: Union[str, int]


class TunePayload(BaseModel):
    frequency: Union[str, float]


class AudioMessagePayload(BaseModel):
    type: str = "text"
    message: Any = None


# ─────────────────────────────────────────────────────
# RELAY
# ─────────────────────────────────────────────────────

class EventRelay:
    """
    Owns the session registry and narrative engine for one server process.
    The web layer attaches `emit` (one connection) and `broadcast` (all).
    """

    def __init__(self, emit=None, broadcast=None, synthesizer=None,
                 config: RadioConfig = None, rng: random.Random = None):
        self._emit = emit or _drop_event
        self._broadcast = broadcast or _drop_event
        self.init(config, synthesizer, rng)

        self.handlers = {
            "register": self.on_register,
            "pair": self.on_pair,
            "tune": self.on_tune,
            "audio_message": self.on_audio_message,
            "ping": self.on_ping,
        }

    def init(self, config: RadioConfig = None, synthesizer=None, rng: random.Random = None):
        """(Re)build all state. Called once at startup, and by tests for a clean slate."""
        self.config = config or RadioConfig()
        self.rng = rng or random.Random()
        self.registry = SessionRegistry(self.rng)
        self.narrative = NarrativeEngine(rng=self.rng)
        self.synthesizer = synthesizer or SpeechSynthesizer(self.config)

    def attach(self, emit, broadcast):
        self._emit = emit
        self._broadcast = broadcast

    # ─────────────────────────────────────────────────
    # DISPATCH
    # ─────────────────────────────────────────────────

    async def handle(self, session_id: str, raw: str):
        """Decode one `{"event", "data"}` frame and run its handler."""
        try:
            envelope = json.loads(raw)
        except (TypeError, ValueError):
            await self._error(session_id, ErrorKind.INVALID_MESSAGE_FORMAT,
                              "Invalid message format")
            return

        if not isinstance(envelope, dict):
            await self._error(session_id, ErrorKind.INVALID_MESSAGE_FORMAT,
                              "Invalid message format")
            return

        event = envelope.get("event")
        data = envelope.get("data")
        if data is None:
            data = {}

        handler = self.handlers.get(event) if isinstance(event, str) else None
        if not handler:
            logger.debug(f"Ignoring unknown event {event!r} from {session_id}")
            await self._error(session_id, ErrorKind.INVALID_MESSAGE_FORMAT,
                              f"Unknown event: {event}")
            return

        try:
            await handler(session_id, data)
        except Exception as e:
            logger.exception(f"Handler for {event!r} failed ({session_id})")
            await self._error(session_id, ErrorKind.INTERNAL_ERROR,
                              f"Failed to process {event}", details=str(e))
            if event == "audio_message":
                await self._emit(session_id, "message_processed",
                                 {"success": False, "error": str(e)})

    async def _error(self, session_id: str, kind: ErrorKind, message: str, details=None):
        await self._emit(session_id, "error", {
            "message": message,
            "kind": kind.value,
            "details": details,
            "timestamp": _now_ms(),
        })

    # ─────────────────────────────────────────────────
    # REGISTER / PAIR
    # ─────────────────────────────────────────────────

    async def on_register(self, session_id: str, data: dict):
        try:
            payload = RegisterPayload.model_validate(data)
        except ValidationError:
            await self._error(session_id, ErrorKind.INVALID_MESSAGE_FORMAT,
                              "Register type must be 'desktop' or 'mobile'")
            return

        if self.registry.get(session_id):
            await self.disconnect(session_id)

        if payload.type == Role.DESKTOP:
            session = self.registry.register_desktop(session_id)
            await self._emit(session_id, "registered", {"pairing_code": session.pairing_code})
        else:
            self.registry.register_mobile(session_id)
            await self._emit(session_id, "registered", {"message": "Mobile registered"})

    async def on_pair(self, session_id: str, data: dict):
        try:
            payload = PairPayload.model_validate(data)
        except ValidationError:
            await self._emit(session_id, "paired",
                             {"success": False, "message": "Invalid pairing code"})
            return

        result = self.registry.pair(session_id, payload.pairing_code)
        if not result["success"]:
            await self._emit(session_id, "paired",
                             {"success": False, "message": result["message"]})
            return

        # Whoever lost their partner to this pairing hears about it
        for released_id in result["released"]:
            released = self.registry.get(released_id)
            if released:
                event = "mobile_disconnected" if released.is_desktop else "desktop_disconnected"
                await self._emit(released_id, event, {})

        await self._emit(result["mobile_id"], "paired", {"success": True})
        await self._emit(result["desktop_id"], "paired", {"success": True})

    # ─────────────────────────────────────────────────
    # TUNE
    # ─────────────────────────────────────────────────

    async def on_tune(self, session_id: str, data: dict):
        session = self.registry.get(session_id)
        if not session or not session.is_desktop:
            await self._error(session_id, ErrorKind.NOT_REGISTERED,
                              "Only a registered desktop can tune")
            return

        try:
            payload = TunePayload.model_validate(data)
        except ValidationError:
            payload = None
        frequency = normalize_frequency(payload.frequency) if payload else None
        if frequency is None:
            await self._error(session_id, ErrorKind.INVALID_MESSAGE_FORMAT,
                              "Frequency must be numeric")
            return

        result = self.narrative.tune(session, frequency)

        await self._emit(session_id, "frequency_active", result)
        mobile = self.registry.peer_of(session_id)
        if mobile:
            await self._emit(mobile.id, "frequency_active", result)

    # ─────────────────────────────────────────────────
    # AUDIO / TEXT MESSAGES
    # ─────────────────────────────────────────────────

    async def _reject_message(self, session_id: str, kind: ErrorKind, message: str, short: str):
        await self._error(session_id, kind, message)
        await self._emit(session_id, "message_processed", {"success": False, "error": short})

    async def on_audio_message(self, session_id: str, data: dict):
        mobile = self.registry.get(session_id)
        if not mobile or not mobile.is_mobile or not mobile.is_paired:
            logger.info(f"Mobile {session_id} is not properly paired")
            await self._reject_message(session_id, ErrorKind.NOT_PAIRED,
                                       "Not properly paired with desktop", "Not properly paired")
            return

        desktop = self.registry.peer_of(session_id)
        if not desktop:
            await self._reject_message(session_id, ErrorKind.NOT_PAIRED,
                                       "Paired desktop not found", "Desktop not found")
            return

        try:
            payload = AudioMessagePayload.model_validate(data)
        except ValidationError:
            payload = None

        if payload and payload.type == "audio" and payload.message:
            # Raw recordings are passed straight through for the desktop to play
            await self._emit(desktop.id, "audio_message", {
                "audio": payload.message,
                "type": "audio",
                "timestamp": _now_ms(),
            })
            await self._emit(session_id, "message_processed", {"success": True})
            return

        if (not payload or not isinstance(payload.message, str)
                or not payload.message.strip()):
            logger.info(f"Invalid message format from {session_id}")
            await self._reject_message(session_id, ErrorKind.INVALID_MESSAGE_FORMAT,
                                       "Invalid message format", "Invalid message format")
            return

        character = character_on(desktop.current_frequency)
        if not character:
            await self._reject_message(session_id, ErrorKind.NO_ACTIVE_CHARACTER,
                                       "No active character on this frequency",
                                       "No active character")
            return

        text = payload.message.strip()
        logger.info(f"{session_id} -> {character}: {text[:80]!r}")
        outcome = self.narrative.record_message(desktop.id, character, text)

        if outcome["crisis_triggered"]:
            await self.broadcast_crisis()

        audio = await self._voice(outcome["text"], character)
        response = {
            "text": outcome["text"],
            "character": character,
            "stage": outcome["stage"],
            "isNarrativeEvent": False,
            "isAIResponse": True,
            "audioPath": audio["filename"] if audio else None,
        }
        await self._emit(desktop.id, "ai_response", response)
        await self._emit(session_id, "ai_response", response)
        await self._emit(session_id, "message_processed", {"success": True})

    async def _voice(self, text: str, character: str) -> Optional[dict]:
        try:
            return await self.synthesizer.synthesize(text, voice_for(character))
        except Exception:
            logger.exception(f"Speech synthesis failed for {character}; sending text only")
            return None

    async def broadcast_crisis(self):
        """Every tuned listener hears their character react to the crisis."""
        for desktop, character, line in self.narrative.crisis_broadcasts(self.registry.desktops()):
            payload = {"message": line, "character": character, "isNarrativeEvent": True}
            await self._emit(desktop.id, "ai_response", payload)
            mobile = self.registry.peer_of(desktop.id)
            if mobile:
                await self._emit(mobile.id, "ai_response", payload)

    # ─────────────────────────────────────────────────
    # HEARTBEAT / DISCONNECT
    # ─────────────────────────────────────────────────

    async def on_ping(self, session_id: str, data: dict):
        await self._emit(session_id, "pong", {"timestamp": _now_ms()})

    async def disconnect(self, session_id: str):
        """Drop a session and tell its partner. Safe to call repeatedly."""
        session, peer = self.registry.disconnect(session_id)
        if not session:
            return
        if peer:
            event = "desktop_disconnected" if session.is_desktop else "mobile_disconnected"
            await self._emit(peer.id, event, {})
        await self._broadcast("status", {
            "status": "disconnected",
            "socketId": session_id,
            "timestamp": _now_ms(),
        })

    def get_full_state(self) -> dict:
        return {
            "sessions": self.registry.snapshot(),
            "narrative": self.narrative.snapshot(),
        }
