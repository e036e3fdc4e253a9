"""Pytest fixtures for Radio Relay tests."""

import asyncio
import json
import random

import pytest

from config import RadioConfig
from relay import EventRelay


class FakeSynthesizer:
    """Stands in for the TTS client; records calls and returns a canned result."""

    def __init__(self, result=None, fail=False):
        self.result = result
        self.fail = fail
        self.calls = []

    async def synthesize(self, text, voice_id):
        self.calls.append((text, voice_id))
        if self.fail:
            raise RuntimeError("synthesis backend exploded")
        return self.result


class Recorder:
    """Captures everything the relay emits, in order."""

    def __init__(self):
        self.events = []  # (session_id or "*", event, data)

    async def emit(self, session_id, event, data=None):
        self.events.append((session_id, event, data or {}))

    async def broadcast(self, event, data=None):
        self.events.append(("*", event, data or {}))

    def of(self, session_id, event):
        return [d for sid, ev, d in self.events if sid == session_id and ev == event]

    def names(self, session_id):
        return [ev for sid, ev, _ in self.events if sid == session_id]

    def clear(self):
        self.events.clear()


def send(relay, session_id, event, data=None):
    """Deliver one wire frame to the relay and wait for it to finish."""
    frame = json.dumps({"event": event, "data": data if data is not None else {}})
    asyncio.run(relay.handle(session_id, frame))


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def synth():
    return FakeSynthesizer(result={"filename": "/generated/test.mp3"})


@pytest.fixture
def relay(recorder, synth, tmp_path):
    config = RadioConfig(public_dir=str(tmp_path), generated_dir=str(tmp_path / "generated"))
    return EventRelay(emit=recorder.emit, broadcast=recorder.broadcast,
                      synthesizer=synth, config=config, rng=random.Random(7))


@pytest.fixture
def paired(relay, recorder):
    """A desktop "d1" paired with a mobile "m1"; the recorder starts empty."""
    send(relay, "d1", "register", {"type": "desktop"})
    code = recorder.of("d1", "registered")[0]["pairing_code"]
    send(relay, "m1", "register", {"type": "mobile"})
    send(relay, "m1", "pair", {"pairing_code": code})
    recorder.clear()
    return relay
