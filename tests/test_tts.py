"""Tests for the ElevenLabs client, against an in-process httpx transport."""

import asyncio
import json
import os

import httpx
import pytest

from config import RadioConfig
from tts import SpeechSynthesizer, voice_for


@pytest.fixture
def config(tmp_path):
    return RadioConfig(generated_dir=str(tmp_path / "generated"),
                       elevenlabs_api_key="test-key",
                       elevenlabs_base_url="https://tts.test/v1",
                       tts_timeout=2.0)


def synthesize(config, handler, text="Identify yourself.", voice="voice-1"):
    transport = httpx.MockTransport(handler)
    return asyncio.run(SpeechSynthesizer(config, transport=transport).synthesize(text, voice))


def test_successful_synthesis_writes_mp3(config):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"ID3-audio")

    result = synthesize(config, handler)

    assert result["filename"].startswith("/generated/")
    assert result["filename"].endswith(".mp3")
    path = os.path.join(config.generated_dir, os.path.basename(result["filename"]))
    with open(path, "rb") as f:
        assert f.read() == b"ID3-audio"

    request = seen[0]
    assert request.url.path == "/v1/text-to-speech/voice-1"
    assert request.headers["xi-api-key"] == "test-key"
    body = json.loads(request.content)
    assert body["text"] == "Identify yourself."
    assert body["voice_settings"] == {"stability": 0.75, "similarity_boost": 0.75}


def test_each_synthesis_gets_its_own_file(config):
    def handler(request):
        return httpx.Response(200, content=b"ID3")

    first = synthesize(config, handler)
    second = synthesize(config, handler)
    assert first["filename"] != second["filename"]


def test_http_error_returns_none(config):
    def handler(request):
        return httpx.Response(500, json={"detail": "quota exceeded"})

    assert synthesize(config, handler) is None
    assert not os.path.exists(config.generated_dir)


def test_empty_body_returns_none(config):
    def handler(request):
        return httpx.Response(200, content=b"")

    assert synthesize(config, handler) is None


def test_connection_error_returns_none(config):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    assert synthesize(config, handler) is None


def test_slow_backend_times_out(config):
    config.tts_timeout = 0.05

    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, content=b"ID3")

    assert synthesize(config, handler) is None


def test_disk_error_returns_none(config, tmp_path):
    blocker = tmp_path / "blocked"
    blocker.write_text("not a directory")
    config.generated_dir = str(blocker / "generated")

    def handler(request):
        return httpx.Response(200, content=b"ID3")

    assert synthesize(config, handler) is None


def test_disabled_without_api_key(config):
    config.elevenlabs_api_key = ""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, content=b"ID3")

    assert synthesize(config, handler) is None
    assert calls == []


def test_missing_text_is_skipped(config):
    def handler(request):
        raise AssertionError("no request expected")

    assert synthesize(config, handler, text="") is None


def test_unknown_character_falls_back_to_commander_voice():
    assert voice_for("Nobody") == voice_for("Commander")
    assert voice_for("Spy") != voice_for("Commander")
