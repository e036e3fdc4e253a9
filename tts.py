"""
RADIO RELAY v1.0 — Speech Synthesis
Turns a character's line into an mp3 under the generated directory.

The relay treats this as best-effort: synthesize() never raises, and every
failure (no key, HTTP error, timeout, disk error) comes back as None so the
reply still goes out as text.
"""

import asyncio
import logging
import os
import time
import uuid
from typing import Optional

import httpx

from config import RadioConfig

logger = logging.getLogger("radio.tts")


VOICE_IDS = {
    "Commander": "21m00Tcm4TlvDq8ikWAM",         # Rachel
    "Scientist": "AZnzlk1XvdvUeBnXmlld",         # Domi
    "Survivor": "EXAVITQu4vr4xnSDxMaL",          # Elli
    "Spy": "MF3mGyEYCl7XYWbV9V6O",               # Josh
    "Pilot": "pNInz6obpgDQGcFmaJgB",             # Adam
    "Security Officer": "yoZ06aMxZJJ28mfd3POQ",  # Sam
    "Doctor": "flq6f7yk4E4fJM5XTYuZ",            # Nicole
    "Engineer": "jsCqWAovK2LkecY7zXl4",          # Antoni
    "Director": "onwK4e9ZLuTAKqWW03F9",          # Matilda
}


def voice_for(character: str) -> str:
    return VOICE_IDS.get(character, VOICE_IDS["Commander"])


def unique_filename(prefix: str, ext: str) -> str:
    """Millisecond timestamp plus a random suffix; overlapping requests never share a file."""
    return f"{prefix}{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}.{ext}"


class SpeechSynthesizer:
    """ElevenLabs text-to-speech over httpx."""

    def __init__(self, config: RadioConfig, transport: httpx.AsyncBaseTransport = None):
        self.config = config
        self._transport = transport  # injectable for tests

    async def synthesize(self, text: str, voice_id: str) -> Optional[dict]:
        """
        Returns {"filename": "/generated/<name>.mp3"} or None.
        """
        if not text or not voice_id:
            logger.warning(f"Synthesis skipped: missing text or voice ({voice_id!r})")
            return None
        if not self.config.tts_enabled:
            logger.debug("Synthesis disabled: ELEVENLABS_API_KEY not set")
            return None

        try:
            return await asyncio.wait_for(self._synthesize(text, voice_id),
                                          timeout=self.config.tts_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Synthesis timed out after {self.config.tts_timeout}s "
                           f"(voice {voice_id})")
        except httpx.HTTPStatusError as e:
            logger.error(f"Synthesis rejected: HTTP {e.response.status_code} (voice {voice_id})")
        except httpx.HTTPError as e:
            logger.error(f"Synthesis request failed: {e}")
        except OSError as e:
            logger.error(f"Could not store synthesized audio: {e}")
        return None

    async def _synthesize(self, text: str, voice_id: str) -> Optional[dict]:
        payload = {
            "text": text,
            "model_id": self.config.elevenlabs_model_id,
            "voice_settings": {
                "stability": self.config.voice_stability,
                "similarity_boost": self.config.voice_similarity_boost,
            },
        }
        headers = {
            "xi-api-key": self.config.elevenlabs_api_key,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }
        async with httpx.AsyncClient(base_url=self.config.elevenlabs_base_url,
                                     timeout=self.config.tts_timeout,
                                     transport=self._transport) as client:
            response = await client.post(f"/text-to-speech/{voice_id}",
                                         json=payload, headers=headers)
            response.raise_for_status()

        audio = response.content
        if not audio:
            logger.error("Synthesis returned an empty body")
            return None

        filename = unique_filename("", "mp3")
        os.makedirs(self.config.generated_dir, exist_ok=True)
        path = os.path.join(self.config.generated_dir, filename)
        with open(path, "wb") as f:
            f.write(audio)
        logger.info(f"Synthesized {len(audio)} bytes -> {filename}")
        return {"filename": f"/generated/{filename}"}
