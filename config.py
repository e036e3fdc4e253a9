"""
RADIO RELAY v1.0 — Configuration
Settings come from the environment, with a local .env file loaded first.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

ENGINE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_PUBLIC_DIR = os.path.join(ENGINE_DIR, "public")


@dataclass
class RadioConfig:
    """Runtime settings for the relay server."""

    host: str = "0.0.0.0"
    port: int = 3000
    public_dir: str = DEFAULT_PUBLIC_DIR
    generated_dir: str = os.path.join(DEFAULT_PUBLIC_DIR, "generated")

    # Speech synthesis; an empty key disables it and replies go out text-only
    elevenlabs_api_key: str = ""
    elevenlabs_base_url: str = "https://api.elevenlabs.io/v1"
    elevenlabs_model_id: str = "eleven_multilingual_v2"
    voice_stability: float = 0.75
    voice_similarity_boost: float = 0.75
    tts_timeout: float = 15.0            # seconds

    heartbeat_timeout: float = 60.0      # seconds of silence before a socket is dropped
    max_upload_bytes: int = 10 * 1024 * 1024
    log_level: str = "INFO"

    @property
    def tts_enabled(self) -> bool:
        return bool(self.elevenlabs_api_key)

    @classmethod
    def from_env(cls, env_file: str = None) -> "RadioConfig":
        """Build a config from os.environ after loading `.env` (or `env_file`)."""
        load_dotenv(env_file)
        env = os.environ
        public_dir = env.get("PUBLIC_DIR", DEFAULT_PUBLIC_DIR)
        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "3000")),
            public_dir=public_dir,
            generated_dir=env.get("GENERATED_DIR", os.path.join(public_dir, "generated")),
            elevenlabs_api_key=env.get("ELEVENLABS_API_KEY", ""),
            elevenlabs_base_url=env.get("ELEVENLABS_BASE_URL", "https://api.elevenlabs.io/v1"),
            elevenlabs_model_id=env.get("ELEVENLABS_MODEL_ID", "eleven_multilingual_v2"),
            tts_timeout=float(env.get("TTS_TIMEOUT", "15")),
            heartbeat_timeout=float(env.get("HEARTBEAT_TIMEOUT", "60")),
            max_upload_bytes=int(env.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
