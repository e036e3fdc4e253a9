"""
RADIO RELAY v1.0
Pairs a desktop radio tuner with a mobile push-to-talk client and runs the story.

Run:  python radio.py
Open: http://localhost:3000/desktop  (desktop)
      http://<lan-ip>:3000/mobile    (phone)
"""

import logging
import os
import socket
import sys

import uvicorn

# Ensure engine directory is on the path
ENGINE_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, ENGINE_DIR)

from config import RadioConfig
from web.routes import app, init_relay


def _lan_address() -> str:
    """Best guess at the address a phone on the same network should use."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("10.255.255.255", 1))
            return s.getsockname()[0]
    except OSError:
        return "localhost"


def main():
    config = RadioConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    init_relay(config)

    print("=" * 50)
    print("  RADIO RELAY v1.0")
    print("=" * 50)
    print(f"  Desktop: http://localhost:{config.port}/desktop")
    print(f"  Mobile:  http://{_lan_address()}:{config.port}/mobile")
    print(f"  Speech:  {'ElevenLabs' if config.tts_enabled else 'disabled (text only)'}")
    print("  Press Ctrl+C to stop.")
    print("=" * 50)
    print()

    uvicorn.run(app, host=config.host, port=config.port, log_level="warning")


if __name__ == "__main__":
    main()
