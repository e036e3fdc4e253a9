"""
RADIO RELAY v1.0 — FastAPI Routes
WebSocket relay endpoint, client bundles, and the audio upload hook.
"""

import asyncio
import logging
import os

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Request
from fastapi.staticfiles import StaticFiles
from fastapi.responses import HTMLResponse, FileResponse, JSONResponse, RedirectResponse

from config import RadioConfig
from relay import EventRelay
from tts import unique_filename
from web.websocket import ConnectionManager

logger = logging.getLogger("radio.web")


# ─────────────────────────────────────────────────────
# APP SETUP
# ─────────────────────────────────────────────────────

app = FastAPI(title="Radio Relay", version="1.0")
manager = ConnectionManager()
relay = EventRelay(emit=manager.send, broadcast=manager.broadcast,
                   config=RadioConfig.from_env())


def init_relay(config: RadioConfig = None, synthesizer=None, rng=None):
    """Reset the relay with fresh state. Called from radio.py and by tests."""
    relay.init(config or relay.config, synthesizer, rng)
    os.makedirs(relay.config.generated_dir, exist_ok=True)
    logger.info(f"Relay ready. Speech synthesis "
                f"{'enabled' if relay.config.tts_enabled else 'disabled'}")


# ─────────────────────────────────────────────────────
# CLIENT BUNDLES
# ─────────────────────────────────────────────────────

def _bundle(name: str):
    index_path = os.path.join(relay.config.public_dir, name, "index.html")
    if not os.path.isfile(index_path):
        return HTMLResponse(content=f"{name} client not installed", status_code=404)
    return FileResponse(index_path, headers={"Cache-Control": "no-cache"})


@app.get("/")
async def index():
    return RedirectResponse(url="/desktop")


@app.get("/desktop")
async def desktop_client():
    return _bundle("desktop")


@app.get("/mobile")
async def mobile_client():
    return _bundle("mobile")


# ─────────────────────────────────────────────────────
# WEBSOCKET
# ─────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    session_id = await manager.connect(ws)
    logger.info(f"Client connected: {session_id}")
    try:
        while True:
            try:
                raw = await asyncio.wait_for(ws.receive_text(),
                                             timeout=relay.config.heartbeat_timeout)
            except asyncio.TimeoutError:
                logger.info(f"Client {session_id} heartbeat timeout")
                await ws.close()
                break
            await relay.handle(session_id, raw)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"Connection {session_id} dropped: {e}")
    finally:
        manager.disconnect(session_id)
        # The endpoint task may already be cancelled; the peer must still hear about it
        await asyncio.shield(relay.disconnect(session_id))
        logger.info(f"Client disconnected: {session_id}")


# ─────────────────────────────────────────────────────
# HTTP API
# ─────────────────────────────────────────────────────

@app.get("/api/state")
async def get_state():
    """Registry and narrative snapshot, for debugging a live show."""
    state = relay.get_full_state()
    state["clients"] = manager.client_count
    return JSONResponse(state)


def _too_large():
    return JSONResponse({"message": "Audio upload too large", "status": "error"},
                        status_code=413)


@app.post("/upload-audio")
async def upload_audio(request: Request):
    """Store a raw recording and return where it can be fetched."""
    limit = relay.config.max_upload_bytes
    try:
        declared = int(request.headers.get("content-length", "0"))
    except ValueError:
        declared = 0
    if declared > limit:
        return _too_large()

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            return _too_large()
    if not body:
        return JSONResponse({"message": "No audio data provided", "status": "error"},
                            status_code=400)

    filename = unique_filename("upload_", "webm")
    try:
        os.makedirs(relay.config.generated_dir, exist_ok=True)
        with open(os.path.join(relay.config.generated_dir, filename), "wb") as f:
            f.write(body)
    except OSError as e:
        logger.error(f"upload-audio failed: {e}")
        return JSONResponse({"message": f"Error processing audio upload: {e}",
                             "status": "error"}, status_code=500)

    return JSONResponse({
        "message": "Audio uploaded successfully",
        "status": "success",
        "filename": f"/generated/{filename}",
    })


@app.get("/generated/{filename}")
async def generated_file(filename: str):
    """Synthesized and uploaded audio, read from the live generated directory."""
    path = os.path.join(relay.config.generated_dir, os.path.basename(filename))
    if not os.path.isfile(path):
        return JSONResponse({"message": "Not found", "status": "error"}, status_code=404)
    return FileResponse(path)


# ─────────────────────────────────────────────────────
# STATIC FILES
# Mounted last so the routes above take precedence.
# ─────────────────────────────────────────────────────

if os.path.isdir(relay.config.public_dir):
    app.mount("/", StaticFiles(directory=relay.config.public_dir), name="public")
