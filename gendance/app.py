"""
FastAPI application for GenDance.

Provides the REST API for uploading a track, generating a routine and
driving playback, plus a WebSocket status stream for the stage UI.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, FastAPI, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from . import __version__, mode_settings
from .behaviors.choreography_player import ChoreographyPlayer, PlayerState
from .choreography.client import ChoreographyClient
from .config import APP_CONFIG, AUDIO_CONFIG, PLAYBACK_CONFIG, get_default_figure_config
from .core.errors import ChoreographyError, DecodeFailure
from .core.figure_mixer import FigureMixer
from .core.timeline import timeline_to_payload
from .poses import PoseLibrary

logger = logging.getLogger(__name__)


# Global state
class AppState:
    """Global application state."""
    figure_mixer: Optional[FigureMixer] = None
    choreography_client: Optional[ChoreographyClient] = None
    player: Optional[ChoreographyPlayer] = None


state = AppState()


def initialize(
    client: Optional[ChoreographyClient] = None,
    library: Optional[PoseLibrary] = None,
) -> None:
    """Build the mixer, generator client and player.

    Called from the lifespan handler; tests call it directly to inject a
    client with a mock transport.
    """
    state.figure_mixer = FigureMixer(get_default_figure_config(), library or PoseLibrary.default())
    state.choreography_client = client or ChoreographyClient()
    state.player = ChoreographyPlayer(state.figure_mixer, state.choreography_client)

    if not state.choreography_client.is_available():
        logger.warning("[GenDance] No generator API key - only manual timelines will work")
    logger.info(f"[GenDance] Pose library: {len(state.figure_mixer.library)} poses")


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifespan handler - builds the player on startup."""
    if state.player is None:
        initialize()

    try:
        yield
    finally:
        print("Shutting down...")
        if state.player and state.player.running:
            await state.player.stop()
        state.player = None
        state.figure_mixer = None
        state.choreography_client = None
        print("Shutdown complete")


app = FastAPI(
    title="GenDance",
    description="Song analysis and beat-synced choreography playback",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for local development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models for API
class SeekRequest(BaseModel):
    """Model for seek request."""
    position: float = Field(ge=0)


def _player() -> ChoreographyPlayer:
    if state.player is None:
        raise HTTPException(status_code=503, detail="Player not initialized")
    return state.player


# API Endpoints
@app.get("/")
async def root():
    return HTMLResponse(content="<h1>GenDance</h1><p>API docs at <a href='/docs'>/docs</a>.</p>")


@app.get("/api/status")
async def get_status():
    """Get current application status."""
    player = _player()
    return {
        "generator_available": bool(state.choreography_client and state.choreography_client.is_available()),
        "player": player.get_status(),
    }


@app.get("/api/poses")
async def get_poses():
    """List the moves the figure knows."""
    return {"poses": _player().mixer.library.names()}


@app.post("/api/analyze")
async def analyze_track(file: UploadFile = File(...)):
    """Decode an uploaded track and extract tempo + energy."""
    player = _player()

    data = await file.read()
    max_bytes = AUDIO_CONFIG["max_upload_mb"] * 1024 * 1024
    if len(data) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Upload larger than {AUDIO_CONFIG['max_upload_mb']} MB")

    try:
        analysis = await player.load_audio(data, file.filename or "upload")
    except DecodeFailure as e:
        raise HTTPException(status_code=422, detail=DecodeFailure.USER_MESSAGE) from e

    return {"analysis": analysis.to_dict(), "player": player.get_status()}


@app.post("/api/choreography")
async def generate_choreography():
    """Generate a routine for the analyzed track."""
    player = _player()
    if player.analysis is None:
        raise HTTPException(status_code=400, detail="Analyze a track first")

    try:
        result = await player.choreograph()
    except ChoreographyError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    return {
        "timeline": timeline_to_payload(result.timeline),
        "notice": result.notice,
    }


@app.get("/api/timeline")
async def get_timeline():
    return {"timeline": _player().timeline_payload()}


@app.post("/api/timeline")
async def set_timeline(payload: Any = Body(...)):
    """Load a hand-written routine (same JSON shape the generator returns)."""
    result = _player().set_timeline(payload)
    return {
        "timeline": timeline_to_payload(result.timeline),
        "notice": result.notice,
    }


@app.get("/api/frame")
async def get_frame(t: float = 0.0):
    """Resolve the frame at time t without touching playback."""
    return _player().frame_at(t).to_dict()


@app.post("/api/play")
async def play():
    """Start playback of the current routine."""
    player = _player()
    if player.state not in (PlayerState.READY, PlayerState.PLAYING):
        raise HTTPException(status_code=409, detail=f"Cannot play while {player.state.value}")

    await player.start()
    return {"status": "playing", "player": player.get_status()}


@app.post("/api/pause")
async def pause():
    player = _player()
    player.pause()
    return {"status": "paused" if player.running else "already_stopped"}


@app.post("/api/resume")
async def resume():
    player = _player()
    player.resume()
    return {"status": "playing" if player.running else "already_stopped"}


@app.post("/api/seek")
async def seek(request: SeekRequest):
    player = _player()
    player.seek(request.position)
    return {"status": "seeked", "time": player.clock.current_time()}


@app.post("/api/stop")
async def stop():
    """Stop playback and rewind."""
    player = _player()
    if not player.running:
        return {"status": "already_stopped"}

    await player.stop()
    return {"status": "stopped", "player": player.get_status()}


# Settings endpoints
@app.get("/api/settings")
async def get_all_settings():
    """Get all tunable settings."""
    return {"settings": mode_settings.get_all_settings()}


@app.post("/api/settings/sync")
async def sync_settings():
    """Reload all settings from JSON file."""
    settings = mode_settings.sync_from_file()
    _apply_live(settings)
    return {"status": "synced", "settings": settings}


@app.post("/api/settings/reset")
async def reset_settings():
    """Reset all settings to defaults."""
    settings = mode_settings.reset_to_defaults()
    _apply_live(settings)
    return {"status": "reset", "settings": settings}


@app.get("/api/settings/{section}")
async def get_section_settings(section: str):
    section = section.lower()
    return {"section": section, "settings": mode_settings.get_mode_settings(section)}


@app.post("/api/settings/{section}")
async def update_section_settings(section: str, updates: dict[str, float]):
    """Update a settings section and apply it to the running player."""
    section = section.lower()
    mode_settings.update_mode_settings(section, updates)
    _apply_live({section: updates})
    return {
        "status": "updated",
        "section": section,
        "settings": mode_settings.get_mode_settings(section),
    }


def _apply_live(settings: dict[str, dict[str, float]]) -> None:
    player = state.player
    if player is None:
        return
    if "playback" in settings:
        player.apply_settings(settings["playback"])
    if "figure" in settings:
        player.mixer.update_config(**settings["figure"])
    if "feature_extractor" in settings:
        # Takes effect on the next analysis
        for key, value in settings["feature_extractor"].items():
            if hasattr(player.extractor_config, key):
                setattr(player.extractor_config, key, type(getattr(player.extractor_config, key))(value))


# WebSocket for real-time status streaming
@app.websocket("/api/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for real-time status updates."""
    await websocket.accept()
    interval = 1.0 / PLAYBACK_CONFIG["status_hz"]

    try:
        while True:
            if state.player is not None:
                await websocket.send_json({"player": state.player.get_status()})
            await asyncio.sleep(interval)

    except WebSocketDisconnect:
        pass


def create_app() -> FastAPI:
    """Factory function to create the app."""
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "gendance.app:app",
        host=APP_CONFIG["host"],
        port=APP_CONFIG["port"],
        reload=False,
    )
