import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import click_track, wav_bytes
from gendance import mode_settings
from gendance.app import app, initialize, state
from gendance.choreography.client import ChoreographyClient

ROUTINE = [
    {"timestamp": 0.0, "poseName": "IDLE"},
    {"timestamp": 1.0, "poseName": "DAB"},
    {"timestamp": 2.0, "poseName": "KICK_LEFT"},
]


def generator(request):
    text = '[{"timestamp": 0.5, "poseName": "DAB"}, {"timestamp": 1.0, "poseName": "VOGUE"}]'
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


@pytest.fixture
def client():
    initialize(client=ChoreographyClient(api_key="test-key", transport=httpx.MockTransport(generator)))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def analyzed(client):
    files = {"file": ("clicks.wav", wav_bytes(click_track(120), 44100), "audio/wav")}
    response = client.post("/api/analyze", files=files)
    assert response.status_code == 200
    return client


def test_status_reports_idle_player(client):
    data = client.get("/api/status").json()
    assert data["generator_available"] is True
    assert data["player"]["state"] == "idle"
    assert data["player"]["running"] is False


def test_poses_lists_library(client):
    poses = client.get("/api/poses").json()["poses"]
    assert "IDLE" in poses and "THRILLER" in poses


def test_analyze_returns_features(client):
    files = {"file": ("clicks.wav", wav_bytes(click_track(120), 44100), "audio/wav")}
    data = client.post("/api/analyze", files=files).json()

    assert data["analysis"]["bpm"] == 120
    assert len(data["analysis"]["energy"]) == 100
    assert data["player"]["state"] == "ready"


def test_analyze_rejects_undecodable_upload(client):
    files = {"file": ("junk.mp3", b"definitely not audio", "audio/mpeg")}
    response = client.post("/api/analyze", files=files)

    assert response.status_code == 422
    assert response.json()["detail"] == "Failed to process audio. Please try another file."
    assert client.get("/api/status").json()["player"]["state"] == "idle"


def test_choreography_requires_analysis(client):
    assert client.post("/api/choreography").status_code == 400


def test_choreography_generates_normalized_timeline(analyzed):
    data = analyzed.post("/api/choreography").json()

    assert data["notice"] is None
    assert data["timeline"] == [
        {"timestamp": 0.0, "poseName": "IDLE"},
        {"timestamp": 0.5, "poseName": "DAB"},
        {"timestamp": 1.0, "poseName": "VOGUE"},
    ]
    assert analyzed.get("/api/timeline").json()["timeline"] == data["timeline"]


def test_choreography_generator_failure_is_502(analyzed):
    state.player.client = ChoreographyClient(
        api_key="test-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )
    response = analyzed.post("/api/choreography")

    assert response.status_code == 502
    assert analyzed.get("/api/status").json()["player"]["state"] == "idle"


def test_manual_timeline_and_frame(client):
    data = client.post("/api/timeline", json=ROUTINE).json()
    assert data["timeline"] == ROUTINE

    frame = client.get("/api/frame", params={"t": 1.1}).json()
    assert frame["current_pose"] == "DAB"
    assert frame["next_pose"] == "KICK_LEFT"
    assert frame["blend"] == pytest.approx(0.5)
    assert frame["cursor"]["active_step_index"] == 1


def test_malformed_manual_timeline_holds_idle(client):
    data = client.post("/api/timeline", json={"not": "a list"}).json()
    assert data["timeline"] == [{"timestamp": 0.0, "poseName": "IDLE"}]
    assert data["notice"]


def test_play_needs_a_routine(client):
    assert client.post("/api/play").status_code == 409


def test_play_and_stop(analyzed):
    response = analyzed.post("/api/play")
    assert response.status_code == 200
    assert response.json()["player"]["state"] == "playing"

    assert analyzed.post("/api/pause").json()["status"] == "paused"
    assert analyzed.post("/api/seek", json={"position": 2.0}).json()["time"] == pytest.approx(2.0)
    assert analyzed.post("/api/resume").json()["status"] == "playing"

    data = analyzed.post("/api/stop").json()
    assert data["status"] == "stopped"
    assert data["player"]["state"] == "ready"
    assert analyzed.post("/api/stop").json()["status"] == "already_stopped"


def test_seek_rejects_negative_position(client):
    assert client.post("/api/seek", json={"position": -1}).status_code == 422


def test_settings_update_applies_live(client):
    response = client.post("/api/settings/playback", json={"blend_speed": 2.0})
    assert response.json()["settings"]["blend_speed"] == 2.0
    assert mode_settings.get_setting("playback", "blend_speed") == 2.0

    client.post("/api/timeline", json=ROUTINE)
    frame = client.get("/api/frame", params={"t": 1.25}).json()
    assert frame["blend"] == pytest.approx(0.5)

    reset = client.post("/api/settings/reset").json()
    assert reset["settings"]["playback"]["blend_speed"] == 5.0
    assert state.player.config.blend_speed == 5.0


def test_settings_listing(client):
    settings = client.get("/api/settings").json()["settings"]
    assert set(settings) == {"feature_extractor", "playback", "figure"}
    assert client.get("/api/settings/figure").json()["settings"]["intensity"] == 1.0
