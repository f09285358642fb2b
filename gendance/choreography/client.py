"""
Choreography Client for GenDance.

Asks a generative language model to write a dance routine for a track.
The model only ever sees the feature summary (name, BPM, duration, mean
energy) and the list of move names it is allowed to use.

The response is returned as raw text; reading it into a timeline is the
caller's job (see core.timeline.load_timeline) because the model is not
trusted to follow the schema.
"""

import logging
from typing import Any, Dict, Iterable, Optional

import httpx

from ..config import CHOREOGRAPHY_CONFIG, get_api_key
from ..core.errors import ChoreographyError
from ..core.features import AudioAnalysis
from ..poses import PoseLibrary

logger = logging.getLogger(__name__)


RESPONSE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "timestamp": {"type": "NUMBER", "description": "Time in seconds for this move"},
            "poseName": {"type": "STRING", "description": "The name of the pose to assume"},
        },
        "required": ["timestamp", "poseName"],
    },
}


def build_prompt(analysis: AudioAnalysis, pose_names: Iterable[str]) -> str:
    """Write the choreographer brief for one track."""
    seconds_per_beat = 60.0 / analysis.bpm if analysis.bpm > 0 else 0.5
    return f"""
You are a professional dance choreographer creating a Just Dance style routine.
I have a song with the following characteristics:
- Name: {analysis.name}
- BPM: {analysis.bpm:g}
- Duration: {analysis.duration:g} seconds
- Energy Level: {analysis.mean_energy:g} (out of 255)

Create an energetic, varied choreography sequence using these poses:
{", ".join(pose_names)}

Rules:
1. Provide a pose change every 1-2 beats for high energy, dynamic dancing.
2. USE PATTERNS - create rhythmic sequences by repeating moves (e.g., LUNGE_LEFT -> LUNGE_RIGHT -> LUNGE_LEFT -> LUNGE_RIGHT).
3. Match energy: use dramatic poses (DAB, KICK_LEFT, KICK_RIGHT, DISCO_POINT, PUMP_IT) during high-energy moments.
4. Group similar moves: do 2-4 reps of a move type before switching to a new idea.
5. Don't be afraid to hold a pose for 2-4 beats for emphasis.
6. Include signature moves like DAB, VOGUE, THRILLER, RUNNING_MAN for variety.
7. Timestamps must be in seconds. At {analysis.bpm:g} BPM, one beat = {seconds_per_beat:.3f} seconds.
8. Generate poses for the FULL duration of the song ({analysis.duration:g} seconds).
"""


class ChoreographyClient:
    """Client for the remote generateContent API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else get_api_key()
        self.model = model or CHOREOGRAPHY_CONFIG["model"]
        self.api_base = (api_base or CHOREOGRAPHY_CONFIG["api_base"]).rstrip("/")
        self.timeout = timeout or CHOREOGRAPHY_CONFIG["timeout"]
        self._transport = transport

    def is_available(self) -> bool:
        """Check if the client has credentials."""
        return bool(self.api_key)

    async def _request(self, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST to the API and return the decoded JSON body."""
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        url = f"{self.api_base}/{endpoint.lstrip('/')}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(url, headers=headers, json=body)
            response.raise_for_status()
            return response.json()

    async def generate(self, analysis: AudioAnalysis, pose_names: Optional[Iterable[str]] = None) -> str:
        """Request a routine and return the model's raw JSON text.

        pose_names defaults to every move in the default pose library.

        Raises:
            ChoreographyError: no API key, or the request failed
        """
        if not self.is_available():
            raise ChoreographyError("No API key configured (set GEMINI_API_KEY)")

        if pose_names is None:
            pose_names = PoseLibrary.default().names()

        body = {
            "contents": [{"role": "user", "parts": [{"text": build_prompt(analysis, pose_names)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

        logger.info(f"[Choreography] Requesting routine for '{analysis.name}' from {self.model}")
        try:
            data = await self._request(f"models/{self.model}:generateContent", body)
        except httpx.HTTPStatusError as e:
            logger.error(f"[Choreography] API returned {e.response.status_code}")
            raise ChoreographyError(f"Generator returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[Choreography] Request failed: {e}")
            raise ChoreographyError(f"Generator request failed: {e}") from e

        return self._response_text(data)

    @staticmethod
    def _response_text(data: Dict[str, Any]) -> str:
        """Join the text parts of the first candidate; empty if there is none."""
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            logger.warning("[Choreography] Response had no candidates")
            return ""
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
