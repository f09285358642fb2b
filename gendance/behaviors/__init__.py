"""Dance mode behaviors."""

from .choreography_player import ChoreographyPlayer, PlaybackFrame, PlayerState

__all__ = ["ChoreographyPlayer", "PlaybackFrame", "PlayerState"]
