"""Remote choreography generation."""

from .client import ChoreographyClient, build_prompt

__all__ = ["ChoreographyClient", "build_prompt"]
