"""
Error types for the GenDance engine.

Only conditions the caller has to react to are exceptions. Degenerate
signals, zero-length timeline segments and unknown pose ids are handled
in place by the component that meets them.
"""


class GenDanceError(Exception):
    """Base class for all GenDance errors."""


class DecodeFailure(GenDanceError):
    """The audio container could not be decoded.

    Raised before feature extraction starts. The user-facing remedy is
    choosing another file.
    """

    USER_MESSAGE = "Failed to process audio. Please try another file."

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(f"{self.USER_MESSAGE} ({detail})" if detail else self.USER_MESSAGE)


class MalformedTimeline(GenDanceError):
    """A choreography payload could not be read as a list of timeline steps."""


class ChoreographyError(GenDanceError):
    """The remote choreography generator could not be reached or refused the request."""
