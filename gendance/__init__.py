"""GenDance - turn a song into a choreographed, beat-synced dancing figure."""

__version__ = "0.1.0"
