"""DevConnect realtime backend: presence tracking and live notification fan-out."""

__version__ = "0.1.0"
