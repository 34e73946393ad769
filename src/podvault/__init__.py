"""Podvault - podcast feed library with AI episode summaries."""

__version__ = "0.1.0"
