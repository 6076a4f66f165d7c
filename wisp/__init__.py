"""Wisp — HTTP transcription gateway for the whisper.cpp engine."""

__version__ = "0.1.0"
