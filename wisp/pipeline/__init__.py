"""Transcription request pipeline."""
