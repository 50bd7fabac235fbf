"""
Tests for the replay engine: resolution, playback and orchestration.
"""
