"""Input validation and persistence helpers."""
