"""Import helpers."""
