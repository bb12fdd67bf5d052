"""Application layer: migration use cases and background runs."""
