"""Domain layer: plain entities and error types."""
