"""Use cases of the realtime sync layer."""
