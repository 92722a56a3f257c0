"""Application layer: session-scoped sync logic written against ports."""
