"""Application layer: service orchestrators and transport adapters."""
