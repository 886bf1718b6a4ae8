"""Boundary adapters: persistence and the external embedding provider."""
