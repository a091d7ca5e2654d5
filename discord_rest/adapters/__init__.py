"""Adapters for external collaborators (HTTP transport)."""
