"""Adapters implementing the core ports: cache backends, sources, visibility."""
