"""Upstream endpoint helpers (internal)."""
