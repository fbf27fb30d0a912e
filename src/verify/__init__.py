"""Determinism checks for extraction output."""
