"""Codec and conflict-policy adapters."""
