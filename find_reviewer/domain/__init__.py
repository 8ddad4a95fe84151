"""Matching domain: types and engines."""
