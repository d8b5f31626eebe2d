"""Normalized models for merged cohort participants and the helpers that build them."""
