"""Ranking of merged users."""
