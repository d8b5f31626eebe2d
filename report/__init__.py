"""Leaderboard rendering and app-data.json snapshot writing."""
