"""Fetch clients for GitHub and the grading backend."""
