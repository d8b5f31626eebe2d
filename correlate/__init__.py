"""
Correlate package: join pull requests, profiles and grading results into per-user records.
"""

from .index import build_pull_index
from .merge import merge_assignments, extract_feedbacks, build_assignment_details

__all__ = ["build_pull_index", "merge_assignments", "extract_feedbacks", "build_assignment_details"]
