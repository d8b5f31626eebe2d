"""
Grading backend client: per-assignment results (pass/fail, best-practice picks, feedback) for the cohort.
"""

import logging
from typing import List, Dict, Any, Optional
from storage.cache import cached_get
from .errors import FetchError

log = logging.getLogger(__name__)


class GradingClient:
    """Fetches assignment results from the course-management backend.

    Results are always fetched from the network, never from the response cache.
    """

    def __init__(self, base_url: str, token: Optional[str] = None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.headers = {"Accept": "application/json"}
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"

    def get_assignment_results(self) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/assignments/results"
        res = cached_get(url, headers=self.headers)
        status = res.get('status', 0)
        if status != 200:
            raise FetchError(url, status)
        data = res.get('response')
        # the backend wraps lists in {"data": [...]} on newer deployments
        if isinstance(data, dict):
            data = data.get('data')
        if not isinstance(data, list):
            raise FetchError(url, status, 'expected a list of assignment results')
        log.info("assignment results: %d", len(data))
        return data
