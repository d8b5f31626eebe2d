"""
GitHub ingestion client: pull requests of the cohort repositories and public user profiles.
Works without a token (unauthenticated, low rate limit); a token only adds the Authorization header.
"""
import logging
from typing import List, Dict, Any, Optional
from storage.cache import cached_get, Cache
from .errors import FetchError

log = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubClient:
    """Simple GitHub REST client for repository pulls and user profiles."""

    def __init__(self, token: Optional[str], org: str, base_url: str = None, cache: Optional[Cache] = None, max_age: Optional[float] = None, refresh: bool = False):
        self.token = token
        self.org = org
        self.base_url = (base_url or "https://api.github.com").rstrip('/')
        self.headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"
        self.cache = cache
        # cached bodies older than max_age seconds are refetched; refresh ignores cached bodies altogether
        self.max_age = max_age
        self.refresh = refresh

    def _get(self, url: str, params: Dict[str, Any] = None, cache_key: str = None) -> Any:
        res = cached_get(
            url, headers=self.headers, params=params, cache=self.cache, cache_key=cache_key if self.cache else None,
            max_age=self.max_age, refresh=self.refresh,
        )
        status = res.get('status', 0)
        if status != 200:
            raise FetchError(url, status, str(res.get('response'))[:200] if res.get('response') else None)
        return res.get('response')

    def get_pulls(self, repo: str, per_page: int = PER_PAGE) -> List[Dict[str, Any]]:
        """Return every pull request (any state) of org/repo, following pages until a short page."""
        url = f"{self.base_url}/repos/{self.org}/{repo}/pulls"
        pulls: List[Dict[str, Any]] = []
        page = 1
        while True:
            params = {"state": "all", "per_page": per_page, "page": page}
            data = self._get(url, params, cache_key=f"github:pulls:{self.org}/{repo}:page:{page}:per:{per_page}") or []
            pulls.extend(data)
            if len(data) < per_page:
                break
            page += 1
        log.info("%s Counts: %d", repo, len(pulls))
        return pulls

    def get_user(self, login: str) -> Dict[str, Any]:
        """Return the public profile of a GitHub user."""
        log.info("Fetching user: %s", login)
        return self._get(f"{self.base_url}/users/{login}", cache_key=f"github:user:{login}")

    @staticmethod
    def pull_author(pull: Dict[str, Any]) -> str:
        return pull['user']['login']
