"""
Crawler pipeline: fetch -> persist -> merge -> rank -> snapshot.

The fetch steps write intermediate JSON into the data directory; generate_app_data reads them back and
runs the in-memory merge, which performs no I/O of its own.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence

from correlate import build_pull_index, merge_assignments, extract_feedbacks, build_assignment_details
from normalize.util import build_profile_directory
from scoring.ranking import add_ranking_to_users
from report.snapshot import build_snapshot, write_snapshot
from storage.datadir import DataDir, read_json, write_json
from ingest.errors import FetchError
from ingest.github import GitHubClient
from ingest.grading import GradingClient
from settings import Settings

log = logging.getLogger(__name__)

RankFn = Callable[[Dict[str, Any], int], Dict[str, Any]]


def build_app_data(
    repository_pulls: Sequence[Sequence[Dict[str, Any]]],
    profiles: Sequence[Dict[str, Any]],
    assignment_results: Sequence[Dict[str, Any]],
    repository_count: int,
    rank: RankFn = add_ranking_to_users,
) -> Dict[str, Any]:
    """Merge the three datasets into the JSON-ready {users, feedbacks, assignmentDetails} snapshot.

    rank receives {login: user dict} plus repository_count and must return the annotated users.
    """
    pull_index = build_pull_index(repository_pulls)
    directory = build_profile_directory(profiles)
    merged = merge_assignments(pull_index, directory, assignment_results)
    users = rank({login: user.to_dict() for login, user in merged.items()}, repository_count)
    feedbacks = extract_feedbacks(assignment_results)
    details = build_assignment_details(pull_index)
    log.info("merged %d users, %d feedbacks, %d pulls", len(users), len(feedbacks), len(details))
    return build_snapshot(users, feedbacks, details)


def unique_authors(repository_pulls: Sequence[Sequence[Dict[str, Any]]]) -> List[str]:
    """Distinct pull author logins in first-seen order."""
    seen: Dict[str, None] = {}
    for pulls in repository_pulls:
        for pull in pulls:
            seen.setdefault(GitHubClient.pull_author(pull), None)
    return list(seen)


def generate_pulls(settings: Settings, github: GitHubClient, data: DataDir, refresh: bool = False) -> List[str]:
    """Fetch pulls.json for repositories not yet on disk (all of them with refresh). Returns the repos written."""
    repos = list(settings.repositories) if refresh else data.missing_pull_repos(settings.repositories)
    if not repos:
        log.info("pulls.json present for all %d repositories. Skipping...", settings.repository_count)
        return []
    with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
        results = list(pool.map(github.get_pulls, repos))
    for repo, pulls in zip(repos, results):
        data.write_pulls(repo, pulls)
    return repos


def _fetch_profile(github: GitHubClient, login: str) -> Optional[Dict[str, Any]]:
    """A deleted or renamed account (404) is skipped; the merge falls back to the pull author."""
    try:
        return github.get_user(login)
    except FetchError as ex:
        if ex.status != 404:
            raise
        log.warning("Profile of %s not found, skipping", login)
        return None


def generate_profiles(settings: Settings, github: GitHubClient, data: DataDir, refresh: bool = False) -> bool:
    """Fetch profiles of every pull author into github-profiles.json. Returns False when skipped."""
    if not refresh and os.path.exists(data.profiles_path):
        log.info("github-profiles.json already exists. Skipping...")
        return False
    logins = unique_authors(data.load_repository_pulls(settings.repositories))
    with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
        profiles = list(pool.map(lambda login: _fetch_profile(github, login), logins))
    write_json(data.profiles_path, [p for p in profiles if p is not None])
    return True


def generate_assignment_results(grading: GradingClient, data: DataDir) -> int:
    """Always refetch assignment results. Returns the number of results written."""
    results = grading.get_assignment_results()
    write_json(data.assignments_path, results)
    return len(results)


def generate_app_data(settings: Settings, data: DataDir, rank: RankFn = add_ranking_to_users) -> Dict[str, Any]:
    """Read intermediate files, build the snapshot and write app-data.json. Returns the snapshot."""
    snapshot = build_app_data(
        repository_pulls=data.load_repository_pulls(settings.repositories),
        profiles=read_json(data.profiles_path),
        assignment_results=read_json(data.assignments_path),
        repository_count=settings.repository_count,
        rank=rank,
    )
    write_snapshot(data.app_data_path, snapshot)
    return snapshot
