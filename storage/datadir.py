"""
Intermediate JSON files in the crawler data directory.

Layout:
    <data_dir>/<repo>/pulls.json
    <data_dir>/github-profiles.json
    <data_dir>/user-assignment-infos.json
    <data_dir>/app-data.json
"""

import json
import os
from typing import Any, List, Sequence

PULLS_FILENAME = 'pulls.json'
PROFILES_FILENAME = 'github-profiles.json'
ASSIGNMENTS_FILENAME = 'user-assignment-infos.json'
APP_DATA_FILENAME = 'app-data.json'


class DataDir:
    """Paths and JSON read/write helpers rooted at one data directory."""

    def __init__(self, root: str):
        self.root = root

    def pulls_path(self, repo: str) -> str:
        return os.path.join(self.root, repo, PULLS_FILENAME)

    @property
    def profiles_path(self) -> str:
        return os.path.join(self.root, PROFILES_FILENAME)

    @property
    def assignments_path(self) -> str:
        return os.path.join(self.root, ASSIGNMENTS_FILENAME)

    @property
    def app_data_path(self) -> str:
        return os.path.join(self.root, APP_DATA_FILENAME)

    def missing_pull_repos(self, repos: Sequence[str]) -> List[str]:
        """Repositories whose pulls.json has not been written yet, in the given order."""
        return [r for r in repos if not os.path.exists(self.pulls_path(r))]

    def load_repository_pulls(self, repos: Sequence[str]) -> List[list]:
        """Load pulls.json for every repo, preserving repository order."""
        return [read_json(self.pulls_path(r)) for r in repos]

    def write_pulls(self, repo: str, pulls: list) -> str:
        return write_json(self.pulls_path(repo), pulls)


def read_json(path: str) -> Any:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Required data file is missing: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(path: str, data: Any) -> str:
    """Write data as indented UTF-8 JSON, creating parent directories. Returns the path."""
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(dump_json(data))
    return path


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)
