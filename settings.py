"""
Crawler settings: organization, tracked repositories, data directory and upstream endpoints.
Values come from config/crawler.yaml, then environment variables, then CLI overrides.
"""

import os
from typing import List, Optional, Dict, Any
import yaml

CONFIG_FILENAME = 'crawler.yaml'

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))

DEFAULTS: Dict[str, Any] = {
    'organization': 'hanghae-plus',
    'repositories': [],
    'data_dir': os.path.join(PROJECT_ROOT, 'docs', 'data'),
    'github_base_url': 'https://api.github.com',
    'grading_base_url': '',
    'max_workers': 4,
}

# environment variable -> settings key
ENV_OVERRIDES = {
    'CRAWLER_ORGANIZATION': 'organization',
    'CRAWLER_DATA_DIR': 'data_dir',
    'GRADING_BASE_URL': 'grading_base_url',
    'CRAWLER_MAX_WORKERS': 'max_workers',
}


class Settings:
    """
    Resolved crawler configuration.
    """
    def __init__(self, organization: str, repositories: List[str], data_dir: str, github_base_url: str = DEFAULTS['github_base_url'], grading_base_url: str = '', max_workers: int = 4):
        self.organization = organization
        self.repositories = list(repositories)
        self.data_dir = data_dir
        self.github_base_url = github_base_url
        self.grading_base_url = grading_base_url
        self.max_workers = max_workers

    @property
    def repository_count(self) -> int:
        return len(self.repositories)

    def require_grading_url(self) -> str:
        if not self.grading_base_url:
            raise ValueError('grading_base_url is not configured (set it in crawler.yaml or GRADING_BASE_URL)')
        return self.grading_base_url


def default_config_path() -> str:
    return os.path.join(PROJECT_ROOT, 'config', CONFIG_FILENAME)


def _read_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            doc = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as ex:
        raise ValueError(f"Failed to read config {path}: {ex}")
    if not isinstance(doc, dict):
        raise ValueError(f"Config {path} must be a mapping, got {type(doc).__name__}")
    # a relative data_dir in the file is relative to the file, not to the working directory
    if doc.get('data_dir'):
        doc['data_dir'] = os.path.normpath(os.path.join(os.path.dirname(os.path.abspath(path)), str(doc['data_dir'])))
    return doc


def load_settings(path: Optional[str] = None, env: Optional[Dict[str, str]] = None, **overrides) -> Settings:
    """Load settings from YAML (default config/crawler.yaml), apply env overrides, then keyword overrides.

    Keyword overrides that are None are ignored so argparse defaults can be passed straight through.
    """
    env = os.environ if env is None else env
    path = path or default_config_path()
    values = dict(DEFAULTS)
    if os.path.exists(path):
        values.update(_read_yaml(path))
    elif path != default_config_path():
        raise ValueError(f"Config file not found: {path}")

    for var, key in ENV_OVERRIDES.items():
        if env.get(var):
            values[key] = env[var]
    values.update({k: v for k, v in overrides.items() if v is not None})

    repos = values.get('repositories') or []
    if not isinstance(repos, list) or not repos:
        raise ValueError('At least one repository must be configured under "repositories"')
    try:
        max_workers = int(values.get('max_workers') or 1)
    except (TypeError, ValueError):
        raise ValueError(f"max_workers must be an integer, got {values.get('max_workers')!r}")

    return Settings(
        organization=str(values['organization']),
        repositories=[str(r) for r in repos],
        data_dir=str(values['data_dir']),
        github_base_url=str(values['github_base_url']).rstrip('/'),
        grading_base_url=str(values.get('grading_base_url') or '').rstrip('/'),
        max_workers=max(1, max_workers),
    )
