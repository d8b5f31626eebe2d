"""
Pull index: one lookup table of pull requests keyed by html_url across every tracked repository.
"""
import logging
from itertools import chain
from typing import Dict, Any, Iterable, Sequence

log = logging.getLogger(__name__)


def build_pull_index(repository_pulls: Sequence[Iterable[Dict[str, Any]]]) -> Dict[str, Dict[str, Any]]:
    """
    Flatten per-repository pull lists (in the given repository order) into a dict keyed by html_url.

    Duplicate URLs are not an error: the last occurrence wins.
    """
    index: Dict[str, Dict[str, Any]] = {}
    duplicates = 0
    for pull in chain.from_iterable(repository_pulls):
        url = pull['html_url']
        if url in index:
            duplicates += 1
        index[url] = pull
    if duplicates:
        log.debug("pull index: %d duplicate url(s) replaced by later records", duplicates)
    return index
