"""
Ranking annotator: attach rank, score and percentile to every merged user.

The pipeline only relies on the contract: same users in, same users out (same keys, same order),
each carrying a "ranking" object. Input mappings are never mutated.
"""
import copy
from typing import Dict, Any, Mapping, Optional
from .utils import load_weights, count_truthy, compute_weighted_score


def _as_dict(user: Any) -> Dict[str, Any]:
    if hasattr(user, 'to_dict'):
        return user.to_dict()
    return copy.deepcopy(dict(user))


def _user_counts(user: Dict[str, Any]) -> Dict[str, int]:
    assignments = user.get('assignments') or []
    return {
        'passed': count_truthy(assignments, 'passed'),
        'best': count_truthy(assignments, 'theBest'),
    }


def competition_ranks(scores: Mapping[str, float]) -> Dict[str, int]:
    """Standard competition ranking by descending score: equal scores share a rank (1, 2, 2, 4)."""
    ordered = sorted(scores.items(), key=lambda kv: -kv[1])
    ranks: Dict[str, int] = {}
    prev_score = None
    prev_rank = 0
    for position, (key, score) in enumerate(ordered, start=1):
        if score != prev_score:
            prev_rank = position
            prev_score = score
        ranks[key] = prev_rank
    return ranks


def add_ranking_to_users(users: Mapping[str, Any], repository_count: int, weights: Optional[Dict[str, float]] = None) -> Dict[str, Dict[str, Any]]:
    """
    Return a copy of users where each entry has a "ranking" object:
    {rank, score, percentile, passedCount, bestCount, completionRate, totalUsers}.

    repository_count is the number of assignments a participant could complete and is the
    denominator of completionRate.
    """
    weights = weights or load_weights()
    ranked = {login: _as_dict(u) for login, u in users.items()}
    counts = {login: _user_counts(u) for login, u in ranked.items()}
    scores = {login: compute_weighted_score(c, weights) for login, c in counts.items()}
    ranks = competition_ranks(scores)
    total = len(ranked)

    for login, user in ranked.items():
        rank = ranks[login]
        passed = counts[login]['passed']
        user['ranking'] = {
            'rank': rank,
            'score': round(scores[login], 4),
            'percentile': round((total - rank + 1) / total * 100, 2),
            'passedCount': passed,
            'bestCount': counts[login]['best'],
            'completionRate': round(passed / repository_count, 4) if repository_count else 0.0,
            'totalUsers': total,
        }
    return ranked
