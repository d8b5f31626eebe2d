"""
Scoring utility functions.
Provides ranking weight loading and small aggregation helpers used by scoring.ranking.
"""
from typing import Dict, Any, Iterable, Optional
import os
import yaml

# filename used for ranking weight YAML configuration
WEIGHTS_FILENAME = 'ranking.yaml'

DEFAULT_WEIGHTS = {
    'passed': 1.0,  # per assignment that passed review
    'best': 0.5,  # bonus per assignment picked as a best practice
}


def _default_weights_path() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), 'config', WEIGHTS_FILENAME)


def load_weights(path: Optional[str] = None) -> Dict[str, float]:
    """
    Load ranking weights from a YAML file if it exists, otherwise return defaults.
    Only known weight keys are read; missing keys keep their default value.
    """
    path = path or _default_weights_path()
    if not os.path.exists(path):
        return DEFAULT_WEIGHTS.copy()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as ex:
        raise ValueError(f"Failed to load ranking weights from {path}: {ex}")
    section = data.get('weights', data) if isinstance(data, dict) else {}
    return {k: float(section.get(k, DEFAULT_WEIGHTS[k])) for k in DEFAULT_WEIGHTS.keys()}


def count_truthy(records: Iterable[Dict[str, Any]], field: str) -> int:
    """Count records whose field is truthy."""
    return sum(1 for r in records or [] if r.get(field))


def compute_weighted_score(counts: Dict[str, Any], weights: Dict[str, float]) -> float:
    """
    Compute a single aggregate score from individual counts using provided weights.
    Missing counts are treated as zero.
    """
    total = 0.0
    for k, w in weights.items():
        val = float(counts.get(k, 0.0) or 0.0)
        total += val * float(w)
    return total
