"""
Normalization utility helpers.
Small helpers to turn raw GitHub / grading payloads into normalize.models entities.
"""
from datetime import datetime, timezone
from typing import Dict, Any, Iterable, Optional
from normalize.models import GithubProfile, MergedUser

# keys of an assignment result that are folded into the user record instead of the history entry
_RESULT_ONLY_KEYS = ('name', 'feedback', 'assignment')


def _coalesce(value: Any, default: Any) -> Any:
    """Return default only when value is None (empty strings and zeros are kept)."""
    return default if value is None else value


def build_profile_directory(profiles: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Index profile records by login. A later record for the same login replaces an earlier one."""
    directory: Dict[str, Dict[str, Any]] = {}
    for profile in profiles or []:
        directory[profile['login']] = profile
    return directory


def build_github_profile(pull: Dict[str, Any], result: Dict[str, Any], profile: Optional[Dict[str, Any]]) -> GithubProfile:
    """Build the github block, preferring profile values and falling back to the pull author."""
    author = pull['user']
    p = profile or {}
    return GithubProfile(
        name=_coalesce(p.get('name'), result['name']),
        id=_coalesce(p.get('id'), str(author['id'])),
        login=_coalesce(p.get('login'), author['login']),
        avatar_url=_coalesce(p.get('avatar_url'), author.get('avatar_url')),
        html_url=_coalesce(p.get('html_url'), author.get('html_url')),
        url=_coalesce(p.get('url'), ''),
        company=_coalesce(p.get('company'), ''),
        blog=_coalesce(p.get('blog'), ''),
        location=_coalesce(p.get('location'), ''),
        email=_coalesce(p.get('email'), ''),
        bio=_coalesce(p.get('bio'), ''),
        followers=_coalesce(p.get('followers'), 0),
        following=_coalesce(p.get('following'), 0),
    )


def build_merged_user(pull: Dict[str, Any], result: Dict[str, Any], profile: Optional[Dict[str, Any]] = None) -> MergedUser:
    """Create a fresh MergedUser (with no assignments yet) for the author of pull."""
    return MergedUser(name=result['name'], github=build_github_profile(pull, result, profile), assignments=[])


def to_assignment_record(result: Dict[str, Any]) -> Dict[str, Any]:
    """Strip name/feedback/assignment from a grading result and append the flat assignment url."""
    record = {k: v for k, v in result.items() if k not in _RESULT_ONLY_KEYS}
    record['url'] = result['assignment']['url']
    return record


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 GitHub timestamp into an aware UTC datetime.
    Returns None for missing or unparseable values, which end up as null in the snapshot.
    """
    if not raw or not isinstance(raw, str):
        return None
    text = raw.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
