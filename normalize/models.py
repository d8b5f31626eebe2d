"""
Unified data models for merged cohort participants and pull details.
"""

from datetime import datetime
from typing import List, Optional, Dict, Any

# order matters: it is the key order of the "github" block in app-data.json
PROFILE_FIELDS = (
    'name', 'id', 'login', 'avatar_url', 'html_url', 'url', 'company',
    'blog', 'location', 'email', 'bio', 'followers', 'following',
)


class GithubProfile:
    """
    Public GitHub profile attributes attached to a merged user.
    """
    def __init__(self, name: str, id: Any, login: str, avatar_url: str, html_url: str, url: str = '', company: str = '', blog: str = '', location: str = '', email: str = '', bio: str = '', followers: int = 0, following: int = 0):
        self.name = name
        self.id = id
        self.login = login
        self.avatar_url = avatar_url
        self.html_url = html_url
        self.url = url
        self.company = company
        self.blog = blog
        self.location = location
        self.email = email
        self.bio = bio
        self.followers = followers
        self.following = following

    def to_dict(self) -> Dict[str, Any]:
        return {k: getattr(self, k) for k in PROFILE_FIELDS}


class MergedUser:
    """
    One cohort participant: display name, GitHub identity and assignment history.
    The assignments list grows as further results for the same login are merged.
    """
    def __init__(self, name: str, github: GithubProfile, assignments: Optional[List[Dict[str, Any]]] = None):
        self.name = name
        self.github = github
        self.assignments = assignments if assignments is not None else []

    def add_assignment(self, record: Dict[str, Any]):
        self.assignments.append(record)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'github': self.github.to_dict(),
            'assignments': [dict(a) for a in self.assignments],
        }


class AssignmentDetail:
    """
    Flattened view of a single pull request, keyed by its URL in the snapshot.
    """
    def __init__(self, id: Any, user: str, title: str, body: Optional[str], created_at: Optional[datetime], updated_at: Optional[datetime], url: str):
        self.id = id
        self.user = user  # author login
        self.title = title
        self.body = body
        self.created_at = created_at
        self.updated_at = updated_at
        self.url = url

    def to_dict(self) -> Dict[str, Any]:
        # datetimes are left as-is; report.snapshot formats them on write
        return {
            'id': self.id,
            'user': self.user,
            'title': self.title,
            'body': self.body,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'url': self.url,
        }
