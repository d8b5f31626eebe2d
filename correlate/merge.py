"""
Merge grading results with pull requests and profiles into one record per contributor.

Three views are derived from the same inputs:
- users: login -> MergedUser, built by folding assignment results over the pull index
- feedbacks: assignment url -> {name, feedback}
- assignment details: pull url -> AssignmentDetail, for every known pull
"""
import logging
from typing import Dict, Any, Iterable, Mapping, Optional
from normalize.models import MergedUser, AssignmentDetail
from normalize.util import build_merged_user, to_assignment_record, parse_timestamp

log = logging.getLogger(__name__)


def merge_assignments(
    pull_index: Mapping[str, Dict[str, Any]],
    profile_directory: Mapping[str, Dict[str, Any]],
    assignment_results: Iterable[Dict[str, Any]],
) -> Dict[str, MergedUser]:
    """
    Fold assignment results into MergedUser objects keyed by the pull author's login.

    Results are processed strictly in input order. A result whose assignment url is not in
    pull_index is skipped; everything else either creates the user (first time the login is seen)
    or appends to that user's assignments.
    """
    users: Dict[str, MergedUser] = {}
    dropped = 0
    for result in assignment_results:
        pull = pull_index.get(result['assignment']['url'])
        if pull is None:
            dropped += 1
            continue
        login = pull['user']['login']
        user: Optional[MergedUser] = users.get(login)
        if user is None:
            user = build_merged_user(pull, result, profile_directory.get(login))
        user.add_assignment(to_assignment_record(result))
        users[login] = user
    if dropped:
        log.debug("merge: %d assignment result(s) had no matching pull and were skipped", dropped)
    return users


def extract_feedbacks(assignment_results: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, str]]:
    """Collect instructor feedback keyed by assignment url. Entries without url or feedback text are ignored."""
    feedbacks: Dict[str, Dict[str, str]] = {}
    for result in assignment_results:
        url = result['assignment'].get('url')
        feedback = result.get('feedback')
        if url and feedback:
            feedbacks[url] = {'name': result.get('name'), 'feedback': feedback}
    return feedbacks


def build_assignment_details(pull_index: Mapping[str, Dict[str, Any]]) -> Dict[str, AssignmentDetail]:
    """Flatten every indexed pull into an AssignmentDetail, regardless of whether it was merged."""
    details: Dict[str, AssignmentDetail] = {}
    for url, pull in pull_index.items():
        details[url] = AssignmentDetail(
            id=pull['id'],
            user=pull['user']['login'],
            title=pull.get('title'),
            body=pull.get('body'),
            created_at=parse_timestamp(pull.get('created_at')),
            updated_at=parse_timestamp(pull.get('updated_at')),
            url=pull['html_url'],
        )
    return details
