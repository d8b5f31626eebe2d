"""
Leaderboard renderer: HTML/Markdown (Jinja2 templates in report/templates), CSV and JSON views of ranked users.
"""

from typing import Optional, List, Dict, Any, Mapping
import os
import io
import csv
import json
from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')

CSV_HEADER = ['rank', 'login', 'name', 'score', 'percentile', 'passed', 'best', 'completion_rate']


def _env() -> Environment:
    return Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(['html', 'xml', 'html.j2']), trim_blocks=True, lstrip_blocks=True)


def _row(login: str, user: Mapping[str, Any]) -> Dict[str, Any]:
    github = user.get('github') or {}
    ranking = user.get('ranking') or {}
    return {
        'rank': ranking.get('rank'),
        'login': login,
        'name': user.get('name') or github.get('name') or login,
        'score': ranking.get('score', 0.0),
        'percentile': ranking.get('percentile', 0.0),
        'passed': ranking.get('passedCount', 0),
        'best': ranking.get('bestCount', 0),
        'completion_rate': ranking.get('completionRate', 0.0),
        'avatar_url': github.get('avatar_url') or '',
        'html_url': github.get('html_url') or '',
        'assignments': len(user.get('assignments') or []),
    }


def leaderboard_rows(users: Mapping[str, Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten ranked users into rows ordered by rank, then login. Unranked users sort last."""
    rows = [_row(login, u) for login, u in (users or {}).items()]
    rows.sort(key=lambda r: (r['rank'] is None, r['rank'] or 0, r['login']))
    return rows


def render_markdown(users: Mapping[str, Mapping[str, Any]], scope: Optional[str] = None) -> str:
    tmpl = _env().get_template('leaderboard.md.j2')
    return tmpl.render(rows=leaderboard_rows(users), scope=scope)


def render_html(users: Mapping[str, Mapping[str, Any]], generated_at: Optional[str] = None, scope: Optional[str] = None) -> str:
    tmpl = _env().get_template('leaderboard.html.j2')
    return tmpl.render(rows=leaderboard_rows(users), generated_at=generated_at, scope=scope)


def render_csv(users: Mapping[str, Mapping[str, Any]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)
    for r in leaderboard_rows(users):
        writer.writerow([r[k] for k in CSV_HEADER])
    return output.getvalue()


def render_json(users: Mapping[str, Mapping[str, Any]]) -> str:
    """Export leaderboard rows as a JSON array."""
    return json.dumps(leaderboard_rows(users), indent=2, ensure_ascii=False)


def render(users: Mapping[str, Mapping[str, Any]], fmt: str = 'md', generated_at: Optional[str] = None, scope: Optional[str] = None) -> str:
    """Main render function; fmt is one of html, md, csv, json."""
    fmt_l = (fmt or 'md').lower()
    if fmt_l in ('md', 'markdown'):
        return render_markdown(users, scope=scope)
    if fmt_l == 'csv':
        return render_csv(users)
    if fmt_l in ('html', 'htm'):
        return render_html(users, generated_at=generated_at, scope=scope)
    if fmt_l == 'json':
        return render_json(users)
    raise ValueError(f"Unsupported report format: {fmt}")
