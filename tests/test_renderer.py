import csv
import io
import json

import pytest

from report import renderer


def _users():
    return {
        'b': {
            'name': 'Bob',
            'github': {'name': 'Bob B', 'avatar_url': 'https://avatars/b', 'html_url': 'https://github.com/b'},
            'assignments': [{'url': 'u1'}],
            'ranking': {'rank': 2, 'score': 1.0, 'percentile': 50.0, 'passedCount': 1, 'bestCount': 0, 'completionRate': 0.1, 'totalUsers': 2},
        },
        'a': {
            'name': 'Alice <script>',
            'github': {'name': 'Alice', 'avatar_url': '', 'html_url': ''},
            'assignments': [{'url': 'u2'}, {'url': 'u3'}],
            'ranking': {'rank': 1, 'score': 2.5, 'percentile': 100.0, 'passedCount': 2, 'bestCount': 1, 'completionRate': 0.2, 'totalUsers': 2},
        },
    }


def test_leaderboard_rows_sorted_by_rank():
    rows = renderer.leaderboard_rows(_users())
    assert [r['login'] for r in rows] == ['a', 'b']
    assert rows[0]['assignments'] == 2


def test_unranked_users_sort_last():
    users = _users()
    users['c'] = {'name': 'Carol', 'github': {}, 'assignments': []}
    rows = renderer.leaderboard_rows(users)
    assert rows[-1]['login'] == 'c'
    assert rows[-1]['rank'] is None


def test_render_markdown():
    md = renderer.render(_users(), fmt='md', scope='hanghae-plus')
    assert md.startswith('# Cohort Leaderboard')
    assert '_hanghae-plus_' in md
    lines = [line for line in md.splitlines() if line.startswith('| 1 ')]
    assert lines and 'Alice' in lines[0] and '2.50' in lines[0] and '20%' in lines[0]


def test_render_markdown_empty():
    assert 'No ranked users' in renderer.render({}, fmt='md')


def test_render_html_escapes_and_links():
    html = renderer.render(_users(), fmt='html', generated_at='now', scope='s')
    assert '<html' in html
    assert 'Alice &lt;script&gt;' in html
    assert '<a href="https://github.com/b">Bob</a>' in html
    assert 'Generated at now' in html


def test_render_csv():
    out = renderer.render(_users(), fmt='csv')
    rows = list(csv.reader(io.StringIO(out)))
    assert rows[0] == renderer.CSV_HEADER
    assert rows[1][:3] == ['1', 'a', 'Alice <script>']
    assert len(rows) == 3


def test_render_json():
    parsed = json.loads(renderer.render(_users(), fmt='json'))
    assert [r['login'] for r in parsed] == ['a', 'b']


def test_unknown_format():
    with pytest.raises(ValueError):
        renderer.render(_users(), fmt='pdf')
