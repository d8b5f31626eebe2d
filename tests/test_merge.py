import unittest
from correlate import build_pull_index, merge_assignments, extract_feedbacks, build_assignment_details
from normalize.util import build_profile_directory


def _pull(url, login, user_id=1, **extra):
    pull = {
        'id': extra.pop('id', 100),
        'html_url': url,
        'user': {
            'id': user_id,
            'login': login,
            'avatar_url': f'https://avatars/{login}',
            'html_url': f'https://github.com/{login}',
        },
        'title': extra.pop('title', 'feat: assignment'),
        'body': extra.pop('body', ''),
        'created_at': '2025-07-01T09:30:00Z',
        'updated_at': '2025-07-02T10:00:00Z',
    }
    pull.update(extra)
    return pull


def _result(url, name='A', feedback='', **scores):
    result = {'name': name, 'feedback': feedback, 'assignment': {'url': url, 'title': 'chapter'}}
    result.update(scores)
    return result


class TestMergeAssignments(unittest.TestCase):
    def setUp(self):
        self.index = build_pull_index([
            [_pull('https://x/1', 'a', user_id=1), _pull('https://x/2', 'b', user_id=2)],
            [_pull('https://x/3', 'a', user_id=1)],
        ])

    def test_unresolvable_result_is_skipped(self):
        results = [
            _result('https://x/1', score=10),
            _result('https://x/404', feedback='good', score=5),
        ]
        users = merge_assignments(self.index, {}, results)
        self.assertEqual(list(users), ['a'])
        self.assertEqual(len(users['a'].assignments), 1)
        self.assertEqual(users['a'].assignments[0]['score'], 10)

    def test_same_login_appends_to_one_user(self):
        results = [_result('https://x/1', score=1), _result('https://x/1', score=2)]
        users = merge_assignments(self.index, {}, results)
        self.assertEqual(len(users), 1)
        self.assertEqual([a['score'] for a in users['a'].assignments], [1, 2])

    def test_order_preserved_across_repositories(self):
        results = [
            _result('https://x/3', score=3),
            _result('https://x/2', name='B', score=20),
            _result('https://x/missing', score=99),
            _result('https://x/1', score=1),
        ]
        users = merge_assignments(self.index, {}, results)
        self.assertEqual([a['url'] for a in users['a'].assignments], ['https://x/3', 'https://x/1'])
        self.assertEqual([a['score'] for a in users['b'].assignments], [20])

    def test_user_created_from_first_result(self):
        results = [_result('https://x/1', name='First'), _result('https://x/3', name='Second')]
        users = merge_assignments(self.index, {}, results)
        self.assertEqual(users['a'].name, 'First')
        self.assertEqual(users['a'].github.name, 'First')

    def test_assignment_record_shape(self):
        users = merge_assignments(self.index, {}, [_result('https://x/1', feedback='nice', passed=True, theBest=False)])
        record = users['a'].assignments[0]
        self.assertEqual(record, {'passed': True, 'theBest': False, 'url': 'https://x/1'})
        self.assertEqual(list(record)[-1], 'url')

    def test_repeated_input_doubles_assignments(self):
        results = [_result('https://x/1', score=1), _result('https://x/3', score=3)]
        users = merge_assignments(self.index, {}, results + results)
        self.assertEqual([a['score'] for a in users['a'].assignments], [1, 3, 1, 3])

    def test_malformed_result_propagates(self):
        with self.assertRaises(KeyError):
            merge_assignments(self.index, {}, [{'name': 'A', 'feedback': ''}])


class TestProfileFallback(unittest.TestCase):
    def test_missing_profile_uses_pull_author(self):
        index = build_pull_index([[_pull('https://x/1', 'a', user_id=42)]])
        users = merge_assignments(index, {}, [_result('https://x/1', name='Alice')])
        github = users['a'].github.to_dict()
        self.assertEqual(github, {
            'name': 'Alice',
            'id': '42',
            'login': 'a',
            'avatar_url': 'https://avatars/a',
            'html_url': 'https://github.com/a',
            'url': '',
            'company': '',
            'blog': '',
            'location': '',
            'email': '',
            'bio': '',
            'followers': 0,
            'following': 0,
        })

    def test_profile_values_win(self):
        index = build_pull_index([[_pull('https://x/1', 'a', user_id=42)]])
        directory = build_profile_directory([{
            'login': 'a', 'name': 'Alice Kim', 'id': 42, 'avatar_url': 'https://p/a', 'html_url': 'https://gh/a',
            'url': 'https://api/a', 'company': 'ACME', 'blog': '', 'location': 'Seoul', 'email': None,
            'bio': None, 'followers': 7, 'following': 0,
        }])
        users = merge_assignments(index, directory, [_result('https://x/1', name='Alice')])
        github = users['a'].github
        self.assertEqual(github.name, 'Alice Kim')
        # profile ids keep their type; only the pull-author fallback is stringified
        self.assertEqual(github.id, 42)
        self.assertEqual(github.avatar_url, 'https://p/a')
        self.assertEqual(github.company, 'ACME')
        self.assertEqual(github.location, 'Seoul')
        self.assertEqual(github.followers, 7)
        # None falls back, empty string does not
        self.assertEqual(github.email, '')
        self.assertEqual(github.bio, '')
        self.assertEqual(github.blog, '')

    def test_profile_with_null_name_falls_back_to_result_name(self):
        index = build_pull_index([[_pull('https://x/1', 'a')]])
        directory = build_profile_directory([{'login': 'a', 'name': None}])
        users = merge_assignments(index, directory, [_result('https://x/1', name='Alice')])
        self.assertEqual(users['a'].github.name, 'Alice')
        self.assertEqual(users['a'].github.avatar_url, 'https://avatars/a')


class TestFeedbacks(unittest.TestCase):
    def test_feedback_does_not_need_pull(self):
        results = [
            _result('https://x/1', name='A', feedback='', score=10),
            _result('https://x/2', name='A', feedback='good', score=5),
        ]
        self.assertEqual(extract_feedbacks(results), {'https://x/2': {'name': 'A', 'feedback': 'good'}})

    def test_last_feedback_wins(self):
        results = [_result('https://x/1', name='A', feedback='first'), _result('https://x/1', name='B', feedback='second')]
        self.assertEqual(extract_feedbacks(results), {'https://x/1': {'name': 'B', 'feedback': 'second'}})

    def test_missing_url_or_feedback_ignored(self):
        results = [
            {'name': 'A', 'feedback': 'text', 'assignment': {'url': ''}},
            {'name': 'A', 'assignment': {'url': 'https://x/1'}},
            {'name': 'A', 'feedback': None, 'assignment': {'url': 'https://x/2'}},
        ]
        self.assertEqual(extract_feedbacks(results), {})


class TestAssignmentDetails(unittest.TestCase):
    def test_one_detail_per_pull(self):
        index = build_pull_index([[_pull('https://x/1', 'a', id=11, title='t1', body='b1')], [_pull('https://x/2', 'b', id=12)]])
        details = build_assignment_details(index)
        self.assertEqual(set(details), {'https://x/1', 'https://x/2'})
        d = details['https://x/1'].to_dict()
        self.assertEqual(d['id'], 11)
        self.assertEqual(d['user'], 'a')
        self.assertEqual(d['title'], 't1')
        self.assertEqual(d['body'], 'b1')
        self.assertEqual(d['url'], 'https://x/1')
        self.assertEqual(d['createdAt'].isoformat(), '2025-07-01T09:30:00+00:00')
        self.assertEqual(d['updatedAt'].isoformat(), '2025-07-02T10:00:00+00:00')

    def test_bad_timestamp_becomes_none(self):
        index = build_pull_index([[_pull('https://x/1', 'a', created_at='not a date', updated_at=None)]])
        d = build_assignment_details(index)['https://x/1']
        self.assertIsNone(d.created_at)
        self.assertIsNone(d.updated_at)


if __name__ == '__main__':
    unittest.main()
