"""Tests for the backend REST client (HTTP mocked)."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from codepractice.client import PracticeAPI, create_practice_api
from codepractice.session import (
    ApiError,
    CodeDraftStore,
    Difficulty,
    NotFound,
    PracticeSession,
    ProgressStatus,
    SubmissionState,
    TransportError,
    Unauthorized,
    UserContext,
    VerdictTag,
)
from codepractice.session.storage import MemoryStorage

from conftest import PROBLEM_PAYLOAD


def _response(status=200, body=None, raw=None):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.ok = 200 <= status < 400
    if raw is not None:
        resp.content = raw
        resp.json.side_effect = ValueError('not json')
    elif body is None:
        resp.content = b''
    else:
        resp.content = b'{...}'
        resp.json.return_value = body
    return resp


@pytest.fixture()
def api():
    return PracticeAPI('http://backend.test/api/', timeout=5, max_retries=3)


@pytest.fixture()
def user():
    return UserContext(profile_id='profile-1', token='tok')


class TestRequests:
    def test_get_problem(self, api, user):
        with patch.object(api.session, 'request', return_value=_response(body=PROBLEM_PAYLOAD)) as req:
            problem = api.fetch_problem(user, 'p1')

        assert problem.id == 'p1'
        assert problem.difficulty is Difficulty.EASY
        assert problem.starter_code == '// TODO'
        assert len(problem.test_cases) == 2
        method, url = req.call_args.args
        assert method == 'GET'
        assert url == 'http://backend.test/api/problems/p1'
        assert req.call_args.kwargs['headers'] == {'Authorization': 'Bearer tok'}
        assert req.call_args.kwargs['timeout'] == 5

    def test_anonymous_context_sends_no_auth_header(self, api):
        anonymous = UserContext(profile_id='x')
        with patch.object(api.session, 'request', return_value=_response(body=PROBLEM_PAYLOAD)) as req:
            api.fetch_problem(anonymous, 'p1')
        assert req.call_args.kwargs['headers'] == {}

    def test_problem_id_is_escaped(self, api, user):
        with patch.object(api.session, 'request', return_value=_response(body=PROBLEM_PAYLOAD)) as req:
            api.fetch_problem(user, '../admin')
        assert req.call_args.args[1] == 'http://backend.test/api/problems/..%2Fadmin'

    def test_progress(self, api, user):
        body = {'status': 'unsolved', 'attempts': 0, 'notes': ''}
        with patch.object(api.session, 'request', return_value=_response(body=body)):
            progress = api.fetch_progress(user, 'p1')
        assert progress.problem_id == 'p1'
        assert progress.status is ProgressStatus.UNATTEMPTED

    def test_submit_payload(self, api, user):
        body = {'verdict': 'Accepted', 'feedback': 'ok', 'passed': True}
        with patch.object(api.session, 'request', return_value=_response(body=body)) as req:
            result = api.post_submission(user, 'p1', 'int main(){}', 'cpp')
        assert result == body
        assert req.call_args.kwargs['json'] == {
            'problemId': 'p1', 'code': 'int main(){}', 'language': 'cpp',
        }

    def test_save_notes_payload(self, api, user):
        with patch.object(api.session, 'request', return_value=_response(body={'message': 'Notes updated'})) as req:
            api.put_notes(user, 'p1', 'hello')
        assert req.call_args.args == ('PUT', 'http://backend.test/api/progress/p1/notes')
        assert req.call_args.kwargs['json'] == {'notes': 'hello'}

    def test_submissions_null_body(self, api, user):
        with patch.object(api.session, 'request', return_value=_response(body=None)):
            assert api.fetch_submissions(user, 'p1') == []


class TestErrorMapping:
    def test_404_is_not_found(self, api, user):
        with patch.object(api.session, 'request', return_value=_response(404, {'error': 'Problem not found'})):
            with pytest.raises(NotFound, match='Problem not found'):
                api.fetch_problem(user, 'p1')

    def test_400_on_problem_is_not_found(self, api, user):
        with patch.object(api.session, 'request', return_value=_response(400, {'error': 'Invalid problem ID'})):
            with pytest.raises(NotFound):
                api.fetch_problem(user, 'bad')

    def test_401_is_unauthorized(self, api, user):
        with patch.object(api.session, 'request', return_value=_response(401, {'error': 'Unauthorized'})):
            with pytest.raises(Unauthorized):
                api.fetch_progress(user, 'p1')

    def test_trial_limit_carries_code(self, api, user):
        body = {'error': 'Trial limit reached (3/3).', 'code': 'TRIAL_LIMIT_REACHED'}
        with patch.object(api.session, 'request', return_value=_response(403, body)):
            with pytest.raises(ApiError) as exc_info:
                api.post_submission(user, 'p1', 'x', 'cpp')
        assert exc_info.value.status == 403
        assert exc_info.value.code == 'TRIAL_LIMIT_REACHED'
        assert exc_info.value.message == 'Trial limit reached (3/3).'

    def test_malformed_success_body(self, api, user):
        with patch.object(api.session, 'request', return_value=_response(200, raw=b'<html>')):
            with pytest.raises(ApiError, match='Malformed'):
                api.fetch_problem(user, 'p1')

    def test_malformed_progress_body_is_api_error(self, api, user):
        body = {'status': 'solved', 'attempts': 'n/a'}
        with patch.object(api.session, 'request', return_value=_response(body=body)):
            with pytest.raises(ApiError, match='Malformed progress payload'):
                api.fetch_progress(user, 'p1')


class TestRetries:
    @patch('codepractice.client.base.time.sleep')
    def test_get_retried_on_connection_error(self, mock_sleep, api, user):
        responses = [
            requests.ConnectionError('reset'),
            _response(body={'status': 'attempted', 'attempts': 1}),
        ]
        with patch.object(api.session, 'request', side_effect=responses) as req:
            progress = api.fetch_progress(user, 'p1')
        assert progress.attempts == 1
        assert req.call_count == 2
        mock_sleep.assert_called_once_with(1)

    @patch('codepractice.client.base.time.sleep')
    def test_get_gives_up_with_transport_error(self, mock_sleep, api, user):
        with patch.object(api.session, 'request', side_effect=requests.Timeout('slow')) as req:
            with pytest.raises(TransportError):
                api.fetch_progress(user, 'p1')
        assert req.call_count == 3

    @patch('codepractice.client.base.time.sleep')
    def test_get_retried_on_server_error(self, mock_sleep, api, user):
        responses = [_response(502, {'error': 'bad gateway'}), _response(body=PROBLEM_PAYLOAD)]
        with patch.object(api.session, 'request', side_effect=responses):
            assert api.fetch_problem(user, 'p1').title == 'Two Sum'

    @patch('codepractice.client.base.time.sleep')
    def test_submit_never_retried(self, mock_sleep, api, user):
        with patch.object(api.session, 'request', side_effect=requests.ConnectionError('reset')) as req:
            with pytest.raises(TransportError):
                api.post_submission(user, 'p1', 'x', 'cpp')
        assert req.call_count == 1
        mock_sleep.assert_not_called()

    @patch('codepractice.client.base.time.sleep')
    def test_submit_server_error_not_retried(self, mock_sleep, api, user):
        with patch.object(api.session, 'request', return_value=_response(500, {'error': 'Failed to evaluate code'})) as req:
            with pytest.raises(ApiError):
                api.post_submission(user, 'p1', 'x', 'cpp')
        assert req.call_count == 1


class TestAsyncFacade:
    def test_async_methods_wrap_sync_calls(self, api, user):
        with patch.object(api, 'fetch_problem', return_value='problem') as fetch:
            assert asyncio.run(api.get_problem(user, 'p1')) == 'problem'
        fetch.assert_called_once_with(user, 'p1')

    def test_factory_reads_config(self):
        api = create_practice_api({
            'PRACTICE_API_URL': 'http://x/api',
            'PRACTICE_API_TIMEOUT': 7.0,
            'PRACTICE_API_MAX_RETRIES': 2,
        })
        assert api.base_url == 'http://x/api'
        assert api.timeout == 7.0
        assert api.max_retries == 2


class TestSessionOverHttp:
    def test_malformed_progress_after_accepted_does_not_lock_session(self, api, user):
        progress_bodies = [
            {'status': 'unsolved', 'attempts': 0},
            {'status': 'solved', 'attempts': 'n/a'},
        ]
        verdicts = [
            {'verdict': 'Accepted', 'feedback': 'ok', 'passed': True},
            {'verdict': 'Wrong Answer', 'feedback': 'no', 'passed': False},
        ]

        def fake_request(method, url, **kwargs):
            if '/problems/' in url:
                return _response(body=PROBLEM_PAYLOAD)
            if '/progress/' in url:
                return _response(body=progress_bodies.pop(0))
            return _response(body=verdicts.pop(0))

        async def scenario():
            session = await PracticeSession.open(
                api, user, 'p1', CodeDraftStore(MemoryStorage())
            )
            first = await session.submit()
            state_after_first = session.submissions.state
            second = await session.submit()
            return first, state_after_first, second, session

        with patch.object(api.session, 'request', side_effect=fake_request):
            first, state_after_first, second, session = asyncio.run(scenario())

        assert first.tag is VerdictTag.ACCEPTED
        assert state_after_first is SubmissionState.EVALUATED
        assert second.tag is VerdictTag.WRONG_ANSWER
        assert session.snapshot().progress.attempts == 0
