"""Shared test fixtures for the practice session test suite."""

import asyncio
from dataclasses import replace

import pytest

from codepractice import create_app
from codepractice.extensions import db as _db
from codepractice.session import (
    CodeDraftStore,
    NotFound,
    PracticeBackend,
    Problem,
    Progress,
    ProgressStatus,
    SubmissionRecord,
    Unauthorized,
    UserContext,
)
from codepractice.session.storage import MemoryStorage


PROBLEM_PAYLOAD = {
    'id': 'p1',
    'title': 'Two Sum',
    'slug': 'two-sum',
    'difficulty': 'Easy',
    'topic': 'Arrays',
    'description': 'Find two numbers that add up to target.',
    'starterCode': '// TODO',
    'testCases': [
        {'input': '[2,7,11,15], 9', 'expected': '[0,1]'},
        {'input': '[3,2,4], 6', 'expected': '[1,2]'},
    ],
    'hintBrute': 'Try every pair.',
    'hintOptimized': 'Use a hash map of seen values.',
    'bestSolution': 'int main() { return 0; }',
}


class FakeBackend(PracticeBackend):
    """In-memory stand-in for the platform backend.

    ``submit_responses`` is a queue; each entry is a verdict dict, an
    exception to raise, or an ``asyncio.Future`` resolving to either.
    Judge-side progress counters are updated the way the real backend does.
    """

    def __init__(self, problems=None):
        self.problems = {p.id: p for p in (problems or [])}
        self.progress = {}
        self.submit_responses = []
        self.calls = []
        self.notes_error = None
        self.progress_error = None
        self.history = []

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)

    async def get_problem(self, ctx, problem_id):
        self.calls.append(('get_problem', problem_id))
        await asyncio.sleep(0)
        if problem_id not in self.problems:
            raise NotFound('Problem not found')
        return self.problems[problem_id]

    async def get_progress(self, ctx, problem_id):
        self.calls.append(('get_progress', problem_id))
        await asyncio.sleep(0)
        if not ctx.token:
            raise Unauthorized('Authentication required')
        if self.progress_error is not None:
            raise self.progress_error
        return self.progress.get(problem_id, Progress(problem_id=problem_id))

    async def save_notes(self, ctx, problem_id, notes):
        self.calls.append(('save_notes', problem_id, notes))
        await asyncio.sleep(0)
        if self.notes_error is not None:
            raise self.notes_error
        current = self.progress.get(problem_id, Progress(problem_id=problem_id))
        self.progress[problem_id] = replace(current, notes=notes)

    async def submit(self, ctx, problem_id, code, language):
        self.calls.append(('submit', problem_id, code, language))
        response = self.submit_responses.pop(0)
        if isinstance(response, asyncio.Future):
            response = await response
        else:
            await asyncio.sleep(0)
        if isinstance(response, Exception):
            raise response

        current = self.progress.get(problem_id, Progress(problem_id=problem_id))
        if response.get('passed'):
            current = replace(
                current,
                status=ProgressStatus.SOLVED,
                attempts=current.attempts + 1,
                successful_submissions=current.successful_submissions + 1,
            )
        else:
            status = current.status
            if status is ProgressStatus.UNATTEMPTED:
                status = ProgressStatus.ATTEMPTED
            current = replace(current, status=status, attempts=current.attempts + 1)
        self.progress[problem_id] = current
        return response

    async def list_submissions(self, ctx, problem_id):
        self.calls.append(('list_submissions', problem_id))
        return [SubmissionRecord.from_payload(item) for item in self.history]


@pytest.fixture()
def problem():
    return Problem.from_payload(PROBLEM_PAYLOAD)


@pytest.fixture()
def backend(problem):
    return FakeBackend(problems=[problem])


@pytest.fixture()
def ctx():
    return UserContext(profile_id='profile-1', token='token-abc')


@pytest.fixture()
def storage():
    return MemoryStorage()


@pytest.fixture()
def drafts(storage):
    return CodeDraftStore(storage)


@pytest.fixture()
def app(backend):
    """Create a Flask application configured for testing, backed by FakeBackend."""
    application = create_app('testing')
    registry = application.extensions['practice_sessions']
    registry.backend = backend
    yield application
    registry.shutdown()


@pytest.fixture()
def db(app):
    """Provide a clean database for each test."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""
    return app.test_client()


@pytest.fixture()
def auth_headers():
    return {'Authorization': 'Bearer token-abc'}
