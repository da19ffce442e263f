"""
REST client for the practice platform backend.

Blocking ``requests`` calls are pushed to worker threads with
``asyncio.to_thread`` so the session loop stays responsive while a request
(in particular a slow AI judge call) is outstanding.
"""
from __future__ import annotations

import asyncio
from urllib.parse import quote

from codepractice.session.backend import PracticeBackend
from codepractice.session.common import (
    Problem,
    Progress,
    SubmissionRecord,
    UserContext,
)
from codepractice.session.errors import ApiError, NotFound

from .base import BaseApiClient


def _segment(value: str) -> str:
    return quote(str(value), safe='')


class PracticeAPI(BaseApiClient, PracticeBackend):
    # Sync variants

    def fetch_problem(self, ctx: UserContext, problem_id: str) -> Problem:
        try:
            data = self._request(ctx, 'GET', f'/problems/{_segment(problem_id)}')
        except ApiError as e:
            # Malformed ids are rejected with 400 before lookup.
            if e.status == 400:
                raise NotFound(e.message or 'Problem not found') from e
            raise
        if not isinstance(data, dict):
            raise ApiError(200, 'Unexpected problem payload')
        try:
            return Problem.from_payload(data)
        except (TypeError, ValueError, AttributeError) as e:
            raise ApiError(200, f'Malformed problem payload: {e}') from e

    def fetch_progress(self, ctx: UserContext, problem_id: str) -> Progress:
        data = self._request(ctx, 'GET', f'/progress/{_segment(problem_id)}')
        if not isinstance(data, dict):
            raise ApiError(200, 'Unexpected progress payload')
        try:
            return Progress.from_payload(problem_id, data)
        except (TypeError, ValueError, AttributeError) as e:
            raise ApiError(200, f'Malformed progress payload: {e}') from e

    def put_notes(self, ctx: UserContext, problem_id: str, notes: str) -> None:
        self._request(
            ctx, 'PUT', f'/progress/{_segment(problem_id)}/notes', json={'notes': notes}
        )

    def post_submission(
        self, ctx: UserContext, problem_id: str, code: str, language: str
    ) -> dict:
        data = self._request(
            ctx,
            'POST',
            '/submit',
            json={'problemId': problem_id, 'code': code, 'language': language},
        )
        if not isinstance(data, dict):
            raise ApiError(200, 'Unexpected verdict payload')
        return data

    def fetch_submissions(self, ctx: UserContext, problem_id: str) -> list[SubmissionRecord]:
        data = self._request(ctx, 'GET', f'/submissions/{_segment(problem_id)}')
        if not isinstance(data, list):
            return []
        try:
            return [SubmissionRecord.from_payload(item) for item in data]
        except (TypeError, ValueError, AttributeError) as e:
            raise ApiError(200, f'Malformed submission history: {e}') from e

    # PracticeBackend

    async def get_problem(self, ctx, problem_id):
        return await asyncio.to_thread(self.fetch_problem, ctx, problem_id)

    async def get_progress(self, ctx, problem_id):
        return await asyncio.to_thread(self.fetch_progress, ctx, problem_id)

    async def save_notes(self, ctx, problem_id, notes):
        await asyncio.to_thread(self.put_notes, ctx, problem_id, notes)

    async def submit(self, ctx, problem_id, code, language):
        return await asyncio.to_thread(
            self.post_submission, ctx, problem_id, code, language
        )

    async def list_submissions(self, ctx, problem_id):
        return await asyncio.to_thread(self.fetch_submissions, ctx, problem_id)
