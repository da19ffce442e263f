"""
Collaborator interface consumed by the session core.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from .common import Problem, Progress, SubmissionRecord, UserContext


class PracticeBackend(ABC):
    """Async operations the session core needs from the platform backend.

    Every call takes the caller's :class:`UserContext` explicitly. Failures
    are raised as :mod:`codepractice.session.errors` exceptions.
    """

    @abstractmethod
    async def get_problem(self, ctx: UserContext, problem_id: str) -> Problem:
        """Fetch a problem definition. Raises ``NotFound`` for unknown ids."""
        ...

    @abstractmethod
    async def get_progress(self, ctx: UserContext, problem_id: str) -> Progress:
        """Fetch the user's progress. Raises ``Unauthorized`` without a credential."""
        ...

    @abstractmethod
    async def save_notes(self, ctx: UserContext, problem_id: str, notes: str) -> None:
        ...

    @abstractmethod
    async def submit(
        self, ctx: UserContext, problem_id: str, code: str, language: str
    ) -> dict:
        """Send code to the judge and return the raw verdict body.

        Rejections raise ``ApiError`` carrying the HTTP status and the
        machine-readable code from the response.
        """
        ...

    async def list_submissions(
        self, ctx: UserContext, problem_id: str
    ) -> list[SubmissionRecord]:
        return []
