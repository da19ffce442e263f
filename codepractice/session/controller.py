"""
Practice session controller.

Composes the draft store, hint disclosure, quota tracker, submission manager
and progress reconciler for one user working on one problem. All methods are
meant to run on a single event loop; state only changes between awaits, so a
snapshot taken from the loop is always consistent.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .backend import PracticeBackend
from .common import (
    DEFAULT_LANGUAGE,
    Problem,
    Progress,
    SubmissionRecord,
    SubmissionState,
    UserContext,
    Verdict,
)
from .drafts import CodeDraftStore
from .hints import HintDisclosure
from .progress import NotesResult, ProgressReconciler
from .quota import QuotaTracker
from .submission import SubmissionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of a session for the presentation layer."""

    problem_id: str
    code: str
    hint_level: int
    hints: tuple[str, ...]
    submission_state: SubmissionState
    verdict: Verdict | None
    quota_exhausted: bool
    progress: Progress
    notes_status: NotesResult
    closed: bool = False

    def to_dict(self) -> dict:
        return {
            'problem_id': self.problem_id,
            'code': self.code,
            'hint_level': self.hint_level,
            'hints': list(self.hints),
            'submission_state': self.submission_state.value,
            'verdict': self.verdict.to_dict() if self.verdict else None,
            'quota_exhausted': self.quota_exhausted,
            'progress': self.progress.to_dict(),
            'notes_status': {
                'status': self.notes_status.status.value,
                'message': self.notes_status.message,
            },
            'closed': self.closed,
        }


class PracticeSession:
    def __init__(
        self,
        backend: PracticeBackend,
        ctx: UserContext,
        problem: Problem,
        progress: Progress,
        drafts: CodeDraftStore,
        language: str = DEFAULT_LANGUAGE,
    ):
        self.backend = backend
        self.ctx = ctx
        self.problem = problem
        self.drafts = drafts
        self.hints = HintDisclosure()
        self.quota = QuotaTracker()
        self.progress = ProgressReconciler(backend, ctx, progress)
        self.submissions = SubmissionManager(
            backend, ctx, problem.id, self.progress, self.quota, language=language,
        )
        self.code = drafts.load(problem.id, problem.starter_code)
        self.closed = False

    @classmethod
    async def open(
        cls,
        backend: PracticeBackend,
        ctx: UserContext,
        problem_id: str,
        drafts: CodeDraftStore,
        language: str = DEFAULT_LANGUAGE,
    ) -> 'PracticeSession':
        """Load problem and progress together and build a ready session.

        If either request fails the error propagates and no session is
        created.
        """
        problem, progress = await asyncio.gather(
            backend.get_problem(ctx, problem_id),
            backend.get_progress(ctx, problem_id),
        )
        logger.info(f"Opened practice session for {problem_id} (profile {ctx.profile_id})")
        return cls(backend, ctx, problem, progress, drafts, language=language)

    @property
    def problem_id(self) -> str:
        return self.problem.id

    def edit(self, code: str):
        self.code = code
        self.drafts.set(self.problem_id, code)

    def reset_code(self) -> str:
        self.code = self.drafts.reset(self.problem_id, self.problem.starter_code)
        return self.code

    def reveal_hint(self, level: int) -> bool:
        return self.hints.reveal(level)

    async def submit(self) -> Verdict | None:
        # Later edits must not change what was sent.
        return await self.submissions.submit(self.code)

    def acknowledge(self):
        self.submissions.acknowledge()

    async def save_notes(self, text: str) -> NotesResult:
        return await self.progress.save_notes(self.problem_id, text)

    async def refresh_progress(self) -> Progress:
        return await self.progress.refresh(self.problem_id)

    async def recent_submissions(self) -> list[SubmissionRecord]:
        return await self.backend.list_submissions(self.ctx, self.problem_id)

    def close(self):
        self.submissions.abandon()
        self.closed = True
        logger.info(f"Closed practice session for {self.problem_id}")

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            problem_id=self.problem_id,
            code=self.code,
            hint_level=self.hints.level,
            hints=tuple(self.hints.visible_hints(self.problem)),
            submission_state=self.submissions.state,
            verdict=self.submissions.verdict,
            quota_exhausted=self.quota.exhausted,
            progress=self.progress.progress,
            notes_status=self.progress.notes_status,
            closed=self.closed,
        )
