from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum

from .backend import PracticeBackend
from .common import Progress, ProgressStatus, UserContext
from .errors import PracticeError

logger = logging.getLogger(__name__)


class NotesStatus(str, Enum):
    UNSAVED = 'unsaved'
    SAVED = 'saved'
    FAILED = 'failed'


@dataclass(frozen=True)
class NotesResult:
    status: NotesStatus
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.status is NotesStatus.SAVED


class ProgressReconciler:
    """Cached copy of the server's progress for one problem.

    ``refresh`` replaces the cache wholesale with what the server returns;
    the only local changes are forward-only status bumps and notes that the
    server has just acknowledged.
    """

    def __init__(self, backend: PracticeBackend, ctx: UserContext, progress: Progress):
        self.backend = backend
        self.ctx = ctx
        self.progress = progress
        self.notes_status = NotesResult(NotesStatus.UNSAVED)

    async def fetch(self, problem_id: str) -> Progress:
        """Authoritative read without touching the cache."""
        return await self.backend.get_progress(self.ctx, problem_id)

    def replace(self, progress: Progress) -> Progress:
        self.progress = progress
        return progress

    async def refresh(self, problem_id: str) -> Progress:
        return self.replace(await self.fetch(problem_id))

    def mark_attempted(self):
        """Optimistically advance an untouched problem to ``attempted``."""
        if self.progress.status.rank < ProgressStatus.ATTEMPTED.rank:
            self.progress = replace(self.progress, status=ProgressStatus.ATTEMPTED)

    async def save_notes(self, problem_id: str, text: str) -> NotesResult:
        """Persist notes once; failures are returned, not raised or retried."""
        try:
            await self.backend.save_notes(self.ctx, problem_id, text)
        except PracticeError as e:
            logger.warning(f"Failed to save notes for {problem_id}: {e}")
            self.notes_status = NotesResult(NotesStatus.FAILED, str(e) or 'Notes not saved')
            return self.notes_status

        self.progress = replace(self.progress, notes=text)
        self.notes_status = NotesResult(NotesStatus.SAVED)
        return self.notes_status
