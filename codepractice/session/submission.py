from __future__ import annotations

import logging

from .backend import PracticeBackend
from .common import (
    DEFAULT_LANGUAGE,
    SubmissionAttempt,
    SubmissionState,
    UserContext,
    Verdict,
)
from .errors import ApiError, PracticeError, SubmissionInProgress
from .progress import ProgressReconciler
from .quota import QuotaTracker

logger = logging.getLogger(__name__)


class SubmissionManager:
    """Drives one submission at a time through the judge.

    States: ``IDLE -> SUBMITTING -> EVALUATED | REJECTED``. A terminal state
    keeps its verdict until the next ``submit`` (or ``acknowledge``) clears it.

    Each attempt is stamped with an increasing sequence number. Results are
    applied only if their attempt is still the current one, so a response
    that arrives after ``abandon`` (or after a newer attempt started) is
    dropped instead of overwriting newer state.
    """

    def __init__(
        self,
        backend: PracticeBackend,
        ctx: UserContext,
        problem_id: str,
        reconciler: ProgressReconciler,
        quota: QuotaTracker,
        language: str = DEFAULT_LANGUAGE,
    ):
        self.backend = backend
        self.ctx = ctx
        self.problem_id = problem_id
        self.reconciler = reconciler
        self.quota = quota
        self.language = language
        self.state = SubmissionState.IDLE
        self.verdict: Verdict | None = None
        self._seq = 0
        self._current: SubmissionAttempt | None = None

    @property
    def current_attempt(self) -> SubmissionAttempt | None:
        return self._current

    def _is_current(self, attempt: SubmissionAttempt) -> bool:
        return self._current is not None and self._current.seq == attempt.seq

    def _settle(self, state: SubmissionState, verdict: Verdict):
        self.state = state
        self.verdict = verdict

    async def submit(self, code: str) -> Verdict | None:
        """Submit *code* and return its verdict.

        Returns None when the attempt was superseded while waiting on the
        judge. Raises ``SubmissionInProgress`` without contacting the judge
        if an attempt is already in flight.
        """
        if self.state is SubmissionState.SUBMITTING:
            raise SubmissionInProgress()

        self._seq += 1
        attempt = SubmissionAttempt(
            seq=self._seq,
            problem_id=self.problem_id,
            code=code,
            language=self.language,
        )
        self._current = attempt
        self.state = SubmissionState.SUBMITTING
        self.verdict = None
        logger.debug(f"Submitting attempt #{attempt.seq} for {self.problem_id}")

        try:
            body = await self.backend.submit(
                self.ctx, attempt.problem_id, attempt.code, attempt.language
            )
        except Exception as e:
            if not isinstance(e, PracticeError):
                logger.exception(f"Judge call for attempt #{attempt.seq} failed unexpectedly")
            if not self._is_current(attempt):
                logger.debug(f"Discarding stale rejection for attempt #{attempt.seq}")
                return None
            verdict = self.quota.classify(e)
            self._settle(SubmissionState.REJECTED, verdict)
            return verdict

        if not self._is_current(attempt):
            logger.debug(f"Discarding stale verdict for attempt #{attempt.seq}")
            return None

        try:
            verdict = Verdict.from_judge(body)
        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Malformed verdict for attempt #{attempt.seq}: {e}")
            verdict = self.quota.classify(ApiError(200, "Malformed verdict from judge"))
            self._settle(SubmissionState.REJECTED, verdict)
            return verdict
        self.quota.note_evaluated()

        if verdict.passed:
            # Counters and solved status are derived by the judge side.
            progress = None
            try:
                progress = await self.reconciler.fetch(self.problem_id)
            except Exception as e:
                logger.warning(
                    f"Progress refresh after accepted attempt #{attempt.seq} failed: {e}"
                )
            if not self._is_current(attempt):
                logger.debug(f"Discarding stale progress for attempt #{attempt.seq}")
                return None
            if progress is not None:
                self.reconciler.replace(progress)
        else:
            self.reconciler.mark_attempted()

        self._settle(SubmissionState.EVALUATED, verdict)
        return verdict

    def acknowledge(self):
        """Return a settled submission to IDLE, dropping its verdict."""
        if self.state in (SubmissionState.EVALUATED, SubmissionState.REJECTED):
            self.state = SubmissionState.IDLE
            self.verdict = None

    def abandon(self):
        """Forget any in-flight attempt; its result is ignored on arrival."""
        if self._current is not None and self.state is SubmissionState.SUBMITTING:
            logger.info(f"Abandoning attempt #{self._current.seq} for {self.problem_id}")
        self._seq += 1
        self._current = None
        self.state = SubmissionState.IDLE
        self.verdict = None
