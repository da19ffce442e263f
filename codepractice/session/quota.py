from __future__ import annotations

import logging

from .common import Verdict, VerdictTag
from .errors import ApiError, PracticeError, TransportError, Unauthorized

logger = logging.getLogger(__name__)

TRIAL_LIMIT_CODE = 'TRIAL_LIMIT_REACHED'
HTTP_FORBIDDEN = 403

QUOTA_FEEDBACK = (
    'You have used all of your free trial submissions. Add your own grading '
    'API key in the dashboard settings to keep submitting.'
)
TRANSPORT_FEEDBACK = (
    'Failed to submit. Please check that the practice service is reachable '
    'and try again.'
)
SIGN_IN_FEEDBACK = 'Your session has expired. Please sign in again to submit.'


class QuotaTracker:
    """Classifies judge rejections; never counts remaining trials locally.

    The backend owns the trial counter. The tracker only remembers whether
    the most recent classified response reported the quota as exhausted.
    """

    def __init__(self):
        self.exhausted = False

    def note_evaluated(self):
        """The judge graded a submission, so the quota no longer blocks."""
        self.exhausted = False

    def classify(self, error: Exception) -> Verdict:
        if (
            isinstance(error, ApiError)
            and error.status == HTTP_FORBIDDEN
            and error.code == TRIAL_LIMIT_CODE
        ):
            self.exhausted = True
            return Verdict(
                tag=VerdictTag.QUOTA_EXCEEDED,
                feedback=QUOTA_FEEDBACK,
                passed=False,
                label='Trial Limit Reached',
            )

        if isinstance(error, ApiError):
            feedback = error.message or TRANSPORT_FEEDBACK
        elif isinstance(error, Unauthorized):
            feedback = SIGN_IN_FEEDBACK
        elif isinstance(error, TransportError):
            feedback = TRANSPORT_FEEDBACK
        elif isinstance(error, PracticeError):
            feedback = str(error) or TRANSPORT_FEEDBACK
        else:
            feedback = TRANSPORT_FEEDBACK
        logger.info(f"Submission rejected: {type(error).__name__}: {error}")
        return Verdict(
            tag=VerdictTag.JUDGE_ERROR,
            feedback=feedback,
            passed=False,
            label='Error',
        )
