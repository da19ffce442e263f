"""Exceptions raised by the practice backend client and session core."""
from __future__ import annotations


class PracticeError(Exception):
    """Base class for all practice-session failures."""


class NotFound(PracticeError):
    """The requested problem (or its progress) does not exist."""


class Unauthorized(PracticeError):
    """No valid credential was attached; the user must sign in again."""


class ApiError(PracticeError):
    """The backend answered with a non-success status.

    ``code`` is the machine-readable rejection code from the response body
    (e.g. ``TRIAL_LIMIT_REACHED``), if the backend sent one.
    """

    def __init__(self, status: int, message: str = '', code: str | None = None):
        super().__init__(message or f'HTTP {status}')
        self.status = status
        self.code = code
        self.message = message


class TransportError(PracticeError):
    """The request never produced a response (connection error, timeout)."""


class SubmissionInProgress(PracticeError):
    """A submission for this session is still waiting on the judge."""

    def __init__(self, message: str = 'Already submitting'):
        super().__init__(message)
