from .backend import PracticeBackend
from .common import (
    Difficulty,
    Problem,
    Progress,
    ProgressStatus,
    SubmissionAttempt,
    SubmissionRecord,
    SubmissionState,
    TestCase,
    UserContext,
    Verdict,
    VerdictTag,
)
from .controller import PracticeSession, SessionSnapshot
from .drafts import CodeDraftStore
from .errors import (
    ApiError,
    NotFound,
    PracticeError,
    SubmissionInProgress,
    TransportError,
    Unauthorized,
)
from .progress import NotesResult, NotesStatus

__all__ = [
    'PracticeBackend',
    'Difficulty',
    'Problem',
    'Progress',
    'ProgressStatus',
    'SubmissionAttempt',
    'SubmissionRecord',
    'SubmissionState',
    'TestCase',
    'UserContext',
    'Verdict',
    'VerdictTag',
    'PracticeSession',
    'SessionSnapshot',
    'CodeDraftStore',
    'ApiError',
    'NotFound',
    'PracticeError',
    'SubmissionInProgress',
    'TransportError',
    'Unauthorized',
    'NotesResult',
    'NotesStatus',
]
