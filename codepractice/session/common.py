from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

DEFAULT_LANGUAGE = 'cpp'


class Difficulty(str, Enum):
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'

    @classmethod
    def parse(cls, raw) -> 'Difficulty':
        """Accept the backend's capitalised labels ("Easy", "Hard", ...)."""
        try:
            return cls(str(raw or '').strip().lower())
        except ValueError:
            return cls.MEDIUM


class ProgressStatus(str, Enum):
    UNATTEMPTED = 'unattempted'
    ATTEMPTED = 'attempted'
    SOLVED = 'solved'

    @classmethod
    def parse(cls, raw) -> 'ProgressStatus':
        # The backend reports untouched problems as "unsolved".
        value = str(raw or '').strip().lower()
        if value in ('', 'unsolved', 'not_started'):
            return cls.UNATTEMPTED
        try:
            return cls(value)
        except ValueError:
            return cls.UNATTEMPTED

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [
    ProgressStatus.UNATTEMPTED,
    ProgressStatus.ATTEMPTED,
    ProgressStatus.SOLVED,
]


class VerdictTag(str, Enum):
    ACCEPTED = 'Accepted'
    WRONG_ANSWER = 'WrongAnswer'
    QUOTA_EXCEEDED = 'QuotaExceeded'
    JUDGE_ERROR = 'JudgeError'


class SubmissionState(str, Enum):
    IDLE = 'idle'
    SUBMITTING = 'submitting'
    EVALUATED = 'evaluated'
    REJECTED = 'rejected'


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(raw) -> datetime | None:
    if not raw or not isinstance(raw, str):
        return None
    try:
        return datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except ValueError:
        return None


@dataclass(frozen=True)
class UserContext:
    """Credential and browser-profile scope passed to every backend call."""

    profile_id: str
    token: str | None = None

    @property
    def authenticated(self) -> bool:
        return bool(self.token)


@dataclass(frozen=True)
class TestCase:
    __test__ = False

    input: str
    expected: str


@dataclass(frozen=True)
class Problem:
    id: str
    title: str
    difficulty: Difficulty
    topic: str = ''
    description: str = ''
    starter_code: str = ''
    test_cases: tuple[TestCase, ...] = ()
    hint_brute: str = ''
    hint_optimized: str = ''
    best_solution: str = ''
    slug: str = ''

    @classmethod
    def from_payload(cls, data: dict) -> 'Problem':
        return cls(
            id=str(data.get('id', '')),
            title=data.get('title') or '',
            slug=data.get('slug') or '',
            difficulty=Difficulty.parse(data.get('difficulty')),
            topic=data.get('topic') or '',
            description=data.get('description') or '',
            starter_code=data.get('starterCode') or '',
            test_cases=tuple(
                TestCase(input=tc.get('input', ''), expected=tc.get('expected', ''))
                for tc in data.get('testCases') or []
            ),
            hint_brute=data.get('hintBrute') or '',
            hint_optimized=data.get('hintOptimized') or '',
            best_solution=data.get('bestSolution') or '',
        )

    def to_dict(self) -> dict:
        """Client view of the problem.

        Hints are left out and only reach the client through the session
        snapshot, one level at a time. The reference solution is always
        included: the problem page shows it on its own tab, independent of
        hint disclosure.
        """
        return {
            'id': self.id,
            'title': self.title,
            'slug': self.slug,
            'difficulty': self.difficulty.value,
            'topic': self.topic,
            'description': self.description,
            'starter_code': self.starter_code,
            'test_cases': [
                {'input': tc.input, 'expected': tc.expected}
                for tc in self.test_cases
            ],
            'best_solution': self.best_solution,
        }


@dataclass(frozen=True)
class Progress:
    problem_id: str
    status: ProgressStatus = ProgressStatus.UNATTEMPTED
    attempts: int = 0
    successful_submissions: int = 0
    notes: str = ''
    updated_at: datetime | None = None
    last_attempted_at: datetime | None = None

    @classmethod
    def from_payload(cls, problem_id: str, data: dict) -> 'Progress':
        return cls(
            problem_id=str(data.get('problemId') or problem_id),
            status=ProgressStatus.parse(data.get('status')),
            attempts=int(data.get('attempts') or 0),
            successful_submissions=int(data.get('successfulSubmissions') or 0),
            notes=data.get('notes') or '',
            updated_at=_parse_datetime(data.get('updatedAt')),
            last_attempted_at=_parse_datetime(data.get('lastAttemptedAt')),
        )

    @property
    def solved(self) -> bool:
        return self.status is ProgressStatus.SOLVED

    def to_dict(self) -> dict:
        return {
            'problem_id': self.problem_id,
            'status': self.status.value,
            'attempts': self.attempts,
            'successful_submissions': self.successful_submissions,
            'notes': self.notes,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class SubmissionAttempt:
    seq: int
    problem_id: str
    code: str
    language: str = DEFAULT_LANGUAGE
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class Verdict:
    tag: VerdictTag
    feedback: str
    passed: bool
    label: str = ''

    @classmethod
    def from_judge(cls, data: dict) -> 'Verdict':
        """Build a verdict from a successful judge response body."""
        passed = bool(data.get('passed'))
        label = data.get('verdict') or ('Accepted' if passed else 'Wrong Answer')
        return cls(
            tag=VerdictTag.ACCEPTED if passed else VerdictTag.WRONG_ANSWER,
            feedback=data.get('feedback') or '',
            passed=passed,
            label=label,
        )

    def to_dict(self) -> dict:
        return {
            'tag': self.tag.value,
            'label': self.label or self.tag.value,
            'feedback': self.feedback,
            'passed': self.passed,
        }


@dataclass(frozen=True)
class SubmissionRecord:
    id: str
    problem_id: str
    code: str
    language: str
    verdict: str
    feedback: str = ''
    created_at: datetime | None = None

    @classmethod
    def from_payload(cls, data: dict) -> 'SubmissionRecord':
        return cls(
            id=str(data.get('id', '')),
            problem_id=str(data.get('problemId', '')),
            code=data.get('code') or '',
            language=data.get('language') or DEFAULT_LANGUAGE,
            verdict=data.get('verdict') or '',
            feedback=data.get('feedback') or '',
            created_at=_parse_datetime(data.get('createdAt')),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'problem_id': self.problem_id,
            'language': self.language,
            'verdict': self.verdict,
            'feedback': self.feedback,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
