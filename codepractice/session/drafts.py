from __future__ import annotations

import logging

from .storage import DraftStorage

logger = logging.getLogger(__name__)

DRAFT_KEY_PREFIX = 'draft:'


def draft_key(problem_id: str) -> str:
    return f'{DRAFT_KEY_PREFIX}{problem_id}'


class CodeDraftStore:
    """Local cache of in-progress code, one draft per problem.

    Writes never fail toward the caller: if the backing storage raises, the
    write is logged and dropped so the editor is never blocked.
    """

    def __init__(self, storage: DraftStorage):
        self.storage = storage

    def load(self, problem_id: str, fallback: str) -> str:
        """Return the cached draft, seeding it with *fallback* if absent."""
        try:
            text = self.storage.get(draft_key(problem_id))
        except Exception as e:
            logger.warning(f"Draft read failed for {problem_id}: {e}")
            text = None
        if text is not None:
            return text
        self.set(problem_id, fallback)
        return fallback

    def set(self, problem_id: str, text: str) -> None:
        try:
            self.storage.set(draft_key(problem_id), text)
        except Exception as e:
            logger.warning(f"Dropped draft write for {problem_id}: {e}")

    def reset(self, problem_id: str, starter_code: str) -> str:
        self.set(problem_id, starter_code)
        return starter_code
