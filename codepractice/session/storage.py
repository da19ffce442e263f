"""Key-value backends for persisted code drafts.

Every backend implements the same two-call contract (``get`` / ``set``) and is
scoped to one browser profile. The draft store never deletes keys.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class DraftStorage(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, text: str) -> None:
        ...


class MemoryStorage(DraftStorage):
    def __init__(self, initial: dict | None = None):
        self._data = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, text):
        self._data[key] = text


class JsonFileStorage(DraftStorage):
    """Stores one profile's drafts in a single JSON file."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError:
                logger.warning(f"Ignoring corrupt draft file {self.path}")
                return {}
        return data if isinstance(data, dict) else {}

    def get(self, key):
        with self._lock:
            value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key, text):
        with self._lock:
            data = self._read()
            data[key] = text
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            tmp_path = f'{self.path}.tmp'
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)


class SqlDraftStorage(DraftStorage):
    """Drafts kept in the ``code_draft`` table, one row per profile and key.

    Calls may come from the session loop thread, so each one pushes its own
    application context.
    """

    def __init__(self, app, profile_id: str):
        self.app = app
        self.profile_id = profile_id

    def get(self, key):
        from codepractice.models import CodeDraft

        with self.app.app_context():
            return CodeDraft.get(self.profile_id, key)

    def set(self, key, text):
        from codepractice.extensions import db
        from codepractice.models import CodeDraft

        with self.app.app_context():
            try:
                CodeDraft.set(self.profile_id, key, text)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
