"""Hosts practice sessions on one background event loop.

Flask serves requests on several threads, but every session must only ever be
touched from a single loop. Request threads submit coroutines to the loop
thread and wait for the result, so overlapping requests for the same session
interleave cooperatively instead of racing.
"""
from __future__ import annotations

import asyncio
import logging
import os
import re
import threading
import time

from codepractice.session import CodeDraftStore, PracticeSession, UserContext
from codepractice.session.common import DEFAULT_LANGUAGE
from codepractice.session.storage import (
    JsonFileStorage,
    MemoryStorage,
    SqlDraftStorage,
)

logger = logging.getLogger(__name__)

_SAFE_NAME_RE = re.compile(r'[^A-Za-z0-9_.-]')


def make_storage_factory(app):
    """Return ``profile_id -> DraftStorage`` for the configured backend."""
    kind = app.config.get('DRAFT_STORAGE', 'sql')

    if kind == 'memory':
        stores = {}
        lock = threading.Lock()

        def memory_factory(profile_id):
            with lock:
                if profile_id not in stores:
                    stores[profile_id] = MemoryStorage()
                return stores[profile_id]

        return memory_factory

    if kind == 'file':
        base_dir = app.config.get('DRAFT_STORAGE_PATH') or os.path.join(
            app.instance_path, 'drafts'
        )

        def file_factory(profile_id):
            name = _SAFE_NAME_RE.sub('_', profile_id)
            return JsonFileStorage(os.path.join(base_dir, f'{name}.json'))

        return file_factory

    if kind != 'sql':
        logger.warning(f"Unknown DRAFT_STORAGE {kind!r}, falling back to sql")

    def sql_factory(profile_id):
        return SqlDraftStorage(app, profile_id)

    return sql_factory


class SessionRegistry:
    """Open practice sessions keyed by (profile id, problem id)."""

    def __init__(
        self,
        backend,
        storage_factory,
        language: str = DEFAULT_LANGUAGE,
        call_timeout: float = 120.0,
        idle_timeout: float = 1800.0,
        max_sessions: int = 1000,
    ):
        self.backend = backend
        self.storage_factory = storage_factory
        self.language = language
        self.call_timeout = call_timeout
        self.idle_timeout = idle_timeout
        self.max_sessions = max_sessions
        self._sessions: dict[tuple[str, str], PracticeSession] = {}
        self._open_locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._last_used: dict[tuple[str, str], float] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()

    # Loop management

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._start_lock:
            if self._loop is None or not self._thread.is_alive():
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=self._run_loop, args=(loop,),
                    name='practice-session-loop', daemon=True,
                )
                thread.start()
                self._loop, self._thread = loop, thread
                logger.info("Started practice session loop")
            return self._loop

    @staticmethod
    def _run_loop(loop):
        asyncio.set_event_loop(loop)
        loop.run_forever()

    def run(self, coro):
        """Run *coro* on the session loop and block until it finishes."""
        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        return future.result(timeout=self.call_timeout)

    def shutdown(self):
        with self._start_lock:
            if self._loop is None:
                return
            for session in self._sessions.values():
                self._loop.call_soon_threadsafe(session.close)
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)
            self._loop.close()
            self._loop = None
            self._thread = None
            self._sessions.clear()
            self._open_locks.clear()
            self._last_used.clear()

    # Session access (coroutines, run on the loop)

    async def get_session(self, ctx: UserContext, problem_id: str) -> PracticeSession:
        """Return the live session for this profile and problem, opening one if needed.

        A session opened under a different credential is replaced, since
        every backend call it makes carries the credential it was built with.
        """
        key = (ctx.profile_id, problem_id)
        self._evict(keep=key)
        lock = self._open_locks.setdefault(key, asyncio.Lock())
        try:
            async with lock:
                session = self._sessions.get(key)
                if session is not None and not session.closed and session.ctx == ctx:
                    self._touch(key)
                    return session
                if session is not None:
                    session.close()
                    del self._sessions[key]

                drafts = CodeDraftStore(self.storage_factory(ctx.profile_id))
                session = await PracticeSession.open(
                    self.backend, ctx, problem_id, drafts, language=self.language,
                )
                self._sessions[key] = session
                self._touch(key)
                return session
        finally:
            if key not in self._sessions:
                self._last_used.pop(key, None)
                self._release_lock(key)

    async def close_session(self, ctx: UserContext, problem_id: str) -> bool:
        return self._drop((ctx.profile_id, problem_id))

    # Eviction

    def _touch(self, key):
        self._last_used[key] = time.monotonic()

    def _release_lock(self, key):
        lock = self._open_locks.get(key)
        if lock is not None and not lock.locked():
            del self._open_locks[key]

    def _drop(self, key) -> bool:
        session = self._sessions.pop(key, None)
        self._last_used.pop(key, None)
        self._release_lock(key)
        if session is None:
            return False
        session.close()
        return True

    def _evict(self, keep=None):
        """Close sessions idle past ``idle_timeout``, then the least recently
        used ones while more than ``max_sessions`` are open."""
        now = time.monotonic()
        if self.idle_timeout:
            for key, last in list(self._last_used.items()):
                if key != keep and now - last > self.idle_timeout:
                    logger.info(f"Evicting idle practice session {key}")
                    self._drop(key)

        if not self.max_sessions:
            return
        # Leave room for *keep* if it still has to be opened.
        limit = self.max_sessions if keep in self._sessions else self.max_sessions - 1
        excess = len(self._sessions) - limit
        if excess > 0:
            candidates = sorted(
                (k for k in self._sessions if k != keep),
                key=lambda k: self._last_used.get(k, 0.0),
            )
            for key in candidates[:excess]:
                logger.info(f"Evicting practice session {key} (limit {self.max_sessions})")
                self._drop(key)

    def call(self, ctx: UserContext, problem_id: str, action):
        """Run ``action(session)`` on the loop and return its result.

        *action* may be a plain function or a coroutine function.
        """
        async def _invoke():
            session = await self.get_session(ctx, problem_id)
            result = action(session)
            if asyncio.iscoroutine(result):
                result = await result
            if self._sessions.get((ctx.profile_id, problem_id)) is session:
                self._touch((ctx.profile_id, problem_id))
            return result

        return self.run(_invoke())

    def close(self, ctx: UserContext, problem_id: str) -> bool:
        return self.run(self.close_session(ctx, problem_id))

    def __len__(self):
        return len(self._sessions)
