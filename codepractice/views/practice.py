"""JSON endpoints the problem page binds to."""
from __future__ import annotations

import logging
import uuid
from concurrent.futures import TimeoutError as FutureTimeoutError

from flask import Blueprint, current_app, jsonify, request, session

from codepractice.session import (
    ApiError,
    NotFound,
    SubmissionInProgress,
    TransportError,
    Unauthorized,
    UserContext,
)

logger = logging.getLogger(__name__)

practice_bp = Blueprint('practice', __name__, url_prefix='/practice')


def _registry():
    return current_app.extensions['practice_sessions']


def _user_context() -> UserContext:
    """Build the caller's context from the profile cookie and bearer token."""
    profile_id = session.get('profile_id')
    if not profile_id:
        profile_id = uuid.uuid4().hex
        session['profile_id'] = profile_id
        session.permanent = True

    token = None
    auth = request.headers.get('Authorization', '')
    if auth.lower().startswith('bearer '):
        token = auth[7:].strip() or None
    return UserContext(profile_id=profile_id, token=token)


def _snapshot(s):
    return s.snapshot().to_dict()


@practice_bp.errorhandler(NotFound)
def handle_not_found(e):
    return jsonify({'error': str(e) or 'Problem not found'}), 404


@practice_bp.errorhandler(Unauthorized)
def handle_unauthorized(e):
    return jsonify({
        'error': str(e) or 'Authentication required',
        'login_url': current_app.config.get('LOGIN_URL', '/auth/login'),
    }), 401


@practice_bp.errorhandler(SubmissionInProgress)
def handle_in_progress(e):
    return jsonify({'error': str(e)}), 409


@practice_bp.errorhandler(TransportError)
@practice_bp.errorhandler(ApiError)
def handle_backend_error(e):
    logger.error(f"Practice backend error: {e}")
    return jsonify({'error': 'Practice service unavailable', 'detail': str(e)}), 502


@practice_bp.errorhandler(FutureTimeoutError)
def handle_timeout(e):
    return jsonify({'error': 'Timed out waiting for the practice session'}), 504


@practice_bp.route('/<problem_id>')
def open_session(problem_id):
    ctx = _user_context()
    problem, snap = _registry().call(
        ctx, problem_id, lambda s: (s.problem, s.snapshot())
    )
    return jsonify({'problem': problem.to_dict(), 'session': snap.to_dict()})


@practice_bp.route('/<problem_id>/snapshot')
def get_snapshot(problem_id):
    return jsonify(_registry().call(_user_context(), problem_id, _snapshot))


@practice_bp.route('/<problem_id>/draft', methods=['PUT'])
def update_draft(problem_id):
    data = request.get_json(silent=True) or {}
    code = data.get('code')
    if not isinstance(code, str):
        return jsonify({'error': 'code must be a string'}), 400

    def _edit(s):
        s.edit(code)
        return s.snapshot()

    snap = _registry().call(_user_context(), problem_id, _edit)
    return jsonify(snap.to_dict())


@practice_bp.route('/<problem_id>/draft/reset', methods=['POST'])
def reset_draft(problem_id):
    def _reset(s):
        s.reset_code()
        return s.snapshot()

    snap = _registry().call(_user_context(), problem_id, _reset)
    return jsonify(snap.to_dict())


@practice_bp.route('/<problem_id>/hints', methods=['POST'])
def reveal_hint(problem_id):
    data = request.get_json(silent=True) or {}
    level = data.get('level')
    if not isinstance(level, int) or isinstance(level, bool):
        return jsonify({'error': 'level must be an integer'}), 400

    def _reveal(s):
        return s.reveal_hint(level), s.snapshot()

    changed, snap = _registry().call(_user_context(), problem_id, _reveal)
    return jsonify({'changed': changed, 'session': snap.to_dict()})


@practice_bp.route('/<problem_id>/submit', methods=['POST'])
def submit(problem_id):
    async def _submit(s):
        await s.submit()
        return s.snapshot()

    snap = _registry().call(_user_context(), problem_id, _submit)
    return jsonify(snap.to_dict())


@practice_bp.route('/<problem_id>/acknowledge', methods=['POST'])
def acknowledge(problem_id):
    def _ack(s):
        s.acknowledge()
        return s.snapshot()

    snap = _registry().call(_user_context(), problem_id, _ack)
    return jsonify(snap.to_dict())


@practice_bp.route('/<problem_id>/notes', methods=['PUT'])
def save_notes(problem_id):
    data = request.get_json(silent=True) or {}
    notes = data.get('notes', '')
    if not isinstance(notes, str):
        return jsonify({'error': 'notes must be a string'}), 400

    async def _save(s):
        result = await s.save_notes(notes)
        return result, s.snapshot()

    result, snap = _registry().call(_user_context(), problem_id, _save)
    return jsonify({'saved': result.ok, 'message': result.message, 'session': snap.to_dict()})


@practice_bp.route('/<problem_id>/submissions')
def recent_submissions(problem_id):
    async def _history(s):
        return await s.recent_submissions()

    records = _registry().call(_user_context(), problem_id, _history)
    return jsonify([r.to_dict() for r in records])


@practice_bp.route('/<problem_id>', methods=['DELETE'])
def close_session(problem_id):
    closed = _registry().close(_user_context(), problem_id)
    return jsonify({'closed': closed})
