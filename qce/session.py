"""
Current-actor session context.

The signed Flask session is the single source of truth for who is making a
request; routes read it through current_actor() only.
"""
import logging
import time
from dataclasses import asdict, dataclass
from functools import wraps
from typing import Optional

from flask import jsonify, session

from config import SESSION_TIMEOUT_MINUTES

logger = logging.getLogger(__name__)

SESSION_KEY = 'actor'
LAST_SEEN_KEY = 'last_seen'


@dataclass(frozen=True)
class SessionContext:
    user_id: int
    role: str
    full_name: str = ''
    email: str = ''
    college_id: Optional[int] = None
    department_id: Optional[int] = None
    faculty_id: Optional[int] = None
    student_id: Optional[int] = None

    @classmethod
    def from_user(cls, user):
        return cls(
            user_id=user['id'],
            role=user['role'],
            full_name=user['full_name'],
            email=user['email'],
            college_id=user.get('college_id'),
            department_id=user.get('department_id'),
            faculty_id=user.get('faculty_id'),
            student_id=user.get('student_id'),
        )

    def to_dict(self):
        return asdict(self)


def start_session(actor: SessionContext):
    session.clear()
    session[SESSION_KEY] = actor.to_dict()
    session[LAST_SEEN_KEY] = time.time()
    session.permanent = True


def end_session():
    session.clear()


def _expired():
    last_seen = session.get(LAST_SEEN_KEY)
    if last_seen is None:
        return True
    return time.time() - last_seen > SESSION_TIMEOUT_MINUTES * 60


def current_actor() -> Optional[SessionContext]:
    """The logged-in actor, or None. An idle session is cleared."""
    data = session.get(SESSION_KEY)
    if not data:
        return None
    if _expired():
        logger.info(f"Session expired for user {data.get('user_id')}")
        session.clear()
        return None
    session[LAST_SEEN_KEY] = time.time()
    return SessionContext(**data)


def login_required(*roles):
    """Require a live session, and one of `roles` when any are given."""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            actor = current_actor()
            if actor is None:
                return jsonify({
                    'success': False,
                    'message': 'Please log in to continue'
                }), 401
            if roles and actor.role not in roles:
                logger.warning(f"User {actor.user_id} ({actor.role}) denied access to {view.__name__}")
                return jsonify({
                    'success': False,
                    'message': 'You do not have permission to access this resource'
                }), 403
            return view(actor, *args, **kwargs)
        return wrapped
    return decorator
