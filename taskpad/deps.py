"""Request-scoped dependencies: store construction and the authorization gate."""
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlmodel import Session

from .database import get_db
from .errors import Unauthorized
from .identity_tokens import TokenVerifier
from .stores import IdentityStore, SessionManager, TaskStore


@dataclass(frozen=True)
class CurrentUser:
    """The acting user, as resolved from the session cookie."""
    id: str


def get_identity_store(db: Session = Depends(get_db)) -> IdentityStore:
    return IdentityStore(db)


def get_task_store(db: Session = Depends(get_db)) -> TaskStore:
    return TaskStore(db)


def get_session_manager(request: Request, db: Session = Depends(get_db)) -> SessionManager:
    return SessionManager(db, ttl_seconds=request.app.state.settings.session_ttl_seconds)


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def session_token(request: Request) -> str:
    return request.cookies.get(request.app.state.settings.session_cookie_name, "")


def get_current_user(
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
) -> CurrentUser:
    """Reject the request unless its session cookie resolves to a live user.

    The returned id is the only source of the acting user for the rest of
    the request; ids in the body or query string are never consulted.
    """
    user_id = sessions.resolve(session_token(request))
    if user_id is None:
        raise Unauthorized()
    return CurrentUser(id=user_id)
