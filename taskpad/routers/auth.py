import logging

from fastapi import APIRouter, Depends, Request, Response, status

from ..config import Settings
from ..deps import (
    CurrentUser,
    get_current_user,
    get_identity_store,
    get_session_manager,
    get_token_verifier,
    session_token,
)
from ..errors import InvalidCredentials, MalformedHash, Unauthorized, ValidationError
from ..identity_tokens import TokenVerifier
from ..models import User
from ..schemas.user import (
    ExternalAuthRequest,
    MessageResponse,
    User as UserSchema,
    UserCreate,
    UserLogin,
    UserResponse,
)
from ..security import DUMMY_PASSWORD_HASH, hash_password, verify_password
from ..stores import IdentityStore, SessionManager

router = APIRouter()
logger = logging.getLogger(__name__)


def _set_session_cookie(response: Response, settings: Settings, sid: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sid,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.session_cookie_samesite,
        path="/",
        max_age=settings.session_ttl_seconds,
    )


def _start_session(request: Request, response: Response, sessions: SessionManager, user: User) -> UserResponse:
    # Any session presented with the request is replaced, never reused.
    sessions.destroy(session_token(request))
    sid = sessions.issue(user.id)
    _set_session_cookie(response, request.app.state.settings, sid)
    return UserResponse(user=UserSchema.model_validate(user))


def authenticate_user(identities: IdentityStore, email: str, password: str) -> User:
    """Check an email/password pair, failing uniformly with InvalidCredentials."""
    user = identities.find_by_email(email)
    if user is None or not user.has_password:
        # Same amount of work as a real check so timing does not leak existence.
        verify_password(password, DUMMY_PASSWORD_HASH)
        raise InvalidCredentials()
    try:
        valid = verify_password(password, user.password_hash)
    except MalformedHash:
        logger.error("User %s has a malformed password hash", user.id)
        raise InvalidCredentials()
    if not valid:
        raise InvalidCredentials()
    return user


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: UserCreate,
    request: Request,
    response: Response,
    identities: IdentityStore = Depends(get_identity_store),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Create a local account and sign it in."""
    name = body.name.strip()
    email = body.email.strip()
    if not name or not email or not body.password:
        raise ValidationError("Name, email, and password are required")

    user = identities.create(name=name, email=email, password_hash=hash_password(body.password))
    logger.info("Registration successful for user %s", user.id)
    return _start_session(request, response, sessions, user)


@router.post("/login", response_model=UserResponse)
def login(
    body: UserLogin,
    request: Request,
    response: Response,
    identities: IdentityStore = Depends(get_identity_store),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Sign in with email and password."""
    try:
        user = authenticate_user(identities, body.email, body.password)
    except InvalidCredentials:
        logger.info("Login failed")
        raise
    logger.info("Login successful for user %s", user.id)
    return _start_session(request, response, sessions, user)


@router.post("/auth/external", response_model=UserResponse)
def external_login(
    body: ExternalAuthRequest,
    request: Request,
    response: Response,
    identities: IdentityStore = Depends(get_identity_store),
    sessions: SessionManager = Depends(get_session_manager),
    verifier: TokenVerifier = Depends(get_token_verifier),
):
    """Exchange a provider-issued identity token for a session."""
    token = (body.token or "").strip()
    if not token:
        raise ValidationError("Token is required")

    identity = verifier.verify(token)
    user = identities.link_or_create_external(
        email=identity.email,
        subject_id=identity.subject_id,
        name=identity.name,
    )
    logger.info("External login successful for user %s", user.id)
    return _start_session(request, response, sessions, user)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Destroy the current session; safe to call without one."""
    sessions.destroy(session_token(request))
    response.delete_cookie(key=request.app.state.settings.session_cookie_name, path="/")
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=UserResponse)
def read_current_user(
    current_user: CurrentUser = Depends(get_current_user),
    identities: IdentityStore = Depends(get_identity_store),
):
    """Get current user information."""
    user = identities.find_by_id(current_user.id)
    if user is None:
        raise Unauthorized()
    return UserResponse(user=UserSchema.model_validate(user))
