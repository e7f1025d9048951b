import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import DuplicateEmail, InvalidToken, ValidationError
from ..models import IdentitySource, User

logger = logging.getLogger(__name__)

EXTERNAL_PLACEHOLDER_NAME = "Google User"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class IdentityStore:
    """User lookups and account creation/linking on one database session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.exec(select(User).where(User.email == normalize_email(email))).first()

    def find_by_external_id(self, external_id: str) -> Optional[User]:
        return self.db.exec(select(User).where(User.external_id == external_id)).first()

    def create(self, name: str, email: str, password_hash: str) -> User:
        email = normalize_email(email)
        if not password_hash:
            raise ValidationError("Local accounts require a password")
        if self.find_by_email(email) is not None:
            raise DuplicateEmail()

        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            identity_source=IdentitySource.LOCAL,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email.
            self.db.rollback()
            raise DuplicateEmail() from exc
        self.db.refresh(user)
        logger.info("Created local user %s", user.id)
        return user

    def link_or_create_external(self, email: str, subject_id: str, name: Optional[str] = None) -> User:
        """Reconcile a verified external identity with a local account.

        Repeating the call with the same (email, subject_id) returns the same
        row. An email account already linked to a different subject is
        refused rather than silently re-pointed.
        """
        email = normalize_email(email)

        user = self.find_by_external_id(subject_id)
        if user is not None:
            return user

        user = self.find_by_email(email)
        if user is not None:
            if user.external_id and user.external_id != subject_id:
                logger.warning("User %s is already linked to another external identity", user.id)
                raise InvalidToken("Account is linked to a different external identity")
            # Password is left untouched so local login keeps working.
            user.external_id = subject_id
            user.identity_source = IdentitySource.EXTERNAL
            logger.info("Linked external identity to existing user %s", user.id)
        else:
            user = User(
                name=name or EXTERNAL_PLACEHOLDER_NAME,
                email=email,
                password_hash="",
                external_id=subject_id,
                identity_source=IdentitySource.EXTERNAL,
            )
            logger.info("Creating user from external identity")

        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent exchange for the same identity committed first.
            self.db.rollback()
            existing = self.find_by_external_id(subject_id)
            if existing is None:
                raise
            return existing
        self.db.refresh(user)
        return user
