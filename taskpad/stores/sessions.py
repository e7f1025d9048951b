import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from ..clock import as_utc, utc_now
from ..models import SessionRecord, User

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


def new_sid() -> str:
    return secrets.token_hex(32)


class SessionManager:
    """Durable cookie sessions.

    Sessions have a fixed absolute lifetime counted from ``issue``; they are
    never extended. ``resolve`` always reads the store rather than the identity map, so a logout from
    another client takes effect on the very next request.
    """

    def __init__(self, db: Session, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.db = db
        self.ttl = timedelta(seconds=ttl_seconds)

    def issue(self, user_id: str) -> str:
        now = utc_now()
        sid = new_sid()
        record = SessionRecord(
            sid=sid,
            user_id=user_id,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self.db.add(record)
        self.db.commit()
        logger.debug("Issued session for user %s", user_id)
        return sid

    def resolve(self, sid: Optional[str]) -> Optional[str]:
        """Return the user id bound to ``sid``, or None.

        Expired sessions and sessions whose user has disappeared are deleted
        on the way out.
        """
        if not sid:
            return None
        record = self.db.exec(
            select(SessionRecord)
            .where(SessionRecord.sid == sid)
            .execution_options(populate_existing=True)
        ).first()
        if record is None:
            return None
        if as_utc(record.expires_at) <= utc_now():
            logger.info("Session for user %s expired", record.user_id)
            self._drop(record)
            return None
        if self.db.exec(select(User.id).where(User.id == record.user_id)).first() is None:
            logger.warning("Clearing stale session: user %s no longer exists", record.user_id)
            self._drop(record)
            return None
        return record.user_id

    def destroy(self, sid: Optional[str]) -> None:
        if not sid:
            return
        self.db.exec(delete(SessionRecord).where(SessionRecord.sid == sid))
        self.db.commit()

    def purge_expired(self) -> int:
        result = self.db.exec(delete(SessionRecord).where(SessionRecord.expires_at <= utc_now()))
        self.db.commit()
        if result.rowcount:
            logger.info("Purged %d expired sessions", result.rowcount)
        return result.rowcount

    def _drop(self, record: SessionRecord) -> None:
        self.db.delete(record)
        self.db.commit()
