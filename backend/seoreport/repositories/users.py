"""
User repository with explicit soft-delete semantics.

Callers choose between active-only and all-rows lookups by method name;
nothing filters deleted rows behind their back.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from seoreport.models.database import User
from seoreport.models.enums import Role

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def _active(self):
        return self.db.query(User).filter(User.deleted_at.is_(None))

    # ==================== Lookups ====================

    def find_active_by_id(self, user_id: str) -> Optional[User]:
        return self._active().filter(User.id == user_id).first()

    def find_any_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def find_active_by_email(self, email: str) -> Optional[User]:
        return self._active().filter(User.email == email).first()

    def list_users(self, include_deleted: bool = False, role: Optional[Role] = None) -> List[User]:
        """Newest first. Soft-deleted users only appear with include_deleted."""
        query = self.db.query(User) if include_deleted else self._active()
        if role is not None:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc()).all()

    def list_seo_devs(self) -> List[User]:
        return self._active().filter(User.role == Role.SEO_DEV).order_by(User.name.asc()).all()

    def email_in_use(self, email: str, exclude_id: Optional[str] = None) -> bool:
        """Emails are unique across every row, soft-deleted ones included"""
        query = self.db.query(User.id).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    # ==================== Soft delete ====================

    def soft_delete(self, user: User) -> User:
        user.deleted_at = datetime.now(timezone.utc)
        self.db.flush()
        logger.info("Soft-deleted user %s", user.id)
        return user

    def soft_delete_many(self, user_ids: Iterable[str]) -> int:
        ids = list(user_ids)
        if not ids:
            return 0
        count = (
            self.db.query(User)
            .filter(User.id.in_(ids), User.deleted_at.is_(None))
            .update({User.deleted_at: datetime.now(timezone.utc)}, synchronize_session=False)
        )
        logger.info("Soft-deleted %d users", count)
        return count

    def restore(self, user_id: str) -> bool:
        """Clear deleted_at; a no-op for users that are not deleted"""
        count = (
            self.db.query(User)
            .filter(User.id == user_id, User.deleted_at.isnot(None))
            .update({User.deleted_at: None}, synchronize_session=False)
        )
        if count:
            logger.info("Restored user %s", user_id)
        return count > 0
