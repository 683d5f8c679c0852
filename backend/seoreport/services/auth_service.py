"""
Credential authenticator - password hashing, login and session tokens
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from seoreport.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_HOURS
from seoreport.models.database import User
from seoreport.models.enums import Role
from seoreport.services.authorization import SessionUser

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its hash"""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    """
    Return the user for a valid email/password pair.
    Soft-deleted accounts are filtered here explicitly so they can never log in.
    """
    if not email or not password:
        return None

    user = (
        db.query(User)
        .filter(User.email == email, User.deleted_at.is_(None))
        .first()
    )
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token carrying the user's id and role"""
    if expires_delta is None:
        expires_delta = timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)
    role = user.role.value if isinstance(user.role, Role) else str(user.role)
    to_encode = {
        "sub": user.id,
        "role": role,
        "email": user.email,
        "name": user.name,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_session(token: str) -> Optional[SessionUser]:
    """Decode a bearer token into a session identity, None when invalid or expired"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    user_id = payload.get("sub")
    try:
        role = Role(payload.get("role"))
    except ValueError:
        logger.warning("Token for user %s carries unknown role %r", user_id, payload.get("role"))
        return None
    if not user_id:
        return None

    return SessionUser(
        id=user_id,
        role=role,
        email=payload.get("email"),
        name=payload.get("name"),
    )
