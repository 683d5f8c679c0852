"""
Authentication API endpoints and session dependencies
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from seoreport.config import ACCESS_TOKEN_EXPIRE_HOURS
from seoreport.database import get_db
from seoreport.errors import UnauthorizedError
from seoreport.repositories.users import UserRepository
from seoreport.schemas.requests import LoginRequest
from seoreport.schemas.responses import SessionUserResponse, TokenResponse
from seoreport.services.auth_service import authenticate, create_access_token, decode_session
from seoreport.services.authorization import (
    AdminOnly, Authenticated, SessionUser, StaffOnly, ensure_allowed,
)

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[SessionUser]:
    """
    Session identity from the bearer token, None when absent, invalid, or
    when the user has since been soft-deleted. A missing token never
    touches the database.
    """
    if credentials is None:
        return None
    session = decode_session(credentials.credentials)
    if session is None:
        return None

    user = UserRepository(db).find_active_by_id(session.id)
    if user is None:
        logger.info("Rejected token for inactive user %s", session.id)
        return None

    # Role and profile come from the current row, not the token
    return SessionUser(id=user.id, role=user.role, email=user.email, name=user.name)


def require_session(session: Optional[SessionUser] = Depends(get_session)) -> SessionUser:
    return ensure_allowed(session, Authenticated())


def require_staff(session: Optional[SessionUser] = Depends(get_session)) -> SessionUser:
    """Require admin or SEO dev role"""
    return ensure_allowed(session, StaffOnly())


def require_admin(session: Optional[SessionUser] = Depends(get_session)) -> SessionUser:
    """Require admin role"""
    return ensure_allowed(session, AdminOnly())


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """User login"""
    user = authenticate(db, request.email, request.password)
    if user is None:
        raise UnauthorizedError("Invalid email or password")

    return TokenResponse(
        access_token=create_access_token(user),
        token_type="bearer",
        expires_in=ACCESS_TOKEN_EXPIRE_HOURS * 3600,
        user=SessionUserResponse(id=user.id, email=user.email, name=user.name, role=user.role),
    )


@router.get("/me", response_model=SessionUserResponse)
def get_current_user(session: SessionUser = Depends(require_session)):
    """Get current session identity"""
    return SessionUserResponse(id=session.id, email=session.email, name=session.name, role=session.role)
