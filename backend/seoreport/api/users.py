"""
User management API endpoints with role-based access control
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from seoreport.api.auth import require_admin, require_session, require_staff, get_session
from seoreport.database import get_db
from seoreport.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from seoreport.models.database import Customer, User
from seoreport.models.enums import Role
from seoreport.repositories.customers import CustomerRepository
from seoreport.repositories.users import UserRepository
from seoreport.schemas.requests import ChangePasswordRequest, CreateUserRequest, UpdateUserRequest
from seoreport.schemas.responses import UserHeaderResponse, UserResponse
from seoreport.services.auth_service import hash_password, verify_password
from seoreport.services.authorization import (
    OwnerOrAdmin, OwnerOrStaff, SessionUser, ensure_allowed,
)

logger = logging.getLogger(__name__)

router = APIRouter()
header_router = APIRouter()

NO_DOMAIN_ASSIGNED = "No domain assigned"


def _domain_taken(domain: str) -> ConflictError:
    return ConflictError(f'Domain "{domain}" is already registered to another customer.')


def _check_seo_dev(users: UserRepository, seo_dev_id: Optional[str]) -> None:
    if seo_dev_id is None:
        return
    seo_dev = users.find_active_by_id(seo_dev_id)
    if seo_dev is None or seo_dev.role != Role.SEO_DEV:
        raise ValidationError(
            "Assigned SEO dev not found",
            issues=[{"field": "seoDevId", "message": "Must reference an active SEO_DEV user"}],
        )


def _commit_or_conflict(db: Session) -> None:
    """Commit, turning a unique-constraint race into 409"""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Integrity error on user write: %s", e.orig)
        if "email" in str(e.orig).lower():
            raise ConflictError("Email already exists.")
        raise ConflictError("Duplicate data found.")


# ==================== Collection ====================

@router.get("", response_model=List[UserResponse])
def list_users(
    include_deleted: bool = Query(False, alias="includeDeleted"),
    current_user: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """List users. Admins see everyone, SEO devs see customers only."""
    role = None if current_user.is_admin else Role.CUSTOMER
    return UserRepository(db).list_users(include_deleted=include_deleted, role=role)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    request: CreateUserRequest,
    current_user: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Create a user; CUSTOMER users get their customer profile in the same transaction"""
    if not current_user.is_admin and request.role != Role.CUSTOMER:
        raise ForbiddenError("SEO devs can only create customer accounts")

    users = UserRepository(db)
    customers = CustomerRepository(db)

    if users.email_in_use(request.email):
        raise ConflictError("Email already exists.")

    seo_dev_id = request.seo_dev_id
    if request.role == Role.CUSTOMER:
        if customers.domain_in_use(request.domain):
            raise _domain_taken(request.domain)
        if seo_dev_id is None and current_user.role == Role.SEO_DEV:
            seo_dev_id = current_user.id
        _check_seo_dev(users, seo_dev_id)

    user = User(
        name=request.name,
        email=request.email,
        hashed_password=hash_password(request.password),
        role=request.role,
    )
    db.add(user)
    if request.role == Role.CUSTOMER:
        db.flush()  # Get the ID
        db.add(Customer(
            name=request.company_name,
            domain=request.domain,
            user_id=user.id,
            seo_dev_id=seo_dev_id,
        ))
    _commit_or_conflict(db)
    db.refresh(user)
    logger.info("User %s created %s user %s", current_user.id, user.role.value, user.id)
    return user


@router.get("/seodevs", response_model=List[UserResponse])
def list_seo_devs(
    current_user: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Active SEO devs, by name"""
    return UserRepository(db).list_seo_devs()


# ==================== Single user ====================

@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    session: Optional[SessionUser] = Depends(get_session),
    db: Session = Depends(get_db),
):
    ensure_allowed(session, OwnerOrStaff(owner_user_id=user_id))
    user = UserRepository(db).find_active_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    request: UpdateUserRequest,
    current_user: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Update a user and, for customers, their profile (created when missing)"""
    users = UserRepository(db)
    customers = CustomerRepository(db)

    user = users.find_active_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")

    if not current_user.is_admin:
        if user.role != Role.CUSTOMER or (request.role and request.role != Role.CUSTOMER):
            raise ForbiddenError("SEO devs can only manage customer accounts")

    if request.email and request.email != user.email:
        if users.email_in_use(request.email, exclude_id=user.id):
            raise ConflictError("Email already exists.")
        user.email = request.email
    if request.name is not None:
        user.name = request.name
    if request.role is not None:
        user.role = request.role

    fields = request.model_fields_set
    touches_profile = bool({"company_name", "domain", "seo_dev_id"} & fields)
    if user.role == Role.CUSTOMER and touches_profile:
        profile = user.customer_profile
        if request.domain and customers.domain_in_use(request.domain, exclude_id=profile.id if profile else None):
            raise _domain_taken(request.domain)
        if "seo_dev_id" in fields:
            _check_seo_dev(users, request.seo_dev_id)

        if profile is None:
            if not request.company_name or not request.domain:
                raise ValidationError("Company Name and Domain are required for CUSTOMER role")
            db.add(Customer(
                name=request.company_name,
                domain=request.domain,
                user_id=user.id,
                seo_dev_id=request.seo_dev_id,
            ))
        else:
            if request.company_name:
                profile.name = request.company_name
            if request.domain:
                profile.domain = request.domain
            if "seo_dev_id" in fields:
                profile.seo_dev_id = request.seo_dev_id

    _commit_or_conflict(db)
    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    current_user: SessionUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Soft delete a user; the row stays and can be restored"""
    if user_id == current_user.id:
        raise ValidationError("Cannot delete yourself")

    users = UserRepository(db)
    user = users.find_active_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")

    users.soft_delete(user)
    db.commit()
    return Response(status_code=204)


@router.api_route("/{user_id}/restore", methods=["PUT", "PATCH"], status_code=204)
def restore_user(
    user_id: str,
    current_user: SessionUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Clear deleted_at; restoring an active user is a no-op"""
    users = UserRepository(db)
    if users.find_any_by_id(user_id) is None:
        raise NotFoundError("User not found")
    users.restore(user_id)
    db.commit()
    return Response(status_code=204)


@router.api_route("/{user_id}/password", methods=["PUT", "PATCH"], status_code=204)
def change_password(
    user_id: str,
    request: ChangePasswordRequest,
    session: Optional[SessionUser] = Depends(get_session),
    db: Session = Depends(get_db),
):
    """Admins may reset any password; everyone else must prove the current one"""
    session = ensure_allowed(session, OwnerOrAdmin(owner_user_id=user_id))

    if request.new_password != request.confirm_password:
        raise ValidationError("New passwords do not match")

    user = UserRepository(db).find_active_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")

    if not session.is_admin:
        if not request.current_password:
            raise ValidationError("Current password is required")
        if not verify_password(request.current_password, user.hashed_password):
            raise ValidationError("Invalid current password")

    user.hashed_password = hash_password(request.new_password)
    db.commit()
    logger.info("Password changed for user %s by %s", user_id, session.id)
    return Response(status_code=204)


# ==================== Header ====================

@header_router.get("/user-header", response_model=UserHeaderResponse)
def get_user_header(
    session: SessionUser = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Name, role and (for customers) domain of the signed-in user"""
    user = UserRepository(db).find_active_by_id(session.id)
    if user is None:
        raise NotFoundError("User not found")

    domain = None
    if user.role == Role.CUSTOMER:
        if user.customer_profile:
            domain = user.customer_profile.domain
        else:
            logger.info("Customer user without profile: %s", user.id)
            domain = NO_DOMAIN_ASSIGNED

    return UserHeaderResponse(user_name=user.name, user_role=user.role, domain=domain)
