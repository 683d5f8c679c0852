"""
Authorization gate

Every protected operation calls authorize() (or ensure_allowed()) with the
caller's session and a policy before touching data. The decision is pure:
no lookups and no side effects happen here. Policies that depend on
ownership receive the owning user id, which the caller resolves first
(e.g. by loading the parent Customer of a keyword report).

Policy table:

    policy          ADMIN   SEO_DEV                      CUSTOMER
    Authenticated   allow   allow                        allow
    AdminOnly       allow   deny                         deny
    StaffOnly       allow   allow                        deny
    OwnerOrStaff    allow   allow (assigned only when    owner only
                            SEO_DEV_ASSIGNED_ONLY is on)
    OwnerOrAdmin    allow   owner only                   owner only

With SEO_DEV_ASSIGNED_ONLY off (the default) any SEO dev can manage any
customer's keywords and metrics.
"""
from dataclasses import dataclass
from typing import Optional, Union

from seoreport import config
from seoreport.errors import ForbiddenError, UnauthorizedError
from seoreport.models.enums import Role

__all__ = [
    "Role",
    "SessionUser",
    "Allowed",
    "Denied",
    "Authenticated",
    "AdminOnly",
    "StaffOnly",
    "OwnerOrStaff",
    "OwnerOrAdmin",
    "authorize",
    "ensure_allowed",
]


@dataclass(frozen=True)
class SessionUser:
    """Identity carried by a valid session token"""
    id: str
    role: Role
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class Allowed:
    allowed = True


@dataclass(frozen=True)
class Denied:
    reason: str
    status_code: int
    allowed = False


UNAUTHORIZED = Denied(reason="Unauthorized", status_code=401)
FORBIDDEN = Denied(reason="Forbidden", status_code=403)


# ==================== Policies ====================

@dataclass(frozen=True)
class Authenticated:
    pass


@dataclass(frozen=True)
class AdminOnly:
    pass


@dataclass(frozen=True)
class StaffOnly:
    pass


@dataclass(frozen=True)
class OwnerOrStaff:
    owner_user_id: Optional[str]
    assigned_seo_dev_id: Optional[str] = None


@dataclass(frozen=True)
class OwnerOrAdmin:
    owner_user_id: Optional[str]


Policy = Union[Authenticated, AdminOnly, StaffOnly, OwnerOrStaff, OwnerOrAdmin]
Decision = Union[Allowed, Denied]


def _is_owner(session: SessionUser, owner_user_id: Optional[str]) -> bool:
    return owner_user_id is not None and session.id == owner_user_id


def authorize(
    session: Optional[SessionUser],
    policy: Policy,
    seo_dev_assigned_only: Optional[bool] = None,
) -> Decision:
    """Decide whether the session may perform an operation guarded by policy"""
    if session is None:
        return UNAUTHORIZED

    if session.role == Role.ADMIN:
        return Allowed()

    if seo_dev_assigned_only is None:
        seo_dev_assigned_only = config.SEO_DEV_ASSIGNED_ONLY

    if isinstance(policy, Authenticated):
        return Allowed()

    if isinstance(policy, AdminOnly):
        return FORBIDDEN

    if isinstance(policy, StaffOnly):
        return Allowed() if session.role == Role.SEO_DEV else FORBIDDEN

    if isinstance(policy, OwnerOrStaff):
        if session.role == Role.SEO_DEV:
            if not seo_dev_assigned_only or policy.assigned_seo_dev_id == session.id:
                return Allowed()
            return FORBIDDEN
        return Allowed() if _is_owner(session, policy.owner_user_id) else FORBIDDEN

    if isinstance(policy, OwnerOrAdmin):
        return Allowed() if _is_owner(session, policy.owner_user_id) else FORBIDDEN

    raise TypeError(f"Unknown policy: {policy!r}")


def ensure_allowed(
    session: Optional[SessionUser],
    policy: Policy,
    seo_dev_assigned_only: Optional[bool] = None,
) -> SessionUser:
    """Raise UnauthorizedError/ForbiddenError unless authorize() allows; returns the session"""
    decision = authorize(session, policy, seo_dev_assigned_only)
    if isinstance(decision, Denied):
        if decision.status_code == 401:
            raise UnauthorizedError(decision.reason)
        raise ForbiddenError(decision.reason)
    return session
