import pytest

from seoreport.errors import ForbiddenError, UnauthorizedError
from seoreport.services.authorization import (
    AdminOnly,
    Allowed,
    Authenticated,
    Denied,
    OwnerOrAdmin,
    OwnerOrStaff,
    Role,
    SessionUser,
    StaffOnly,
    authorize,
    ensure_allowed,
)

ADMIN = SessionUser(id="admin-1", role=Role.ADMIN)
SEO_DEV = SessionUser(id="seo-1", role=Role.SEO_DEV)
CUSTOMER = SessionUser(id="cust-1", role=Role.CUSTOMER)


@pytest.mark.parametrize("policy", [
    Authenticated(), AdminOnly(), StaffOnly(), OwnerOrStaff("cust-1"), OwnerOrAdmin("cust-1"),
])
def test_no_session_is_unauthorized(policy):
    decision = authorize(None, policy)
    assert isinstance(decision, Denied)
    assert decision.status_code == 401
    assert decision.reason == "Unauthorized"


@pytest.mark.parametrize("policy", [
    Authenticated(), AdminOnly(), StaffOnly(), OwnerOrStaff("someone-else", "other-dev"),
    OwnerOrAdmin("someone-else"),
])
def test_admin_is_always_allowed(policy):
    assert isinstance(authorize(ADMIN, policy, seo_dev_assigned_only=True), Allowed)


@pytest.mark.parametrize("session,policy,allowed", [
    (SEO_DEV, Authenticated(), True),
    (SEO_DEV, AdminOnly(), False),
    (SEO_DEV, StaffOnly(), True),
    (SEO_DEV, OwnerOrStaff("cust-1"), True),
    (SEO_DEV, OwnerOrAdmin("cust-1"), False),
    (SEO_DEV, OwnerOrAdmin("seo-1"), True),
    (CUSTOMER, Authenticated(), True),
    (CUSTOMER, AdminOnly(), False),
    (CUSTOMER, StaffOnly(), False),
    (CUSTOMER, OwnerOrStaff("cust-1"), True),
    (CUSTOMER, OwnerOrStaff("cust-2"), False),
    (CUSTOMER, OwnerOrStaff(None), False),
    (CUSTOMER, OwnerOrAdmin("cust-1"), True),
    (CUSTOMER, OwnerOrAdmin("cust-2"), False),
])
def test_policy_table(session, policy, allowed):
    decision = authorize(session, policy, seo_dev_assigned_only=False)
    assert decision.allowed is allowed
    if not allowed:
        assert decision.status_code == 403
        assert decision.reason == "Forbidden"


def test_seo_dev_assignment_enforced_when_enabled():
    assert authorize(SEO_DEV, OwnerOrStaff("cust-1", "seo-1"), seo_dev_assigned_only=True).allowed
    assert not authorize(SEO_DEV, OwnerOrStaff("cust-1", "seo-2"), seo_dev_assigned_only=True).allowed
    assert not authorize(SEO_DEV, OwnerOrStaff("cust-1", None), seo_dev_assigned_only=True).allowed


def test_seo_dev_assignment_ignored_when_disabled():
    assert authorize(SEO_DEV, OwnerOrStaff("cust-1", "seo-2"), seo_dev_assigned_only=False).allowed


def test_ensure_allowed_raises_matching_errors():
    with pytest.raises(UnauthorizedError):
        ensure_allowed(None, Authenticated())
    with pytest.raises(ForbiddenError):
        ensure_allowed(CUSTOMER, StaffOnly())
    assert ensure_allowed(SEO_DEV, StaffOnly()) is SEO_DEV
