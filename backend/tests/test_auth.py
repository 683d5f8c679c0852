from conftest import DEFAULT_PASSWORD, auth_headers
from seoreport.models.enums import Role
from seoreport.repositories.users import UserRepository
from seoreport.services.auth_service import create_access_token, decode_session, hash_password, verify_password


def test_password_hashing():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("", hashed)


def test_token_carries_session_identity(admin):
    session = decode_session(create_access_token(admin))
    assert session.id == admin.id
    assert session.role == Role.ADMIN
    assert session.email == admin.email


def test_garbage_token_has_no_session():
    assert decode_session("not-a-jwt") is None


def test_login_success(client, admin):
    response = client.post("/api/auth/login", json={"email": admin.email, "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["user"]["role"] == "ADMIN"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["id"] == admin.id


def test_login_wrong_password(client, admin):
    response = client.post("/api/auth/login", json={"email": admin.email, "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


def test_login_rejected_for_soft_deleted_user(client, db_session, customer_user):
    UserRepository(db_session).soft_delete(customer_user)
    db_session.commit()

    response = client.post(
        "/api/auth/login", json={"email": customer_user.email, "password": DEFAULT_PASSWORD}
    )
    assert response.status_code == 401


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_me_with_header(client, seo_dev):
    response = client.get("/api/auth/me", headers=auth_headers(seo_dev))
    assert response.json()["role"] == "SEO_DEV"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_token_of_soft_deleted_user_is_rejected(client, admin, seo_dev, customer_user):
    old_headers = auth_headers(seo_dev)
    assert client.get("/api/auth/me", headers=old_headers).status_code == 200

    assert client.delete(f"/api/users/{seo_dev.id}", headers=auth_headers(admin)).status_code == 204

    assert client.get("/api/auth/me", headers=old_headers).status_code == 401
    response = client.post(
        f"/api/customers/{customer_user.id}/metrics",
        json={
            "domainRating": 1, "healthScore": 1, "spamScore": 1, "organicTraffic": 1,
            "organicKeywords": 1, "backlinks": 1, "refDomains": 1,
        },
        headers=old_headers,
    )
    assert response.status_code == 401


def test_token_works_again_after_restore(client, admin, customer_user):
    old_headers = auth_headers(customer_user)
    client.delete(f"/api/users/{customer_user.id}", headers=auth_headers(admin))
    assert client.get("/api/user-header", headers=old_headers).status_code == 401

    client.put(f"/api/users/{customer_user.id}/restore", headers=auth_headers(admin))
    assert client.get("/api/user-header", headers=old_headers).status_code == 200


def test_session_role_comes_from_current_user_row(client, db_session, admin, customer_user):
    old_headers = auth_headers(customer_user)
    customer_user.role = Role.SEO_DEV
    db_session.commit()

    assert client.get("/api/auth/me", headers=old_headers).json()["role"] == "SEO_DEV"
