import pytest
from sqlalchemy.exc import OperationalError

from conftest import auth_headers
from seoreport.models.database import KeywordReportHistory
from seoreport.models.enums import Role
from seoreport.schemas.requests import RecommendCreate
from seoreport.services.keyword_service import KeywordService


def _add_keyword(client, headers, user_id, **overrides):
    payload = {"keyword": "seo agency", "position": 5, "traffic": 120, "kd": "MEDIUM", "isTopReport": True}
    payload.update(overrides)
    response = client.post(f"/api/customers/{user_id}/keywords", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_add_keyword_writes_no_history(client, database, admin, customer_user):
    report = _add_keyword(client, auth_headers(admin), customer_user.id)
    assert report["keyword"] == "seo agency"
    assert report["kd"] == "MEDIUM"

    with database.session() as db:
        assert db.query(KeywordReportHistory).count() == 0


def test_keyword_is_trimmed_and_blank_position_means_unranked(client, admin, customer_user):
    report = _add_keyword(client, auth_headers(admin), customer_user.id, keyword="  local seo  ", position="")
    assert report["keyword"] == "local seo"
    assert report["position"] is None


def test_blank_keyword_rejected(client, admin, customer_user):
    response = client.post(
        f"/api/customers/{customer_user.id}/keywords",
        json={"keyword": "   ", "kd": "EASY"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert response.json()["issues"][0]["field"] == "keyword"


def test_invalid_difficulty_rejected(client, admin, customer_user):
    response = client.post(
        f"/api/customers/{customer_user.id}/keywords",
        json={"keyword": "x", "kd": "IMPOSSIBLE"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400


def test_update_appends_previous_values_to_history(client, admin, customer_user):
    headers = auth_headers(admin)
    report = _add_keyword(client, headers, customer_user.id, position=9, traffic=50)

    first = client.put(f"/api/customers/keywords/{report['id']}", json={"position": 4}, headers=headers)
    assert first.status_code == 200
    assert first.json()["position"] == 4
    assert first.json()["traffic"] == 50

    client.put(f"/api/customers/keywords/{report['id']}", json={"position": 2, "traffic": 80}, headers=headers)

    history = client.get(f"/api/customers/keywords/{report['id']}/history", headers=headers).json()
    assert [(h["position"], h["traffic"]) for h in history] == [(4, 50), (9, 50)]
    assert all(h["reportId"] == report["id"] for h in history)


def test_update_can_clear_position(client, admin, customer_user):
    headers = auth_headers(admin)
    report = _add_keyword(client, headers, customer_user.id)
    response = client.put(f"/api/customers/keywords/{report['id']}", json={"position": None}, headers=headers)
    assert response.json()["position"] is None
    assert response.json()["keyword"] == "seo agency"


def test_update_unknown_keyword(client, admin):
    response = client.put("/api/customers/keywords/missing", json={"position": 1}, headers=auth_headers(admin))
    assert response.status_code == 404


def test_customer_cannot_update_keyword(client, admin, customer_user):
    report = _add_keyword(client, auth_headers(admin), customer_user.id)
    response = client.put(
        f"/api/customers/keywords/{report['id']}", json={"position": 1}, headers=auth_headers(customer_user)
    )
    assert response.status_code == 403


def test_keyword_history_visible_to_owner_only(client, admin, make_user, customer_user):
    report = _add_keyword(client, auth_headers(admin), customer_user.id)
    stranger = make_user(Role.CUSTOMER)
    url = f"/api/customers/keywords/{report['id']}/history"

    assert client.get(url, headers=auth_headers(customer_user)).status_code == 200
    assert client.get(url, headers=auth_headers(stranger)).status_code == 403
    assert client.get(url).status_code == 401


def test_delete_keyword_removes_history(client, database, admin, customer_user):
    headers = auth_headers(admin)
    report = _add_keyword(client, headers, customer_user.id)
    client.put(f"/api/customers/keywords/{report['id']}", json={"traffic": 1}, headers=headers)

    assert client.delete(f"/api/customers/keywords/{report['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/customers/{customer_user.id}/keywords", headers=headers).json() == []
    with database.session() as db:
        assert db.query(KeywordReportHistory).count() == 0


def test_list_keywords_for_user_without_profile_is_empty(client, admin, make_user):
    user = make_user(Role.CUSTOMER, with_profile=False)
    response = client.get(f"/api/customers/{user.id}/keywords", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json() == []


def test_customer_history_bundle_includes_keyword_history(client, admin, customer_user):
    headers = auth_headers(admin)
    report = _add_keyword(client, headers, customer_user.id)
    client.put(f"/api/customers/keywords/{report['id']}", json={"position": 1}, headers=headers)

    bundle = client.get(f"/api/customers/{customer_user.id}/metrics/history", headers=headers).json()
    assert bundle["metricsHistory"] == []
    assert len(bundle["keywordHistory"]) == 1
    assert bundle["keywordHistory"][0]["position"] == 5


# ==================== Recommendations ====================

def test_recommendation_lifecycle(client, admin, customer_user):
    headers = auth_headers(admin)
    url = f"/api/customers/{customer_user.id}/recommend-keywords"

    created = client.post(url, json={"keyword": "best seo tools", "kd": "HARD", "note": "high intent"}, headers=headers)
    assert created.status_code == 201
    recommend = created.json()
    assert recommend["kd"] == "HARD"
    assert recommend["isTopReport"] is False

    updated = client.put(
        f"/api/customers/recommend-keywords/{recommend['id']}", json={"note": "revisit"}, headers=headers
    )
    assert updated.json()["note"] == "revisit"
    assert updated.json()["keyword"] == "best seo tools"

    listed = client.get(url, headers=auth_headers(customer_user)).json()
    assert [r["id"] for r in listed] == [recommend["id"]]

    assert client.delete(f"/api/customers/recommend-keywords/{recommend['id']}", headers=headers).status_code == 204
    assert client.get(url, headers=headers).json() == []


def test_recommendations_require_profile(client, admin, make_user):
    user = make_user(Role.CUSTOMER, with_profile=False)
    response = client.get(f"/api/customers/{user.id}/recommend-keywords", headers=auth_headers(admin))
    assert response.status_code == 404


def test_customer_cannot_add_recommendation(client, customer_user):
    response = client.post(
        f"/api/customers/{customer_user.id}/recommend-keywords",
        json={"keyword": "x"},
        headers=auth_headers(customer_user),
    )
    assert response.status_code == 403


def test_failed_recommendation_write_rolls_back(db_session, monkeypatch, customer_user):
    customer = customer_user.customer_profile

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(OperationalError):
        KeywordService().add_recommendation(db_session, customer, RecommendCreate(keyword="rolled back"))

    # Rollback discards the pending row, leaving the session usable
    assert not db_session.new
