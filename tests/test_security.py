"""
Tests for dietitian session tracking.

Covers:
- Sessions recorded from the access token's session_id claim
- GET /api/security/sessions
- DELETE /api/security/sessions/{id}
- POST /api/security/sessions revoke-all
"""

import pytest

from test_fixtures import client, db_session, dietitian_token, make_dietitian
from domain.models import UserSession
from services.security_service import describe_device

DESKTOP = "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) Safari/605.1.15"
PHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"


def _headers(dietitian, session_id, agent=DESKTOP):
    return {
        "Authorization": f"Bearer {dietitian_token(dietitian, session_id=session_id)}",
        "User-Agent": agent,
    }


@pytest.fixture
def dietitian(db_session):
    return make_dietitian(db_session)


def _sessions(headers):
    response = client.get("/api/security/sessions", headers=headers)
    assert response.status_code == 200
    return response.json()["sessions"]


# =============================================================================
# TRACKING
# =============================================================================


def test_describe_device():
    assert describe_device(PHONE)["type"] == "mobile"
    assert describe_device(DESKTOP) == {"type": "desktop", "name": DESKTOP}
    assert describe_device(None) == {"type": "desktop", "name": "Unknown Device"}


def test_first_request_records_the_session(db_session, dietitian):
    response = client.get("/api/profile", headers=_headers(dietitian, "sess-desk"))

    assert response.status_code == 200
    (stored,) = db_session.query(UserSession).all()
    assert stored.auth_session_id == "sess-desk"
    assert stored.dietitian_id == dietitian.id
    assert stored.is_active is True
    assert stored.device_info["type"] == "desktop"


def test_tokens_without_session_claim_are_not_tracked(db_session, dietitian):
    headers = {"Authorization": f"Bearer {dietitian_token(dietitian)}"}

    assert client.get("/api/profile", headers=headers).status_code == 200
    assert db_session.query(UserSession).count() == 0


def test_listing_marks_current_session(dietitian):
    client.get("/api/profile", headers=_headers(dietitian, "sess-phone", PHONE))

    sessions = _sessions(_headers(dietitian, "sess-desk"))

    assert len(sessions) == 2
    current = [s for s in sessions if s["is_current"]]
    assert len(current) == 1
    assert current[0]["device_info"]["type"] == "desktop"
    assert current[0]["last_activity"].endswith("+00:00")


def test_listing_is_scoped_to_dietitian(db_session, dietitian):
    other = make_dietitian(db_session)
    client.get("/api/profile", headers=_headers(other, "sess-other"))

    sessions = _sessions(_headers(dietitian, "sess-desk"))

    assert len(sessions) == 1
    assert sessions[0]["is_current"] is True


def test_listing_requires_authentication():
    assert client.get("/api/security/sessions").status_code == 401


# =============================================================================
# REVOCATION
# =============================================================================


def test_revoked_session_is_refused(db_session, dietitian):
    phone = _headers(dietitian, "sess-phone", PHONE)
    desk = _headers(dietitian, "sess-desk")
    client.get("/api/profile", headers=phone)
    phone_id = db_session.query(UserSession).filter_by(auth_session_id="sess-phone").one().id

    response = client.delete(f"/api/security/sessions/{phone_id}", headers=desk)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    refused = client.get("/api/profile", headers=phone)
    assert refused.status_code == 401
    assert refused.json()["code"] == "SESSION_REVOKED"
    assert client.get("/api/profile", headers=desk).status_code == 200
    assert [s["is_current"] for s in _sessions(desk)] == [True]


def test_revoking_foreign_session_is_404(db_session, dietitian):
    other = make_dietitian(db_session)
    client.get("/api/profile", headers=_headers(other, "sess-other"))
    foreign_id = db_session.query(UserSession).one().id

    response = client.delete(
        f"/api/security/sessions/{foreign_id}", headers=_headers(dietitian, "sess-desk")
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Session not found"
    db_session.expire_all()
    assert db_session.query(UserSession).filter_by(id=foreign_id).one().is_active is True


def test_revoke_all_keeps_current_session(db_session, dietitian):
    desk = _headers(dietitian, "sess-desk")
    for session_id in ("sess-phone", "sess-tablet"):
        client.get("/api/profile", headers=_headers(dietitian, session_id, PHONE))

    response = client.post("/api/security/sessions", json={"action": "revoke-all"}, headers=desk)

    assert response.status_code == 200
    assert response.json() == {"success": True, "revoked": 2}
    db_session.expire_all()
    active = db_session.query(UserSession).filter_by(is_active=True).all()
    assert [s.auth_session_id for s in active] == ["sess-desk"]
    ended = db_session.query(UserSession).filter_by(is_active=False).all()
    assert all(s.ended_at is not None for s in ended)


def test_unknown_session_action_is_400(dietitian):
    response = client.post(
        "/api/security/sessions",
        json={"action": "logout-everyone"},
        headers=_headers(dietitian, "sess-desk"),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid action"
