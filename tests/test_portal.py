"""
Tests for the token-scoped client portal endpoints.

Covers:
- GET /api/client-auth/data (profile, progress, plan, weights, appointments, messages)
- Weight entries and messages sent from the portal
- Documents: listing, download, progress photo upload
- Client-side GDPR consents and requests
"""

from datetime import date, time, timedelta

import pytest

from test_fixtures import (
    add_weight,
    client,
    db_session,
    make_client,
    make_dietitian,
    make_portal_account,
    portal_headers,
    seed_plans,
)
from adapters import storage_adapter
from domain.enums import ConsentType, DataRequestType, DocumentCategory, MealPlanStatus
from domain.models import (
    Appointment,
    ConsentRecord,
    Conversation,
    DataExportRequest,
    Document,
    MealPlan,
)


@pytest.fixture
def portal(db_session):
    seed_plans(db_session)
    dietitian = make_dietitian(db_session)
    record = make_client(db_session, dietitian, current_weight=70, goal_weight=65)
    make_portal_account(db_session, record)
    return dietitian, record


@pytest.fixture
def fake_storage(monkeypatch):
    stored = {}

    def upload(path, data, content_type):
        stored[path] = data
        return path

    monkeypatch.setattr(storage_adapter, "upload", upload)
    monkeypatch.setattr(storage_adapter, "download", lambda path: stored[path])
    monkeypatch.setattr(storage_adapter, "remove", lambda path: stored.pop(path, None))
    return stored


# =============================================================================
# PORTAL DATA
# =============================================================================


def test_portal_data_contents(db_session, portal):
    dietitian, record = portal
    add_weight(db_session, record, 75, days_ago=30)
    add_weight(db_session, record, 70, days_ago=1)
    db_session.add_all(
        [
            MealPlan(
                dietitian_id=dietitian.id,
                client_id=record.id,
                name="Plan printemps",
                status=MealPlanStatus.ACTIVE,
                duration_days=7,
            ),
            Appointment(
                dietitian_id=dietitian.id,
                client_id=record.id,
                title="Suivi mensuel",
                appointment_date=date.today() + timedelta(days=3),
                appointment_time=time(14, 30),
            ),
            Appointment(
                dietitian_id=dietitian.id,
                client_id=record.id,
                title="Bilan passé",
                appointment_date=date.today() - timedelta(days=3),
                appointment_time=time(9, 0),
            ),
        ]
    )
    db_session.commit()

    response = client.get("/api/client-auth/data", headers=portal_headers(record))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["profile"]["name"] == "Marie Laurent"
    # 75 -> 70 of a 75 -> 65 goal
    assert data["profile"]["progress"] == 50
    assert data["currentPlan"]["name"] == "Plan printemps"
    assert [w["weight"] for w in data["weightHistory"]] == [70.0, 75.0]
    assert len(data["appointments"]) == 1
    assert data["appointments"][0]["time"] == "14:30:00"
    assert data["messages"] == []


def test_portal_data_requires_token():
    assert client.get("/api/client-auth/data").status_code == 401


def test_add_weight_updates_current_weight(db_session, portal):
    _, record = portal

    response = client.post(
        "/api/client-auth/weight",
        json={"weight": 68.4, "notes": "Après le sport"},
        headers=portal_headers(record),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Poids ajouté avec succès"
    assert body["data"]["weight"] == 68.4
    assert body["data"]["date"] == date.today().isoformat()
    db_session.expire_all()
    db_session.refresh(record)
    assert float(record.current_weight) == 68.4


@pytest.mark.parametrize("weight", [0, -5, 1001])
def test_add_weight_rejects_out_of_range(portal, weight):
    _, record = portal
    response = client.post(
        "/api/client-auth/weight", json={"weight": weight}, headers=portal_headers(record)
    )
    assert response.status_code == 400


# =============================================================================
# MESSAGES
# =============================================================================


def test_send_message_creates_conversation_and_bumps_unread(db_session, portal):
    dietitian, record = portal
    headers = portal_headers(record)

    first = client.post(
        "/api/client-auth/send-message", json={"message": "Bonjour !"}, headers=headers
    )
    client.post("/api/client-auth/send-message", json={"message": "Une question"}, headers=headers)

    assert first.status_code == 200
    assert first.json()["message"]["sender"] == "client"
    assert first.json()["message"]["read"] is False
    conversation = db_session.query(Conversation).filter_by(client_id=record.id).one()
    assert conversation.dietitian_id == dietitian.id
    assert conversation.unread_count == 2
    assert conversation.last_message_at is not None


@pytest.mark.parametrize("message", ["", "x" * 1001])
def test_send_message_length_limits(portal, message):
    _, record = portal
    response = client.post(
        "/api/client-auth/send-message", json={"message": message}, headers=portal_headers(record)
    )
    assert response.status_code == 400


# =============================================================================
# DOCUMENTS
# =============================================================================


def _document(record, dietitian, visible=True, path="documents/bilan.pdf"):
    return Document(
        client_id=record.id,
        dietitian_id=dietitian.id,
        name="Bilan sanguin",
        file_path=path,
        file_size=4,
        mime_type="application/pdf",
        category=DocumentCategory.LAB_RESULT,
        is_visible_to_client=visible,
    )


def test_documents_only_lists_visible(db_session, portal):
    dietitian, record = portal
    db_session.add_all(
        [_document(record, dietitian), _document(record, dietitian, visible=False, path="documents/x")]
    )
    db_session.commit()

    response = client.get("/api/client-auth/documents", headers=portal_headers(record))

    assert response.status_code == 200
    documents = response.json()["documents"]
    assert len(documents) == 1
    assert documents[0]["name"] == "Bilan sanguin"


def test_download_document_streams_bytes(db_session, portal, fake_storage):
    dietitian, record = portal
    document = _document(record, dietitian)
    db_session.add(document)
    db_session.commit()
    fake_storage["documents/bilan.pdf"] = b"%PDF"

    response = client.get(
        f"/api/client-auth/documents/download/{document.id}", headers=portal_headers(record)
    )

    assert response.status_code == 200
    assert response.content == b"%PDF"
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["cache-control"] == "public, max-age=3600"


def test_download_hidden_or_foreign_document_is_404(db_session, portal, fake_storage):
    dietitian, record = portal
    other = make_client(db_session, dietitian, name="Paul Girard")
    foreign = _document(other, dietitian, path="documents/other.pdf")
    hidden = _document(record, dietitian, visible=False, path="documents/hidden.pdf")
    db_session.add_all([foreign, hidden])
    db_session.commit()

    for document in (foreign, hidden):
        response = client.get(
            f"/api/client-auth/documents/download/{document.id}", headers=portal_headers(record)
        )
        assert response.status_code == 404


def test_upload_progress_photo(db_session, portal, fake_storage):
    _, record = portal

    response = client.post(
        "/api/client-auth/progress-photo",
        files={"photo": ("front.png", b"\x89PNG....", "image/png")},
        data={"isVisibleToNutritionist": "true", "notes": "Semaine 4"},
        headers=portal_headers(record),
    )

    assert response.status_code == 200
    document = response.json()["document"]
    assert document["name"].startswith("Photo de progrès - ")
    assert document["isVisibleToNutritionist"] is True
    (path,) = fake_storage.keys()
    assert path.startswith(f"documents/progress_{record.id}_") and path.endswith(".png")
    stored = db_session.query(Document).filter_by(client_id=record.id).one()
    assert stored.category == DocumentCategory.PHOTO
    assert stored.description == "Semaine 4"


def test_upload_progress_photo_rejects_bad_files(portal, fake_storage):
    _, record = portal
    headers = portal_headers(record)

    missing = client.post("/api/client-auth/progress-photo", data={}, headers=headers)
    wrong_type = client.post(
        "/api/client-auth/progress-photo",
        files={"photo": ("notes.pdf", b"%PDF", "application/pdf")},
        headers=headers,
    )
    too_big = client.post(
        "/api/client-auth/progress-photo",
        files={"photo": ("big.jpg", b"0" * (5 * 1024 * 1024 + 1), "image/jpeg")},
        headers=headers,
    )

    assert missing.json()["error"] == "No photo provided"
    assert wrong_type.json()["error"] == "Invalid file type"
    assert too_big.json()["error"] == "File too large"
    assert {r.status_code for r in (missing, wrong_type, too_big)} == {400}
    assert fake_storage == {}


# =============================================================================
# GDPR (CLIENT SIDE)
# =============================================================================


def test_update_consents_upserts_and_skips_invalid(db_session, portal):
    _, record = portal
    headers = portal_headers(record)

    client.post(
        "/api/client-auth/gdpr/consents",
        json={"consents": [{"consent_type": "marketing", "granted": True}]},
        headers=headers,
    )
    response = client.post(
        "/api/client-auth/gdpr/consents",
        json={
            "consents": [
                {"consent_type": "marketing", "granted": False},
                {"consent_type": "health_data", "granted": True},
                {"granted": True},
            ]
        },
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Consentements mis à jour avec succès"
    records = {
        r.consent_type.value: r
        for r in db_session.query(ConsentRecord).filter_by(client_id=record.id)
    }
    assert set(records) == {"marketing", "health_data"}
    assert records["marketing"].granted is False
    assert records["marketing"].withdrawn_at is not None
    assert records["health_data"].granted_at is not None
    assert records["health_data"].version == "1.0"
    assert records["health_data"].legal_basis == "consent"

    listed = client.get("/api/client-auth/gdpr/consents", headers=headers)
    assert len(listed.json()["consents"]) == 2
    granted = next(c for c in listed.json()["consents"] if c["consent_type"] == "health_data")
    assert granted["granted_at"].endswith("+00:00")


def test_last_choice_wins_for_repeated_consent_type(db_session, portal):
    _, record = portal

    response = client.post(
        "/api/client-auth/gdpr/consents",
        json={
            "consents": [
                {"consent_type": "marketing", "granted": True},
                {"consent_type": "marketing", "granted": False},
            ]
        },
        headers=portal_headers(record),
    )

    assert response.status_code == 200
    (stored,) = db_session.query(ConsentRecord).filter_by(client_id=record.id).all()
    assert stored.granted is False
    assert stored.withdrawn_at is not None


def test_unknown_consent_types_are_skipped(db_session, portal):
    _, record = portal

    response = client.post(
        "/api/client-auth/gdpr/consents",
        json={
            "consents": [
                {"consent_type": "totally_made_up", "granted": True},
                {"consent_type": "photos", "granted": True},
            ]
        },
        headers=portal_headers(record),
    )

    assert response.status_code == 200
    (stored,) = db_session.query(ConsentRecord).filter_by(client_id=record.id).all()
    assert stored.consent_type == ConsentType.PHOTOS

def test_export_and_deletion_requests(db_session, portal):
    _, record = portal
    headers = portal_headers(record)

    export = client.post("/api/client-auth/gdpr/export", json={}, headers=headers)
    deletion = client.post("/api/client-auth/gdpr/deletion", headers=headers)

    assert export.status_code == 200
    assert "48h" in export.json()["message"]
    assert deletion.status_code == 200
    requests = {
        r.request_type: r
        for r in db_session.query(DataExportRequest).filter_by(client_id=record.id)
    }
    assert requests[DataRequestType.EXPORT].expires_at is not None
    assert requests[DataRequestType.DELETION].expires_at is None


def test_export_request_rejects_unknown_type(portal):
    _, record = portal
    response = client.post(
        "/api/client-auth/gdpr/export",
        json={"requestType": "everything"},
        headers=portal_headers(record),
    )
    assert response.status_code == 400
