import pytest

from conftest import auth_headers, upload_pdf
from paperless.models.document import Document


@pytest.fixture
def pending_doc(client, alice):
    return upload_pdf(client, alice["token"], title="Contract", category="contract").json()["document"]


def approve(client, token, doc_id, status="approved", comments="Looks good"):
    return client.post(
        f"/documents/{doc_id}/approve",
        json={"status": status, "comments": comments},
        headers=auth_headers(token),
    )


def test_boss_approves_document(client, boss, pending_doc):
    resp = approve(client, boss["token"], pending_doc["id"])
    assert resp.status_code == 200
    doc = resp.json()["document"]
    assert doc["approvalStatus"] == "approved"
    assert doc["approvedBy"] == boss["user"]["id"]
    assert doc["approvalComments"] == "Looks good"
    assert doc["approvalDate"] is not None


def test_boss_rejects_document_without_comments(client, boss, pending_doc):
    resp = client.post(
        f"/documents/{pending_doc['id']}/approve",
        json={"status": "rejected"},
        headers=auth_headers(boss["token"]),
    )
    assert resp.status_code == 200
    doc = resp.json()["document"]
    assert doc["approvalStatus"] == "rejected"
    assert doc["approvalComments"] == ""


def test_rejected_document_can_be_approved_later(client, boss, pending_doc):
    approve(client, boss["token"], pending_doc["id"], status="rejected")
    resp = approve(client, boss["token"], pending_doc["id"])
    assert resp.json()["document"]["approvalStatus"] == "approved"


def test_employee_cannot_approve_even_own_document(client, alice, db, pending_doc):
    resp = approve(client, alice["token"], pending_doc["id"])
    assert resp.status_code == 403
    assert resp.json() == {"error": "Access denied"}

    doc = db.get(Document, pending_doc["id"])
    assert doc.approval_status == "pending"
    assert doc.approved_by is None


def test_approve_requires_auth(client, pending_doc):
    resp = client.post(f"/documents/{pending_doc['id']}/approve", json={"status": "approved"})
    assert resp.status_code == 401


@pytest.mark.parametrize("status", ["pending", "maybe", ""])
def test_approve_with_invalid_status_is_400(client, boss, db, pending_doc, status):
    resp = approve(client, boss["token"], pending_doc["id"], status=status)
    assert resp.status_code == 400
    assert db.get(Document, pending_doc["id"]).approval_status == "pending"


def test_approve_missing_document_is_404(client, boss):
    assert approve(client, boss["token"], 999).status_code == 404


def test_print_pending_document_is_forbidden(client, alice, db, pending_doc):
    resp = client.get(f"/documents/{pending_doc['id']}/print", headers=auth_headers(alice["token"]))
    assert resp.status_code == 403
    assert resp.json() == {"error": "Document must be approved before printing"}
    assert db.get(Document, pending_doc["id"]).print_count == 0


def test_print_rejected_document_is_forbidden(client, alice, boss, pending_doc):
    approve(client, boss["token"], pending_doc["id"], status="rejected")
    resp = client.get(f"/documents/{pending_doc['id']}/print", headers=auth_headers(alice["token"]))
    assert resp.status_code == 403


def test_print_approved_document_counts_each_print(client, alice, boss, pending_doc):
    approve(client, boss["token"], pending_doc["id"])

    for expected in (1, 2, 3):
        resp = client.get(f"/documents/{pending_doc['id']}/print", headers=auth_headers(alice["token"]))
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Document printed successfully"
        assert body["url"] == f"http://testserver/uploads/{pending_doc['fileName']}"

        doc = client.get(f"/documents/{pending_doc['id']}", headers=auth_headers(alice["token"])).json()["document"]
        assert doc["printCount"] == expected
        assert doc["lastPrintedAt"] is not None


def test_boss_can_print_others_approved_document(client, boss, pending_doc):
    approve(client, boss["token"], pending_doc["id"])
    resp = client.get(f"/documents/{pending_doc['id']}/print", headers=auth_headers(boss["token"]))
    assert resp.status_code == 200


def test_editing_does_not_reset_approval(client, alice, boss, pending_doc):
    approve(client, boss["token"], pending_doc["id"])
    resp = client.patch(
        f"/documents/{pending_doc['id']}", json={"title": "Signed contract"}, headers=auth_headers(alice["token"])
    )
    assert resp.json()["approvalStatus"] == "approved"
