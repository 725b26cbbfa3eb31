from conftest import PDF_BYTES, auth_headers, promote_to_boss, register


def test_upload_review_print_lifecycle(client, upload_dir):
    employee = register(client, username="erin", email="erin@acme.io", department="accounts")
    boss = register(client, username="frank", email="frank@acme.io", department="management")
    promote_to_boss(boss["user"]["id"])
    # role changes are read from the database, so the old token is still good
    boss_headers = auth_headers(boss["token"])
    employee_headers = auth_headers(employee["token"])

    uploaded = client.post(
        "/documents/upload",
        headers=employee_headers,
        files={"file": ("supplier-invoice.pdf", PDF_BYTES, "application/pdf")},
        data={"category": "invoice", "tags": "supplier, march"},
    )
    assert uploaded.status_code == 201
    doc = uploaded.json()["document"]
    assert doc["title"] == "supplier-invoice"
    assert (upload_dir / doc["fileName"]).exists()

    # not printable until reviewed
    assert client.get(f"/documents/{doc['id']}/print", headers=employee_headers).status_code == 403

    queue = client.get("/documents", params={"status": "pending"}, headers=boss_headers).json()["documents"]
    assert [d["id"] for d in queue] == [doc["id"]]

    approved = client.post(
        f"/documents/{doc['id']}/approve",
        json={"status": "approved", "comments": "Paid on 3/14"},
        headers=boss_headers,
    )
    assert approved.status_code == 200

    printed = client.get(f"/documents/{doc['id']}/print", headers=employee_headers)
    assert printed.status_code == 200
    preview = client.get(printed.json()["url"].replace("http://testserver", ""), headers=employee_headers)
    assert preview.content == PDF_BYTES

    final = client.get(f"/documents/{doc['id']}", headers=employee_headers).json()["document"]
    assert final["approvalStatus"] == "approved"
    assert final["approvalComments"] == "Paid on 3/14"
    assert final["printCount"] == 1

    assert client.delete(f"/documents/{doc['id']}", headers=employee_headers).status_code == 200
    assert list(upload_dir.iterdir()) == []
    assert client.get("/documents", headers=boss_headers).json()["documents"] == []


def test_invoice_scenario(client):
    register(client)
    login = client.post("/auth/login", json={"email": "alice@acme.io", "password": "s3cret-pass"})
    headers = auth_headers(login.json()["token"])

    uploaded = client.post(
        "/documents/upload",
        headers=headers,
        files={"file": ("invoice.pdf", PDF_BYTES, "application/pdf")},
        data={"title": "Invoice"},
    )
    assert uploaded.status_code == 201

    docs = client.get("/documents", headers=headers).json()["documents"]
    assert len(docs) == 1
    assert docs[0]["category"] == "other"
    doc_id = docs[0]["id"]

    boss = register(client, username="carol", email="carol@acme.io", department="management")
    promote_to_boss(boss["user"]["id"])
    approved = client.post(
        f"/documents/{doc_id}/approve", json={"status": "approved"}, headers=auth_headers(boss["token"])
    )
    assert approved.status_code == 200

    assert client.get(f"/documents/{doc_id}/print", headers=headers).status_code == 200
    assert client.get(f"/documents/{doc_id}", headers=headers).json()["document"]["printCount"] == 1
