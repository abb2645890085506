"""Dashboard, activity and account deletion."""

from conftest import auth_headers, object_keys, register, upload

from securevault.db.session import SessionLocal
from securevault.models.document import Document
from securevault.models.user import User


def test_dashboard(client):
    token, _ = register(client)
    upload(client, token, category="work")
    upload(client, token, filename="a.pdf", content=b"%PDF", content_type="application/pdf", category="legal")

    r = client.get("/api/users/dashboard", headers=auth_headers(token))
    assert r.status_code == 200
    body = r.json()
    assert body["statistics"]["totalDocs"] == 2
    assert body["statistics"]["pdfCount"] == 1
    assert {c["category"] for c in body["categories"]} == {"work", "legal"}
    assert len(body["recentDocuments"]) == 2


def test_activity_feed(client):
    token, _ = register(client)
    upload(client, token, filename="lease.pdf", content=b"%PDF", content_type="application/pdf")

    r = client.get("/api/users/activity", headers=auth_headers(token))
    assert r.status_code == 200
    body = r.json()
    assert body["activity"][0]["type"] == "document_upload"
    assert body["activity"][0]["details"] == "Uploaded lease.pdf"
    assert body["pagination"]["totalItems"] == 1


def test_users_profile_aliases_auth_profile(client):
    token, user = register(client)
    r = client.get("/api/users/profile", headers=auth_headers(token))
    assert r.status_code == 200
    assert r.json()["user"]["id"] == user["id"]


def test_delete_account_requires_password(client):
    token, _ = register(client)
    r = client.request("DELETE", "/api/users/account", headers=auth_headers(token), json={"password": "nope"})
    assert r.status_code == 401
    r = client.request("DELETE", "/api/users/account", headers=auth_headers(token), json={})
    assert r.status_code == 400


def test_delete_account_removes_documents_and_blobs(client, s3):
    token, user = register(client)
    other_token, _ = register(client, email="b@x.com", name="Bob")
    upload(client, token)
    upload(client, token)
    kept = upload(client, other_token).json()["document"]["storageKey"]

    r = client.request("DELETE", "/api/users/account", headers=auth_headers(token), json={"password": "secret1"})
    assert r.status_code == 200

    with SessionLocal() as s:
        assert s.get(User, user["id"]) is None
        assert s.query(Document).filter(Document.user_id == user["id"]).count() == 0
        assert s.query(Document).count() == 1
    assert object_keys(s3) == [kept]

    assert client.get("/api/auth/profile", headers=auth_headers(token)).status_code == 401
