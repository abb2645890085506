"""Document upload, listing, update, download and delete."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from conftest import BUCKET, FailingDeleteStorage, auth_headers, object_keys, register, upload
from sqlalchemy.exc import SQLAlchemyError

from securevault.db.session import SessionLocal
from securevault.documents import lifecycle, store
from securevault.models.document import Document
from securevault.storage.s3 import get_storage


def _seed(user_id: str, n: int, **overrides) -> list[str]:
    ids = []
    base = datetime.now(timezone.utc)
    with SessionLocal() as s:
        for i in range(n):
            fields = dict(
                user_id=user_id,
                title=f"doc {i}",
                file_name=f"{user_id}/{i}.txt",
                original_name=f"doc-{i}.txt",
                file_size=10,
                file_type="txt",
                mime_type="text/plain",
                storage_key=f"{user_id}/{i}-seed.txt",
                storage_bucket=BUCKET,
                storage_region="us-east-1",
                tags=[],
                created_at=base - timedelta(minutes=i),
            )
            fields.update(overrides)
            ids.append(store.create_document(s, **fields).id)
    return ids


def test_upload_then_list_scenario(client, s3):
    token, user = register(client)
    r = upload(client, token, content=b"0123456789", content_type="text/plain", category="personal")
    assert r.status_code == 201
    doc = r.json()["document"]
    assert doc["fileSize"] == 10
    assert doc["mimeType"] == "text/plain"
    assert doc["category"] == "personal"
    assert doc["isPublic"] is False
    assert doc["fileType"] == "txt"
    assert doc["formattedSize"] == "10 Bytes"
    assert doc["storageKey"].startswith(f"{user['id']}/")
    assert object_keys(s3) == [doc["storageKey"]]

    r = client.get("/api/documents", headers=auth_headers(token))
    assert r.status_code == 200
    body = r.json()
    assert [d["id"] for d in body["documents"]] == [doc["id"]]
    assert body["statistics"]["totalDocs"] == 1
    assert body["statistics"]["recentCount"] == 1
    assert body["statistics"]["pdfCount"] == 0
    assert body["pagination"] == {"currentPage": 1, "totalPages": 1, "totalItems": 1, "itemsPerPage": 20}


def test_upload_with_metadata(client):
    token, _ = register(client)
    r = upload(
        client, token,
        filename="scan.pdf", content=b"%PDF-1.4 fake", content_type="application/pdf",
        title="Tax return", category="financial", description="2024 filing",
        tags=json.dumps(["tax", "2024"]),
    )
    assert r.status_code == 201
    doc = r.json()["document"]
    assert doc["title"] == "Tax return"
    assert doc["originalName"] == "scan.pdf"
    assert doc["category"] == "financial"
    assert doc["tags"] == ["tax", "2024"]
    assert doc["isPdf"] is True


def test_upload_rejects_disallowed_type(client, storage):
    token, _ = register(client)
    r = upload(client, token, filename="x.exe", content=b"MZ", content_type="application/x-msdownload")
    assert r.status_code == 400
    assert storage.puts == 0


def test_upload_rejects_bad_tags_and_category(client, storage):
    token, _ = register(client)
    assert upload(client, token, tags="not json").status_code == 400
    assert upload(client, token, tags=json.dumps({"a": 1})).status_code == 400
    assert upload(client, token, category="secret").status_code == 400
    assert storage.puts == 0


def test_upload_requires_a_file(client):
    token, _ = register(client)
    r = client.post("/api/documents/upload", headers=auth_headers(token), data={"title": "x"})
    assert r.status_code == 400


def test_oversized_upload_never_reaches_storage(client, storage, s3, monkeypatch):
    monkeypatch.setattr(lifecycle, "max_upload_bytes", lambda: 16)
    token, _ = register(client)
    r = upload(client, token, content=b"x" * 17)
    assert r.status_code == 400
    assert storage.puts == 0
    assert object_keys(s3) == []


def test_empty_upload_is_rejected(client, storage):
    token, _ = register(client)
    assert upload(client, token, content=b"").status_code == 400
    assert storage.puts == 0


def test_metadata_failure_after_blob_write_is_reported_distinctly(client, s3, monkeypatch):
    token, _ = register(client)

    def boom(db, **fields):
        raise SQLAlchemyError("db down")

    monkeypatch.setattr(store, "create_document", boom)
    r = upload(client, token)
    assert r.status_code == 500
    body = r.json()
    assert body["code"] == "metadata_write_failed"
    assert "details" not in body
    # the orphaned blob is left for later reconciliation
    assert len(object_keys(s3)) == 1


def test_list_is_scoped_to_owner(client):
    token_a, user_a = register(client, email="a@x.com")
    token_b, user_b = register(client, email="b@x.com", name="Bob")
    _seed(user_a["id"], 3)
    upload(client, token_b)

    body = client.get("/api/documents", headers=auth_headers(token_a)).json()
    assert body["statistics"]["totalDocs"] == 3
    assert all(d["userId"] == user_a["id"] for d in body["documents"])

    body = client.get("/api/documents", headers=auth_headers(token_b)).json()
    assert body["statistics"]["totalDocs"] == 1


def test_pagination_pages_are_disjoint(client):
    token, user = register(client)
    _seed(user["id"], 45)

    page1 = client.get("/api/documents?page=1&limit=20", headers=auth_headers(token)).json()
    page2 = client.get("/api/documents?page=2&limit=20", headers=auth_headers(token)).json()
    page3 = client.get("/api/documents?page=3&limit=20", headers=auth_headers(token)).json()

    ids1 = {d["id"] for d in page1["documents"]}
    ids2 = {d["id"] for d in page2["documents"]}
    assert len(ids1) == 20 and len(ids2) == 20
    assert ids1.isdisjoint(ids2)
    assert len(page3["documents"]) == 5
    assert page1["pagination"]["totalPages"] == 3
    assert page1["pagination"]["totalItems"] == 45


@pytest.mark.parametrize("query", ["page=0", "limit=0", "limit=101", "category=secret"])
def test_bad_list_params_are_400(client, query):
    token, _ = register(client)
    assert client.get(f"/api/documents?{query}", headers=auth_headers(token)).status_code == 400


def test_category_filter_and_search(client):
    token, user = register(client)
    upload(client, token, filename="lease.pdf", content=b"%PDF", content_type="application/pdf", category="legal")
    upload(client, token, filename="payslip.txt", category="work", description="March salary")
    upload(client, token, filename="notes.txt", title="Doctor visit", category="medical")

    r = client.get("/api/documents?category=legal", headers=auth_headers(token)).json()
    assert [d["originalName"] for d in r["documents"]] == ["lease.pdf"]
    assert r["statistics"]["totalDocs"] == 3

    r = client.get("/api/documents?category=all", headers=auth_headers(token)).json()
    assert len(r["documents"]) == 3

    r = client.get("/api/documents?search=SALARY", headers=auth_headers(token)).json()
    assert [d["originalName"] for d in r["documents"]] == ["payslip.txt"]

    r = client.get("/api/documents?search=doctor", headers=auth_headers(token)).json()
    assert [d["title"] for d in r["documents"]] == ["Doctor visit"]

    r = client.get("/api/documents?search=%25", headers=auth_headers(token)).json()
    assert r["documents"] == []


def test_statistics_recent_window(client):
    token, user = register(client)
    old = datetime.now(timezone.utc) - timedelta(days=30)
    _seed(user["id"], 2, created_at=old)
    upload(client, token, filename="a.pdf", content=b"%PDF", content_type="application/pdf")

    stats = client.get("/api/documents", headers=auth_headers(token)).json()["statistics"]
    assert stats == {"totalDocs": 3, "pdfCount": 1, "recentCount": 1}


def test_categories_list(client):
    token, _ = register(client)
    upload(client, token, category="work")
    upload(client, token, category="work")
    upload(client, token, category="legal")

    r = client.get("/api/documents/categories/list", headers=auth_headers(token))
    assert r.status_code == 200
    assert r.json()["categories"] == [{"category": "work", "count": 2}, {"category": "legal", "count": 1}]


def test_update_document(client):
    token, _ = register(client)
    doc_id = upload(client, token, description="old").json()["document"]["id"]

    r = client.put(
        f"/api/documents/{doc_id}",
        headers=auth_headers(token),
        json={"title": "Renamed", "category": "work", "tags": ["a", "b"]},
    )
    assert r.status_code == 200
    doc = r.json()["document"]
    assert doc["title"] == "Renamed"
    assert doc["category"] == "work"
    assert doc["tags"] == ["a", "b"]
    assert doc["description"] == "old"

    r = client.put(f"/api/documents/{doc_id}", headers=auth_headers(token), json={"description": ""})
    assert r.json()["document"]["description"] == ""


def test_update_validation(client):
    token, _ = register(client)
    doc_id = upload(client, token).json()["document"]["id"]
    assert client.put(f"/api/documents/{doc_id}", headers=auth_headers(token), json={}).status_code == 400
    assert client.put(f"/api/documents/{doc_id}", headers=auth_headers(token), json={"category": "nope"}).status_code == 400
    assert client.put(f"/api/documents/{doc_id}", headers=auth_headers(token), json={"title": ""}).status_code == 400


def test_download_returns_signed_url(client):
    token, _ = register(client)
    doc = upload(client, token, filename="photo.png", content=b"\x89PNG....", content_type="image/png").json()["document"]

    r = client.get(f"/api/documents/{doc['id']}/download", headers=auth_headers(token))
    assert r.status_code == 200
    body = r.json()
    assert body["fileName"] == "photo.png"
    assert body["expiresIn"] == 3600
    assert doc["storageKey"] in body["downloadUrl"]
    assert "X-Amz-Signature" in body["downloadUrl"]


def test_delete_then_get_is_404(client, s3):
    token, _ = register(client)
    doc_id = upload(client, token).json()["document"]["id"]

    r = client.delete(f"/api/documents/{doc_id}", headers=auth_headers(token))
    assert r.status_code == 200
    assert r.json()["storageDeleted"] is True
    assert object_keys(s3) == []

    assert client.get(f"/api/documents/{doc_id}", headers=auth_headers(token)).status_code == 404
    # repeat deletes consistently report not found
    assert client.delete(f"/api/documents/{doc_id}", headers=auth_headers(token)).status_code == 404


def test_delete_survives_blob_failure(client, app, s3):
    token, _ = register(client)
    doc_id = upload(client, token).json()["document"]["id"]

    app.dependency_overrides[get_storage] = lambda: FailingDeleteStorage(bucket=BUCKET, region="us-east-1")
    r = client.delete(f"/api/documents/{doc_id}", headers=auth_headers(token))
    assert r.status_code == 200
    assert r.json()["storageDeleted"] is False

    listed = client.get("/api/documents", headers=auth_headers(token)).json()
    assert doc_id not in {d["id"] for d in listed["documents"]}
    assert listed["statistics"]["totalDocs"] == 0


def test_storage_key_is_never_reused(client):
    token, _ = register(client)
    keys = {upload(client, token).json()["document"]["storageKey"] for _ in range(5)}
    assert len(keys) == 5
    with SessionLocal() as s:
        assert s.query(Document).count() == 5


def test_oversized_body_is_refused_before_the_form_is_parsed(client, storage, monkeypatch):
    from securevault.documents import routes

    seen = []
    real_check = routes.check_upload
    monkeypatch.setattr(routes, "check_upload", lambda *a: seen.append(a) or real_check(*a))
    monkeypatch.setattr(lifecycle, "max_upload_bytes", lambda: 16)
    token, _ = register(client)

    r = upload(client, token, content=b"x" * (128 * 1024))
    assert r.status_code == 400
    assert r.json()["code"] == "validation_error"
    assert seen == []
    assert storage.puts == 0


def test_declared_length_over_the_cap_is_refused(client, storage):
    token, _ = register(client)
    headers = {**auth_headers(token), "Content-Length": str(lifecycle.max_upload_bytes() * 2)}
    r = client.post(
        "/api/documents/upload",
        headers=headers,
        files={"file": ("notes.txt", b"0123456789", "text/plain")},
    )
    assert r.status_code == 400
    assert storage.puts == 0


def test_upload_without_content_length_is_refused(client, storage):
    token, _ = register(client)
    r = client.post("/api/documents/upload", headers=auth_headers(token), content=iter([b"chunk"]))
    assert r.status_code == 411
    assert r.json()["code"] == "length_required"
    assert storage.puts == 0


def test_overlong_filename_is_rejected_before_storage(client, storage, s3):
    token, _ = register(client)
    r = upload(client, token, filename="a" * 300 + ".txt")
    assert r.status_code == 400
    assert "File name" in r.json()["error"]
    assert storage.puts == 0
    assert object_keys(s3) == []


def test_odd_extension_is_dropped_from_key_and_type(client):
    token, _ = register(client)
    r = upload(client, token, filename="notes." + "x" * 200)
    assert r.status_code == 201, r.text
    doc = r.json()["document"]
    assert doc["fileType"] == ""
    assert len(doc["fileName"]) < 100
