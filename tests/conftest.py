"""Shared fixtures: in-memory database, moto-backed S3 and a fresh app per test."""

import os

# settings are read at import time
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_SALT_ROUNDS"] = "4"
os.environ["S3_BUCKET_NAME"] = "test-bucket"
os.environ["S3_BUCKET_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["LOG_LEVEL"] = "WARNING"

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from securevault.db.session import Base, SessionLocal, engine
from securevault.errors import StoreUnavailable
from securevault.main import create_app
from securevault.models import user as _user_models  # noqa: F401
from securevault.storage.s3 import S3Storage, get_storage

BUCKET = "test-bucket"
REGION = "us-east-1"


class FailingDeleteStorage(S3Storage):
    """Blob deletes always fail, as during an S3 outage."""

    def delete(self, key: str) -> None:
        raise StoreUnavailable(details="simulated outage")


class CountingStorage(S3Storage):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.puts = 0

    def put(self, data, key, content_type):
        self.puts += 1
        return super().put(data, key, content_type)


@pytest.fixture(autouse=True)
def db_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def s3():
    with mock_aws():
        client = boto3.client("s3", region_name=REGION)
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def storage(s3):
    return CountingStorage(bucket=BUCKET, region=REGION)


@pytest.fixture
def app(storage):
    app = create_app()
    app.dependency_overrides[get_storage] = lambda: storage
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, email="a@x.com", password="secret1", name="Alice"):
    r = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    body = r.json()
    return body["token"], body["user"]


def upload(client, token, filename="notes.txt", content=b"0123456789", content_type="text/plain", **form):
    form.setdefault("category", "personal")
    return client.post(
        "/api/documents/upload",
        headers=auth_headers(token),
        files={"file": (filename, content, content_type)},
        data=form,
    )


def object_keys(s3_client) -> list[str]:
    resp = s3_client.list_objects_v2(Bucket=BUCKET)
    return [o["Key"] for o in resp.get("Contents", [])]
