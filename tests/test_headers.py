"""Security headers on every response, including gate rejections."""

from conftest import register

EXPECTED = {
    "x-content-type-options": "nosniff",
    "x-frame-options": "DENY",
    "referrer-policy": "no-referrer",
}


def _assert_hardened(response):
    for name, value in EXPECTED.items():
        assert response.headers[name] == value


def test_public_and_authenticated_responses(client):
    _assert_hardened(client.get("/health"))
    token, _ = register(client)
    _assert_hardened(client.get("/api/documents", headers={"Authorization": f"Bearer {token}"}))


def test_rejections_carry_headers(client):
    r = client.get("/api/documents")
    assert r.status_code == 401
    _assert_hardened(r)
    assert "strict-transport-security" not in r.headers
