import json
import os
import httpx
from securevault.client.session import PortalSession

API_BASE_URL = os.getenv("SECUREVAULT_API_URL", "http://127.0.0.1:3001")


class PortalApiError(Exception):
    def __init__(self, status_code: int, message: str, code: str | None = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.code = code


class PortalClient:
    """Thin client for the SecureVault REST API.

    Pass an ``httpx.Client`` (or a FastAPI ``TestClient``) as ``http`` to
    control transport; otherwise one is created for ``base_url``.
    """

    def __init__(self, session: PortalSession, base_url: str = API_BASE_URL, http: httpx.Client | None = None):
        self.session = session
        self.http = http or httpx.Client(base_url=base_url, timeout=60)

    def _headers(self) -> dict:
        if self.session.token:
            return {"Authorization": f"Bearer {self.session.token}"}
        return {}

    def _request(self, method: str, path: str, **kwargs) -> dict:
        r = self.http.request(method, path, headers=self._headers(), **kwargs)
        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = {}
            raise PortalApiError(r.status_code, body.get("error") or r.text, body.get("code"))
        return r.json()

    # --- auth ---
    def register(self, name: str, email: str, password: str) -> dict:
        data = self._request("POST", "/api/auth/register", json={"name": name, "email": email, "password": password})
        self.session.start(data["token"], data["user"])
        return data["user"]

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.session.start(data["token"], data["user"])
        return data["user"]

    def logout(self) -> None:
        try:
            if self.session.token:
                self._request("POST", "/api/auth/logout")
        finally:
            self.session.clear()

    def profile(self) -> dict:
        return self._request("GET", "/api/auth/profile")["user"]

    def update_profile(self, name: str | None = None, email: str | None = None) -> dict:
        body = {k: v for k, v in {"name": name, "email": email}.items() if v is not None}
        user = self._request("PUT", "/api/auth/profile", json=body)["user"]
        self.session.user = user
        self.session.save()
        return user

    def change_password(self, current_password: str, new_password: str) -> None:
        self._request("PUT", "/api/auth/change-password",
                      json={"currentPassword": current_password, "newPassword": new_password})

    # --- documents ---
    def list_documents(self, page: int = 1, limit: int = 20, category: str | None = None, search: str | None = None) -> dict:
        params = {"page": page, "limit": limit}
        if category:
            params["category"] = category
        if search:
            params["search"] = search
        return self._request("GET", "/api/documents", params=params)

    def upload_document(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        title: str | None = None,
        category: str = "personal",
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> dict:
        form = {"category": category}
        if title:
            form["title"] = title
        if description:
            form["description"] = description
        if tags:
            form["tags"] = json.dumps(tags)
        files = {"file": (filename, content, content_type)}
        return self._request("POST", "/api/documents/upload", data=form, files=files)["document"]

    def get_document(self, doc_id: str) -> dict:
        return self._request("GET", f"/api/documents/{doc_id}")["document"]

    def update_document(self, doc_id: str, **changes) -> dict:
        return self._request("PUT", f"/api/documents/{doc_id}", json=changes)["document"]

    def delete_document(self, doc_id: str) -> dict:
        return self._request("DELETE", f"/api/documents/{doc_id}")

    def download_link(self, doc_id: str) -> dict:
        return self._request("GET", f"/api/documents/{doc_id}/download")

    def categories(self) -> list[dict]:
        return self._request("GET", "/api/documents/categories/list")["categories"]
