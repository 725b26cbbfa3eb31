
import logging
import mimetypes
import re
from pathlib import Path
from typing import Any

import httpx

from paperless.client.auth import AuthContext

log = logging.getLogger(__name__)

AUTH_PATHS = ("/auth/login", "/auth/register")

DEFAULT_MESSAGES = {
    400: "Please check your input and try again",
    401: "Invalid credentials. Please check your email and password.",
    403: "You do not have permission to perform this action",
    404: "The requested resource could not be found",
    409: "This operation conflicts with existing data",
    429: "Too many requests. Please wait a moment and try again",
    500: "An unexpected server error occurred. Please try again later",
}


class ClientError(Exception):
    pass


class ServerUnreachable(ClientError):
    def __init__(self, message: str = "Unable to connect to the server. Please check your connection."):
        super().__init__(message)


class RequestTimeout(ClientError):
    def __init__(self, message: str = "Request timed out. Please try again."):
        super().__init__(message)


class ApiError(ClientError):
    def __init__(self, status_code: int, message: str, details: Any = None):
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(message)


class SessionExpired(ApiError):
    def __init__(self, message: str = "Your session has expired. Please log in again."):
        super().__init__(401, message)


class BearerAuth(httpx.Auth):
    """Attach the context's current token to every outgoing request."""

    def __init__(self, context: AuthContext):
        self.context = context

    def auth_flow(self, request: httpx.Request):
        token = self.context.token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


def _error_from(response: httpx.Response) -> ApiError:
    message, details = None, None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error") or body.get("message")
        details = body.get("details")
    message = message or DEFAULT_MESSAGES.get(response.status_code, "An unexpected error occurred. Please try again")
    return ApiError(response.status_code, message, details)


_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


class ApiClient:
    def __init__(
        self,
        context: AuthContext,
        base_url: str = "http://localhost:4000",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.context = context
        self._http = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            auth=BearerAuth(context),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            log.error("Request timeout: %s %s", method, path)
            raise RequestTimeout() from exc
        except httpx.TransportError as exc:
            log.error("Network error - server may be unreachable: %s", exc)
            raise ServerUnreachable() from exc

        if response.status_code == 401 and path not in AUTH_PATHS:
            self.context.logout()
            error = _error_from(response)
            raise SessionExpired(error.message)
        if response.is_error:
            raise _error_from(response)
        return response

    # auth

    def register(self, username: str, email: str, password: str, department: str) -> dict:
        data = self._request(
            "POST",
            "/auth/register",
            json={"username": username, "email": email, "password": password, "department": department},
        ).json()
        self.context.login(data.get("user"), data.get("token"))
        return data["user"]

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password}).json()
        self.context.login(data.get("user"), data.get("token"))
        return data["user"]

    def logout(self) -> None:
        self.context.logout()

    def refresh_user(self) -> dict:
        user = self._request("GET", "/auth/me").json()
        self.context.refresh(user)
        return user

    def list_users(self) -> list[dict]:
        return self._request("GET", "/auth/users").json()

    # documents

    def list_documents(self, user_id: int | None = None, category: str | None = None, status: str | None = None) -> list[dict]:
        params = {k: v for k, v in {"userId": user_id, "category": category, "status": status}.items() if v is not None}
        return self._request("GET", "/documents", params=params).json()["documents"]

    def get_document(self, doc_id: int) -> dict:
        return self._request("GET", f"/documents/{doc_id}").json()["document"]

    def upload_document(self, path: str | Path, title: str = "", category: str = "other", tags: str = "") -> dict:
        path = Path(path)
        mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with path.open("rb") as fh:
            response = self._request(
                "POST",
                "/documents/upload",
                files={"file": (path.name, fh, mime)},
                data={"title": title, "category": category, "tags": tags},
            )
        return response.json()["document"]

    def update_document(self, doc_id: int, **changes) -> dict:
        body = {k: v for k, v in changes.items() if v is not None}
        return self._request("PATCH", f"/documents/{doc_id}", json=body).json()

    def delete_document(self, doc_id: int) -> str:
        return self._request("DELETE", f"/documents/{doc_id}").json()["message"]

    def download_document(self, doc_id: int, dest_dir: str | Path = ".") -> Path:
        response = self._request("GET", f"/documents/{doc_id}/download")
        match = _FILENAME_RE.search(response.headers.get("content-disposition", ""))
        name = Path(match.group(1)).name if match else f"document-{doc_id}"
        target = Path(dest_dir) / name
        target.write_bytes(response.content)
        return target

    def approve_document(self, doc_id: int, status: str, comments: str = "") -> dict:
        return self._request(
            "POST",
            f"/documents/{doc_id}/approve",
            json={"status": status, "comments": comments},
        ).json()["document"]

    def print_document(self, doc_id: int) -> dict:
        return self._request("GET", f"/documents/{doc_id}/print").json()

    def health(self) -> dict:
        return self._request("GET", "/health").json()
