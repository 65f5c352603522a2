"""
Campus Connect API Client
=========================

Async wrapper over the REST surface served under ``/api``.

Every call returns the decoded JSON body. Non-2xx responses raise
``ApiError`` carrying the status code and the server's ``message``.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Tuple

import httpx


DEFAULT_BASE_URL = "http://localhost:5000/api"


class ApiError(Exception):
    """A request the server answered with an error status"""

    def __init__(self, status: int, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.data = data or {}

    def __repr__(self):
        return f"ApiError(status={self.status}, message={self.message!r})"


@dataclass(frozen=True)
class IssueQuery:
    """Filter criteria for listing issues. Unset fields are not sent."""
    status: Optional[str] = None
    category: Optional[str] = None
    department: Optional[str] = None

    def params(self) -> Dict[str, str]:
        return {
            key: value
            for key, value in (
                ("status", self.status),
                ("category", self.category),
                ("department", self.department),
            )
            if value
        }


class CampusApiClient:
    """
    Async client for the Campus Connect API.

    Usage:
        async with CampusApiClient("http://localhost:5000/api") as api:
            user = await api.login("a@b.edu", "secret")
            issues = await api.list_issues(IssueQuery(status="pending"))
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self._client.aclose()

    def set_token(self, token: Optional[str]):
        self.token = token

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = await self._client.request(method, path, headers=self._get_headers(), **kwargs)

        try:
            data = response.json()
        except ValueError:
            data = {"message": response.text or response.reason_phrase}

        if response.is_error:
            message = data.get("message") if isinstance(data, dict) else None
            raise ApiError(response.status_code, message or response.reason_phrase, data if isinstance(data, dict) else None)

        return data

    # ==================== AUTH ====================

    async def send_otp(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/auth/send-otp", json=payload)

    async def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        """Returns ``{"success", "message", "user"}``; ``user`` carries the token"""
        return await self._request("POST", "/auth/verify-otp", json={"email": email, "otp": otp})

    async def register(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/auth/register", json=payload)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/login", json={"email": email, "password": password})

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/me")

    async def update_profile(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", "/auth/profile", json=changes)

    # ==================== ISSUES ====================

    async def list_issues(self, query: Optional[IssueQuery] = None) -> List[Dict[str, Any]]:
        params = query.params() if query else {}
        body = await self._request("GET", "/issues", params=params)
        return body["data"]

    async def list_my_issues(self) -> List[Dict[str, Any]]:
        body = await self._request("GET", "/issues/my-issues")
        return body["data"]

    async def get_issue(self, issue_id: str) -> Dict[str, Any]:
        body = await self._request("GET", f"/issues/{issue_id}")
        return body["data"]

    async def create_issue(
        self,
        data: Dict[str, Any],
        image: Optional[Tuple[str, bytes, str]] = None,
    ) -> Dict[str, Any]:
        """
        Report an issue. ``image`` is ``(filename, content, content_type)``.
        """
        form = {key: value for key, value in data.items() if value is not None}
        files = {"image": image} if image else None
        body = await self._request("POST", "/issues", data=form, files=files)
        return body["data"]

    async def update_status(self, issue_id: str, status: str) -> Dict[str, Any]:
        body = await self._request("PUT", f"/issues/{issue_id}/status", json={"status": status})
        return body["data"]

    async def add_comment(self, issue_id: str, text: str) -> Dict[str, Any]:
        """Append to the issue's thread; returns the whole updated issue"""
        body = await self._request("POST", f"/issues/{issue_id}/comments", json={"text": text})
        return body["data"]

    async def delete_issue(self, issue_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/issues/{issue_id}")

    # ==================== STANDALONE COMMENTS ====================

    async def post_comment(self, issue_id: str, content: str) -> Dict[str, Any]:
        body = await self._request("POST", f"/issues/{issue_id}/comments", json={"content": content})
        return body["data"]

    async def list_comments(self, issue_id: str) -> List[Dict[str, Any]]:
        body = await self._request("GET", f"/issues/{issue_id}/comments")
        return body["data"]

    async def delete_comment(self, comment_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/comments/{comment_id}")

    # ==================== ADMIN ====================

    async def analytics(self) -> Dict[str, Any]:
        body = await self._request("GET", "/admin/analytics")
        return body["data"]

    async def list_users(self) -> List[Dict[str, Any]]:
        body = await self._request("GET", "/admin/users")
        return body["data"]

    async def delete_user(self, user_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/admin/users/{user_id}")

    async def health(self) -> Dict[str, Any]:
        return await self._request("GET", "/health")
