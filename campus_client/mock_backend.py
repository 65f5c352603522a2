"""
In-memory stand-in for CampusApiClient.

Generates sample users and issues and answers the same coroutines as the
real client after an artificial delay, so the stores can run without a
server. Records use the same camelCase shapes the API sends.
"""

import asyncio
import os
import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List, Tuple

from campus_client.api import ApiError, IssueQuery
from campus_client.state import normalize_role


CATEGORIES = ["maintenance", "canteen", "classroom", "hostel", "transport", "other"]
STATUSES = ["pending", "in-progress", "resolved"]

SAMPLE_DEPARTMENTS = [
    "Computer Science",
    "Electrical Engineering",
    "Mechanical Engineering",
    "Civil Engineering",
    "Business Administration",
    "Mathematics",
]

SAMPLE_TITLES = [
    "Broken projector in classroom",
    "Air conditioning not working",
    "Leaking pipe in hostel bathroom",
    "Poor food quality in canteen",
    "WiFi connectivity issues",
    "Damaged furniture in library",
    "Parking space shortage",
    "Elevator out of order",
    "Dirty washrooms",
    "Insufficient lighting in corridor",
]

MOCK_PASSWORD = "password123"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex[:24]


def _iso(moment: datetime) -> str:
    return moment.isoformat()


class MockBackend:
    """
    Same interface as CampusApiClient, backed by dictionaries.

    Every sample account logs in with ``MOCK_PASSWORD``. OTPs are
    accepted only if they match the last code handed out for the email,
    which is exposed as ``last_otp`` for callers that need it.
    """

    def __init__(self, issue_count: int = 20, delay: float = 0.5, seed: Optional[int] = None):
        self.delay = delay
        self.token: Optional[str] = None
        self.last_otp: Dict[str, str] = {}
        self._random = random.Random(seed)
        self._users: Dict[str, Dict[str, Any]] = {}
        self._passwords: Dict[str, str] = {}
        self._tokens: Dict[str, str] = {}
        self._pending: Dict[str, Dict[str, Any]] = {}
        self._issues: Dict[str, Dict[str, Any]] = {}
        self._seed_users()
        self._seed_issues(issue_count)

    # ==================== SAMPLE DATA ====================

    def _make_user(self, name: str, email: str, role: str, department: str = "",
                   categories: Optional[List[str]] = None, password: str = MOCK_PASSWORD) -> Dict[str, Any]:
        user_id = _new_id()
        stamp = _iso(_now())
        user = {
            "id": user_id,
            "_id": user_id,
            "name": name,
            "email": email.strip().lower(),
            "role": role,
            "department": department,
            "categories": list(categories or []) if role == "authority" else [],
            "avatar": None,
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        self._users[user_id] = user
        self._passwords[user["email"]] = password
        return user

    def _seed_users(self):
        self._make_user("John Doe", "john@campus.edu", "user", "Computer Science")
        self._make_user("Mike Johnson", "mike@campus.edu", "user", "Mechanical Engineering")
        self._make_user("Sarah Wilson", "sarah@campus.edu", "authority", "Civil Engineering",
                        categories=["maintenance", "hostel"])

    def _seed_issues(self, count: int):
        reporters = [u for u in self._users.values() if u["role"] == "user"]
        for index in range(count):
            reporter = self._random.choice(reporters)
            created = _now() - timedelta(days=self._random.randint(0, 30), hours=index)
            issue_id = _new_id()
            self._issues[issue_id] = {
                "id": issue_id,
                "_id": issue_id,
                "title": self._random.choice(SAMPLE_TITLES),
                "description": "Reported during routine use. Please look into it.",
                "category": self._random.choice(CATEGORIES),
                "status": self._random.choice(STATUSES),
                "reporter": self._summary(reporter),
                "department": self._random.choice(SAMPLE_DEPARTMENTS),
                "imageUrl": None,
                "comments": [],
                "createdAt": _iso(created),
                "updatedAt": _iso(created),
            }

    @staticmethod
    def _summary(user: Dict[str, Any]) -> Dict[str, Any]:
        return {key: user[key] for key in ("id", "_id", "name", "email", "role", "department")}

    # ==================== HELPERS ====================

    async def _pause(self):
        if self.delay:
            await asyncio.sleep(self.delay)

    def set_token(self, token: Optional[str]):
        self.token = token

    def _issue_token(self, user: Dict[str, Any]) -> str:
        token = f"mock-{uuid.uuid4().hex}"
        self._tokens[token] = user["id"]
        return token

    def _current_user(self) -> Dict[str, Any]:
        user_id = self._tokens.get(self.token or "")
        if user_id is None or user_id not in self._users:
            raise ApiError(401, "Not authorized, no token" if not self.token else "Not authorized, invalid token")
        return self._users[user_id]

    def _with_token(self, user: Dict[str, Any]) -> Dict[str, Any]:
        return {**user, "token": self._issue_token(user)}

    def _find_issue(self, issue_id: str) -> Dict[str, Any]:
        issue = self._issues.get(issue_id)
        if issue is None:
            raise ApiError(404, "Issue not found")
        return issue

    def _image_url(self, filename: str) -> str:
        """Same shape as the server: /uploads/issue-images/issue-<ms>-<rand><ext>"""
        stamp = int(_now().timestamp() * 1000)
        ext = os.path.splitext(filename)[1]
        return f"/uploads/issue-images/issue-{stamp}-{self._random.randint(0, 10 ** 9)}{ext}"

    def _find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        for user in self._users.values():
            if user["email"] == email:
                return user
        return None

    def _validate_registration(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Returns a copy with the role normalised, as the server stores it"""
        for field in ("name", "email", "password", "role"):
            if not payload.get(field):
                raise ApiError(400, "Please provide all required fields")
        role = normalize_role(payload["role"])
        if role not in ("user", "authority"):
            raise ApiError(400, f"Invalid role: {payload['role']}")
        payload = {**payload, "role": role}
        if payload["role"] == "user" and not payload.get("department"):
            raise ApiError(400, "Department is required for students and faculty")
        if payload["role"] == "authority" and not payload.get("categories"):
            raise ApiError(400, "Authorities must select at least one category")
        if self._find_by_email(payload["email"].strip().lower()):
            raise ApiError(400, "User already exists with this email")
        return payload

    # ==================== AUTH ====================

    async def send_otp(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        await self._pause()
        payload = self._validate_registration(payload)
        email = payload["email"].strip().lower()
        code = f"{self._random.randint(0, 999999):06d}"
        self._pending[email] = dict(payload)
        self.last_otp[email] = code
        return {"success": True, "message": "OTP sent to your email address", "email": email}

    async def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        await self._pause()
        email = (email or "").strip().lower()
        if email not in self._pending or self.last_otp.get(email) != str(otp):
            raise ApiError(400, "Invalid or expired OTP")
        payload = self._pending.pop(email)
        self.last_otp.pop(email, None)
        user = self._make_user(
            payload["name"], email, payload["role"], payload.get("department") or "",
            categories=payload.get("categories"), password=payload["password"],
        )
        return {"success": True, "message": "Registration successful", "user": self._with_token(user)}

    async def register(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        await self._pause()
        payload = self._validate_registration(payload)
        user = self._make_user(
            payload["name"], payload["email"], payload["role"], payload.get("department") or "",
            categories=payload.get("categories"), password=payload["password"],
        )
        return self._with_token(user)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        await self._pause()
        email = (email or "").strip().lower()
        user = self._find_by_email(email)
        if user is None or self._passwords.get(email) != password:
            raise ApiError(401, "Invalid email or password")
        return self._with_token(user)

    async def me(self) -> Dict[str, Any]:
        await self._pause()
        return dict(self._current_user())

    async def update_profile(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        await self._pause()
        user = self._current_user()
        for key in ("name", "department", "avatar"):
            if changes.get(key) is not None:
                user[key] = changes[key]
        if changes.get("email"):
            email = changes["email"].strip().lower()
            other = self._find_by_email(email)
            if other is not None and other["id"] != user["id"]:
                raise ApiError(400, "Email is already in use by another account")
            self._passwords[email] = self._passwords.pop(user["email"])
            user["email"] = email
        if changes.get("password"):
            self._passwords[user["email"]] = changes["password"]
        user["updatedAt"] = _iso(_now())
        return self._with_token(user)

    # ==================== ISSUES ====================

    async def list_issues(self, query: Optional[IssueQuery] = None) -> List[Dict[str, Any]]:
        await self._pause()
        viewer = self._current_user()
        query = query or IssueQuery()
        issues = list(self._issues.values())
        if query.status:
            issues = [i for i in issues if i["status"] == query.status]
        if query.department:
            issues = [i for i in issues if i["department"] == query.department]
        if viewer["role"] == "authority":
            allowed = set(viewer["categories"])
            if query.category:
                allowed &= {query.category}
            issues = [i for i in issues if i["category"] in allowed]
        elif query.category:
            issues = [i for i in issues if i["category"] == query.category]
        return [dict(i) for i in sorted(issues, key=lambda i: i["createdAt"], reverse=True)]

    async def list_my_issues(self) -> List[Dict[str, Any]]:
        await self._pause()
        viewer = self._current_user()
        mine = [i for i in self._issues.values() if i["reporter"] and i["reporter"]["id"] == viewer["id"]]
        return [dict(i) for i in sorted(mine, key=lambda i: i["createdAt"], reverse=True)]

    async def get_issue(self, issue_id: str) -> Dict[str, Any]:
        await self._pause()
        self._current_user()
        return dict(self._find_issue(issue_id))

    async def create_issue(
        self,
        data: Dict[str, Any],
        image: Optional[Tuple[str, bytes, str]] = None,
    ) -> Dict[str, Any]:
        await self._pause()
        reporter = self._current_user()
        if not data.get("title") or not data.get("description") or not data.get("category"):
            raise ApiError(400, "Please provide title, description, and category")
        if data["category"] not in CATEGORIES:
            raise ApiError(400, f"Invalid category: {data['category']}")
        issue_id = _new_id()
        stamp = _iso(_now())
        issue = {
            "id": issue_id,
            "_id": issue_id,
            "title": data["title"].strip(),
            "description": data["description"].strip(),
            "category": data["category"],
            "status": "pending",
            "reporter": self._summary(reporter),
            "department": data.get("department") or reporter["department"],
            "imageUrl": self._image_url(image[0]) if image else None,
            "comments": [],
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        self._issues[issue_id] = issue
        return dict(issue)

    async def update_status(self, issue_id: str, status: str) -> Dict[str, Any]:
        await self._pause()
        user = self._current_user()
        if user["role"] != "authority":
            raise ApiError(403, f"User role '{user['role']}' is not authorized to access this resource")
        if status not in STATUSES:
            raise ApiError(400, "Please provide a valid status: pending, in-progress, or resolved")
        issue = self._find_issue(issue_id)
        if issue["category"] not in user["categories"]:
            raise ApiError(403, "Not authorized to update issues from other categories")
        issue["status"] = status
        issue["updatedAt"] = _iso(_now())
        return dict(issue)

    async def add_comment(self, issue_id: str, text: str) -> Dict[str, Any]:
        await self._pause()
        user = self._current_user()
        if not text or not text.strip():
            raise ApiError(400, "Comment text is required")
        issue = self._find_issue(issue_id)
        comment_id = _new_id()
        issue["comments"] = issue["comments"] + [{
            "id": comment_id,
            "_id": comment_id,
            "user": {key: user[key] for key in ("id", "_id", "name", "email", "role")},
            "text": text.strip(),
            "createdAt": _iso(_now()),
        }]
        return dict(issue)

    async def delete_issue(self, issue_id: str) -> Dict[str, Any]:
        await self._pause()
        user = self._current_user()
        if user["role"] != "authority":
            raise ApiError(403, f"User role '{user['role']}' is not authorized to access this resource")
        self._find_issue(issue_id)
        del self._issues[issue_id]
        return {"success": True, "message": "Issue deleted successfully", "data": {}}

    async def close(self):
        pass
