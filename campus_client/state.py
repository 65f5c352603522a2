"""
Client-side state containers
============================

``AuthStore`` and ``IssuesStore`` hold an immutable state snapshot and
replace it through a pure reducer on every action. Both talk to a
backend exposing CampusApiClient's coroutines, so a MockBackend can be
swapped in for the real API.

Failures are recorded in ``state.error`` and re-raised, except for
``IssuesStore.fetch_issues`` which leaves an empty list behind instead.
"""

import inspect
import logging
from dataclasses import dataclass, replace
from typing import Optional, Dict, Any, Tuple, Callable, Union, Awaitable

import httpx

from campus_client.api import ApiError, IssueQuery


logger = logging.getLogger(__name__)

LEGACY_ROLES = {"student": "user", "faculty": "user"}

CLIENT_ERRORS = (ApiError, httpx.HTTPError)


def normalize_role(role: Optional[str]) -> Optional[str]:
    """Map pre-authority role names onto ``user``"""
    if role is None:
        return None
    role = role.strip().lower()
    return LEGACY_ROLES.get(role, role)


def normalize_user(data: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[str]]:
    """Split a user payload into (user, token) with the role normalised"""
    user = {key: value for key, value in data.items() if key != "token"}
    user["role"] = normalize_role(user.get("role"))
    if "id" not in user and "_id" in user:
        user["id"] = user["_id"]
    return user, data.get("token")


def _error_message(error: Exception, fallback: str) -> str:
    if isinstance(error, ApiError):
        return error.message
    return str(error) or fallback


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None


# ==================== AUTH ====================

@dataclass(frozen=True)
class AuthState:
    user: Optional[Dict[str, Any]] = None
    token: Optional[str] = None
    is_authenticated: bool = False
    loading: bool = False
    error: Optional[str] = None


def auth_reducer(state: AuthState, action: Action) -> AuthState:
    if action.type in ("LOGIN_START", "REGISTER_START", "UPDATE_PROFILE_START"):
        return replace(state, loading=True, error=None)

    if action.type in ("LOGIN_SUCCESS", "REGISTER_SUCCESS"):
        return replace(
            state,
            user=action.payload["user"],
            token=action.payload["token"],
            is_authenticated=True,
            loading=False,
            error=None,
        )

    if action.type == "UPDATE_PROFILE_SUCCESS":
        return replace(
            state,
            user=action.payload["user"],
            token=action.payload["token"] or state.token,
            loading=False,
            error=None,
        )

    if action.type in ("LOGIN_FAILURE", "REGISTER_FAILURE", "UPDATE_PROFILE_FAILURE"):
        return replace(state, loading=False, error=action.payload)

    if action.type == "LOGOUT":
        return AuthState()

    if action.type == "CLEAR_ERROR":
        return replace(state, error=None)

    return state


CodeSource = Callable[[str], Union[str, Awaitable[str]]]


class AuthStore:
    """
    Session state for one client.

    Usage:
        store = AuthStore(CampusApiClient())
        await store.login("a@b.edu", "secret")
        store.state.is_authenticated  # True
    """

    def __init__(self, backend):
        self.backend = backend
        self.state = AuthState()

    def dispatch(self, action: Action) -> AuthState:
        self.state = auth_reducer(self.state, action)
        return self.state

    def _signed_in(self, kind: str, data: Dict[str, Any]) -> Dict[str, Any]:
        user, token = normalize_user(data)
        self.backend.set_token(token)
        self.dispatch(Action(f"{kind}_SUCCESS", {"user": user, "token": token}))
        return user

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        self.dispatch(Action("LOGIN_START"))
        try:
            data = await self.backend.login(email, password)
        except CLIENT_ERRORS as e:
            self.dispatch(Action("LOGIN_FAILURE", _error_message(e, "Login failed")))
            raise
        return self._signed_in("LOGIN", data)

    async def send_otp(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """First registration step: ask the server to email a code"""
        self.dispatch(Action("REGISTER_START"))
        try:
            return await self.backend.send_otp(payload)
        except CLIENT_ERRORS as e:
            self.dispatch(Action("REGISTER_FAILURE", _error_message(e, "Registration failed")))
            raise

    async def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        """Second registration step: exchange the code for a session"""
        if not self.state.loading:
            self.dispatch(Action("REGISTER_START"))
        try:
            data = await self.backend.verify_otp(email, otp)
        except CLIENT_ERRORS as e:
            self.dispatch(Action("REGISTER_FAILURE", _error_message(e, "Registration failed")))
            raise
        return self._signed_in("REGISTER", data["user"])

    async def register(self, payload: Dict[str, Any], read_code: CodeSource) -> Dict[str, Any]:
        """
        Full OTP registration.

        ``read_code`` receives the normalised email once the code has been
        sent and returns (or resolves to) the code the user typed.
        """
        sent = await self.send_otp(payload)
        code = read_code(sent["email"])
        if inspect.isawaitable(code):
            code = await code
        return await self.verify_otp(sent["email"], code)

    async def update_profile(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        self.dispatch(Action("UPDATE_PROFILE_START"))
        try:
            data = await self.backend.update_profile(changes)
        except CLIENT_ERRORS as e:
            self.dispatch(Action("UPDATE_PROFILE_FAILURE", _error_message(e, "Profile update failed")))
            raise
        user, token = normalize_user(data)
        if token:
            self.backend.set_token(token)
        self.dispatch(Action("UPDATE_PROFILE_SUCCESS", {"user": user, "token": token}))
        return user

    def logout(self):
        self.backend.set_token(None)
        self.dispatch(Action("LOGOUT"))

    def clear_error(self):
        self.dispatch(Action("CLEAR_ERROR"))


# ==================== ISSUES ====================

@dataclass(frozen=True)
class IssuesState:
    issues: Tuple[Dict[str, Any], ...] = ()
    selected: Optional[Dict[str, Any]] = None
    loading: bool = False
    error: Optional[str] = None


def _issue_id(issue: Dict[str, Any]) -> Optional[str]:
    return issue.get("id") or issue.get("_id")


def issues_reducer(state: IssuesState, action: Action) -> IssuesState:
    if action.type == "FETCH_START":
        return replace(state, loading=True, error=None)

    if action.type == "FETCH_SUCCESS":
        return replace(state, issues=tuple(action.payload), loading=False)

    if action.type == "FETCH_FAILURE":
        return replace(state, issues=(), loading=False, error=action.payload)

    if action.type == "SELECT_SUCCESS":
        return replace(state, selected=action.payload, loading=False)

    if action.type == "CREATE_SUCCESS":
        return replace(state, issues=(action.payload,) + state.issues, loading=False)

    if action.type == "UPDATE_SUCCESS":
        updated = action.payload
        target = _issue_id(updated)
        issues = tuple(updated if _issue_id(i) == target else i for i in state.issues)
        selected = state.selected
        if selected is not None and _issue_id(selected) == target:
            selected = updated
        return replace(state, issues=issues, selected=selected, loading=False)

    if action.type == "REQUEST_FAILURE":
        return replace(state, loading=False, error=action.payload)

    if action.type == "CLEAR_ERROR":
        return replace(state, error=None)

    return state


class IssuesStore:
    """
    Issue list state for one client.

    Filters are passed to each ``fetch_issues`` call and are not kept.
    Status changes and comments replace the matching issue with the
    server's copy; the rest of the snapshot is reused as is.
    """

    def __init__(self, backend):
        self.backend = backend
        self.state = IssuesState()

    def dispatch(self, action: Action) -> IssuesState:
        self.state = issues_reducer(self.state, action)
        return self.state

    async def fetch_issues(self, filters: Optional[IssueQuery] = None) -> Tuple[Dict[str, Any], ...]:
        self.dispatch(Action("FETCH_START"))
        try:
            issues = await self.backend.list_issues(filters or IssueQuery())
        except CLIENT_ERRORS as e:
            logger.warning(f"Could not fetch issues: {e}")
            self.dispatch(Action("FETCH_FAILURE", _error_message(e, "Failed to fetch issues")))
            return self.state.issues
        self.dispatch(Action("FETCH_SUCCESS", issues))
        return self.state.issues

    async def select_issue(self, issue_id: str) -> Dict[str, Any]:
        self.dispatch(Action("FETCH_START"))
        try:
            issue = await self.backend.get_issue(issue_id)
        except CLIENT_ERRORS as e:
            self.dispatch(Action("REQUEST_FAILURE", _error_message(e, "Failed to load issue")))
            raise
        self.dispatch(Action("SELECT_SUCCESS", issue))
        return issue

    async def create_issue(self, data: Dict[str, Any], image=None) -> Dict[str, Any]:
        self.dispatch(Action("FETCH_START"))
        try:
            issue = await self.backend.create_issue(data, image)
        except CLIENT_ERRORS as e:
            self.dispatch(Action("REQUEST_FAILURE", _error_message(e, "Failed to create issue")))
            raise
        self.dispatch(Action("CREATE_SUCCESS", issue))
        return issue

    async def update_status(self, issue_id: str, status: str) -> Dict[str, Any]:
        self.dispatch(Action("FETCH_START"))
        try:
            issue = await self.backend.update_status(issue_id, status)
        except CLIENT_ERRORS as e:
            self.dispatch(Action("REQUEST_FAILURE", _error_message(e, "Failed to update status")))
            raise
        self.dispatch(Action("UPDATE_SUCCESS", issue))
        return issue

    async def add_comment(self, issue_id: str, text: str) -> Dict[str, Any]:
        self.dispatch(Action("FETCH_START"))
        try:
            issue = await self.backend.add_comment(issue_id, text)
        except CLIENT_ERRORS as e:
            self.dispatch(Action("REQUEST_FAILURE", _error_message(e, "Failed to add comment")))
            raise
        self.dispatch(Action("UPDATE_SUCCESS", issue))
        return issue

    def clear_error(self):
        self.dispatch(Action("CLEAR_ERROR"))
