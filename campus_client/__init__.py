"""
Campus Connect client: API wrapper, in-memory mock and state stores.
"""

from campus_client.api import ApiError, CampusApiClient, IssueQuery
from campus_client.mock_backend import MockBackend
from campus_client.state import (
    Action,
    AuthState,
    AuthStore,
    IssuesState,
    IssuesStore,
    auth_reducer,
    issues_reducer,
    normalize_role,
)

__version__ = "1.0.0"

__all__ = [
    "ApiError",
    "CampusApiClient",
    "IssueQuery",
    "MockBackend",
    "Action",
    "AuthState",
    "AuthStore",
    "IssuesState",
    "IssuesStore",
    "auth_reducer",
    "issues_reducer",
    "normalize_role",
]
