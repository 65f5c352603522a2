# API endpoints
from . import auth, issues, comments, health

__all__ = ["auth", "issues", "comments", "health"]
