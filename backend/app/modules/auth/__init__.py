# Authentication module

from app.modules.auth.dependencies import (
    get_current_user,
    get_current_authority,
    require_roles,
)

__all__ = [
    "get_current_user",
    "get_current_authority",
    "require_roles",
]
