"""Authentication module: session users and permission gates."""

from contribution_review.auth.middleware import (
    get_user,
    require_authenticated_user,
    require_donor,
    require_permission,
    require_reviewer,
)

__all__ = [
    "get_user",
    "require_authenticated_user",
    "require_donor",
    "require_permission",
    "require_reviewer",
]
