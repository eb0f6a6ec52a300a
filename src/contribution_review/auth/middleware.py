"""Session authentication and permission checks for the review API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import HTTPException, Request, status

if TYPE_CHECKING:
    from collections.abc import Callable

REVIEW_PERMISSION = "contributions:review"
REVISE_PERMISSION = "contributions:revise"
ADMIN_ROLE = "admin"


def get_user(request: Request) -> dict[str, Any] | None:
    """Signed-in user stored in the session cookie, or None for anonymous requests."""
    return request.session.get("user") if "session" in request.scope else None


def require_authenticated_user(request: Request) -> dict[str, Any]:
    """Dependency: the signed-in user; anonymous callers get 401."""
    user = get_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in to review contributions",
        )
    return user


def has_permission(user: dict[str, Any], permission: str) -> bool:
    if ADMIN_ROLE in (user.get("roles") or []):
        return True
    return permission in (user.get("permissions") or [])


def require_permission(permission: str) -> Callable[[Request], dict[str, Any]]:
    """Build a dependency that admits only users holding ``permission``."""

    def dependency(request: Request) -> dict[str, Any]:
        user = require_authenticated_user(request)
        if not has_permission(user, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )
        return user

    return dependency


require_reviewer = require_permission(REVIEW_PERMISSION)
require_donor = require_permission(REVISE_PERMISSION)
