"""Tests for the authentication middleware."""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from contribution_review.auth.middleware import (
    get_user,
    has_permission,
    require_authenticated_user,
    require_permission,
)


def _request(session):
    request = MagicMock()
    request.scope = {} if session is None else {"session": session}
    request.session = session
    return request


def test_get_user_returns_none_without_session() -> None:
    assert get_user(_request(None)) is None


def test_get_user_returns_none_for_empty_session() -> None:
    assert get_user(_request({})) is None


def test_get_user_returns_user_from_session() -> None:
    assert get_user(_request({"user": {"name": "Test User"}})) == {"name": "Test User"}


def test_require_authenticated_user_raises_401() -> None:
    with pytest.raises(HTTPException) as exc_info:
        require_authenticated_user(_request({}))
    assert exc_info.value.status_code == 401


def test_admin_role_grants_every_permission() -> None:
    assert has_permission({"roles": ["admin"]}, "contributions:review")


def test_permission_list_is_checked() -> None:
    user = {"permissions": ["contributions:revise"]}
    assert has_permission(user, "contributions:revise")
    assert not has_permission(user, "contributions:review")


def test_require_permission_raises_403() -> None:
    dependency = require_permission("contributions:review")
    with pytest.raises(HTTPException) as exc_info:
        dependency(_request({"user": {"id": "u1", "permissions": []}}))
    assert exc_info.value.status_code == 403


def test_require_permission_returns_user() -> None:
    dependency = require_permission("contributions:review")
    user = {"id": "u1", "permissions": ["contributions:review"]}
    assert dependency(_request({"user": user})) == user
