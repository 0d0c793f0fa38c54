from __future__ import annotations

import pytest

from party_meetings.common.config import get_settings
from party_meetings.common.errors import UnauthorizedError
from party_meetings.common.security import require_auth


@pytest.fixture()
def auth_settings():
    s = get_settings()
    keys = ["app_env", "auth_mode", "api_keys", "service_api_keys"]
    snapshot = {k: getattr(s, k) for k in keys}
    try:
        yield s
    finally:
        for k, v in snapshot.items():
            setattr(s, k, v)


def test_user_and_service_keys(auth_settings) -> None:
    auth_settings.auth_mode = "api_key"
    auth_settings.api_keys = "user-1, user-2"
    auth_settings.service_api_keys = "svc-1"

    assert require_auth(x_api_key="user-2").auth_type == "user_api_key"
    assert require_auth(x_api_key="svc-1").subject == "service"
    with pytest.raises(UnauthorizedError):
        require_auth(x_api_key="bad")
    with pytest.raises(UnauthorizedError):
        require_auth(x_api_key=None)


def test_none_mode_forbidden_in_prod(auth_settings) -> None:
    auth_settings.auth_mode = "none"
    auth_settings.app_env = "dev"
    assert require_auth(x_api_key=None).auth_type == "none"

    auth_settings.app_env = "prod"
    with pytest.raises(UnauthorizedError):
        require_auth(x_api_key=None)
