"""
ScopeTokenBroker: получение bearer-токена под набор capability.

Контракт:
- токены аддитивны: каждый запрос расширяет уже выданный набор capability
- вызывающий запрашивает объединение capability перед многошаговым сценарием
- refresh/expiry не обрабатываются: истёкший токен всплывает ошибкой провайдера
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta
from typing import Protocol

import requests

from party_meetings.common.config import get_settings
from party_meetings.common.errors import ErrCode, ProviderError
from party_meetings.common.logging import get_project_logger
from party_meetings.common.time import utc_now
from party_meetings.domain.enums import Capability
from party_meetings.domain.models import AccessToken

log = get_project_logger()

_SCOPE_BY_CAPABILITY: dict[Capability, str] = {
    Capability.space_creation: "https://www.googleapis.com/auth/meetings.space.created",
    Capability.record_read: "https://www.googleapis.com/auth/meetings.space.readonly",
    Capability.participant_read: "https://www.googleapis.com/auth/meetings.space.readonly",
    Capability.transcript_read: "https://www.googleapis.com/auth/meetings.space.readonly",
    Capability.document_read: "https://www.googleapis.com/auth/drive.readonly",
}


def scopes_for(capabilities: Iterable[Capability]) -> list[str]:
    """Capability -> OAuth scopes (без дублей, в стабильном порядке)."""
    return sorted({_SCOPE_BY_CAPABILITY[c] for c in capabilities})


class ScopeTokenBroker(Protocol):
    def request_token(self, capabilities: Iterable[Capability]) -> AccessToken:
        """Вернуть токен, покрывающий capabilities (и всё выданное ранее)."""
        ...


class OAuthRefreshTokenBroker(ScopeTokenBroker):
    """
    Обмен refresh token на access token с объединением скоупов.
    """

    def __init__(
        self,
        *,
        token_url: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        refresh_token: str | None = None,
        timeout_sec: int | None = None,
    ) -> None:
        s = get_settings()
        self.token_url = (token_url or s.oauth_token_url or "").strip()
        self.client_id = (client_id or s.oauth_client_id or "").strip()
        self.client_secret = (client_secret or s.oauth_client_secret or "").strip()
        self.refresh_token = (refresh_token or s.oauth_refresh_token or "").strip()
        self.timeout_sec = int(timeout_sec if timeout_sec is not None else s.oauth_timeout_sec)
        self._granted: set[Capability] = set()

    def request_token(self, capabilities: Iterable[Capability]) -> AccessToken:
        if not self.refresh_token or not self.client_id:
            raise ProviderError(
                ErrCode.TOKEN_ERROR,
                "OAUTH_CLIENT_ID / OAUTH_REFRESH_TOKEN не настроены",
            )

        wanted = frozenset(self._granted | set(capabilities))
        form = {
            "grant_type": "refresh_token",
            "refresh_token": self.refresh_token,
            "client_id": self.client_id,
            "scope": " ".join(scopes_for(wanted)),
        }
        if self.client_secret:
            form["client_secret"] = self.client_secret

        try:
            resp = requests.post(self.token_url, data=form, timeout=self.timeout_sec)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise ProviderError(
                ErrCode.TOKEN_ERROR,
                "Ошибка получения OAuth токена",
                details={"err": str(e)[:300]},
            ) from e

        value = str((data or {}).get("access_token") or "").strip()
        if not value:
            raise ProviderError(ErrCode.TOKEN_ERROR, "Не удалось получить access_token")

        expires_at = None
        expires_in = (data or {}).get("expires_in")
        if isinstance(expires_in, int | float) and expires_in > 0:
            expires_at = utc_now() + timedelta(seconds=float(expires_in))

        self._granted = set(wanted)
        log.info(
            "oauth_token_acquired",
            extra={"payload": {"capabilities": sorted(c.value for c in wanted)}},
        )
        return AccessToken(value=value, capabilities=wanted, expires_at=expires_at)


class StaticTokenBroker(ScopeTokenBroker):
    """
    Заранее выданный токен (OAUTH_STATIC_TOKEN): считается покрывающим все capability.
    """

    def __init__(self, token: str | None = None) -> None:
        self.token = (token or get_settings().oauth_static_token or "").strip()

    def request_token(self, capabilities: Iterable[Capability]) -> AccessToken:
        _ = capabilities
        if not self.token:
            raise ProviderError(ErrCode.TOKEN_ERROR, "OAUTH_STATIC_TOKEN не настроен")
        return AccessToken(value=self.token, capabilities=frozenset(Capability))


class MockTokenBroker(ScopeTokenBroker):
    """
    Mock-брокер для dev/тестов: выдаёт новый токен на каждый запрос.
    """

    def __init__(self) -> None:
        self.requests: list[frozenset[Capability]] = []
        self._granted: set[Capability] = set()

    def request_token(self, capabilities: Iterable[Capability]) -> AccessToken:
        wanted = frozenset(self._granted | set(capabilities))
        self.requests.append(wanted)
        self._granted = set(wanted)
        return AccessToken(value=f"mock-token-{len(self.requests)}", capabilities=wanted)


def resolve_token_broker() -> ScopeTokenBroker:
    s = get_settings()
    kind = (s.token_broker or "mock").strip().lower()
    if kind == "oauth":
        return OAuthRefreshTokenBroker()
    if kind == "static":
        return StaticTokenBroker()
    if kind == "mock":
        return MockTokenBroker()
    raise ProviderError(
        ErrCode.TOKEN_ERROR,
        f"Неизвестный token broker: {kind}",
        details={"allowed": "oauth,static,mock"},
    )
