# src/api_client/core/credentials.py
"""
Стратегии аутентификации транспорта.

Закрытый вариант, выбирается при создании клиента и дальше не меняется:
- DefaultIdentity - без явных учётных данных (транспорт берёт окружение, ~/.netrc)
- ImpersonatedCredential - одна учётная запись для всех запросов
- CredentialCache - учётные записи по (префикс URI, схема)

Сами протоколы (Basic, Digest) реализуют requests и httpx; здесь только
выбор нужного auth-объекта.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Generator, Mapping, Optional, Tuple, Union

import httpx
import requests
from requests.auth import AuthBase, HTTPBasicAuth, HTTPDigestAuth

from .exceptions import ConfigurationError


class AuthScheme(str, Enum):
    """Поддерживаемые схемы аутентификации."""
    BASIC = "basic"
    DIGEST = "digest"

    @classmethod
    def parse(cls, value: Union[str, "AuthScheme"]) -> "AuthScheme":
        """
        Привести строку к AuthScheme.

        Raises:
            ConfigurationError: Схема не поддерживается транспортом
                (NTLM, Kerberos, Negotiate и т.п.)
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            supported = ", ".join(scheme.value for scheme in cls)
            raise ConfigurationError(
                f"Unsupported auth scheme: {value!r}. Supported: {supported}"
            ) from None


@dataclass(frozen=True)
class NetworkCredential:
    """
    Учётные данные пользователя.

    Args:
        username: Имя пользователя
        password: Пароль (не попадает в repr)
        domain: Домен (передаётся как DOMAIN\\username)
    """
    username: str
    password: str = field(repr=False)
    domain: Optional[str] = None

    @property
    def qualified_username(self) -> str:
        if self.domain:
            return f"{self.domain}\\{self.username}"
        return self.username


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СТРАТЕГИИ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class DefaultIdentity:
    """Учётные данные окружения (для requests - ~/.netrc через trust_env)."""

    kind = "default"


@dataclass(frozen=True)
class ImpersonatedCredential:
    """
    Одна учётная запись для всех запросов клиента.

    Example:
        >>> ImpersonatedCredential(NetworkCredential("qa-bot", "s3cret"))
        >>> ImpersonatedCredential(NetworkCredential("qa-bot", "s3cret"), scheme="digest")
    """
    credential: NetworkCredential
    scheme: AuthScheme = AuthScheme.BASIC

    kind = "impersonated"

    def __post_init__(self):
        object.__setattr__(self, 'scheme', AuthScheme.parse(self.scheme))


@dataclass(frozen=True)
class CredentialCache:
    """
    Кеш учётных данных по ключу (префикс URI, схема).

    Для запроса выбирается запись с самым длинным совпавшим префиксом;
    при равной длине Basic предпочитается Digest (Basic отправляется
    сразу, без challenge).

    Example:
        >>> cache = CredentialCache({
        ...     ("https://api.example.com", "basic"): NetworkCredential("reader", "pw"),
        ...     ("https://api.example.com/admin", "digest"): NetworkCredential("admin", "pw"),
        ... })
    """
    entries: Mapping[Tuple[str, AuthScheme], NetworkCredential] = field(default_factory=dict)

    kind = "cache"

    def __post_init__(self):
        normalized: Dict[Tuple[str, AuthScheme], NetworkCredential] = {}
        for (prefix, scheme), credential in dict(self.entries).items():
            normalized[(prefix.strip().rstrip("/"), AuthScheme.parse(scheme))] = credential
        object.__setattr__(self, 'entries', MappingProxyType(normalized))

    def add(self, prefix: str, scheme: Union[str, AuthScheme], credential: NetworkCredential) -> "CredentialCache":
        """Вернуть новый кеш с добавленной записью."""
        entries = dict(self.entries)
        entries[(prefix, scheme)] = credential
        return CredentialCache(entries)

    def lookup(self, url: str) -> Optional[Tuple[AuthScheme, NetworkCredential]]:
        """
        Найти учётные данные для URL.

        Returns:
            (схема, учётные данные) или None
        """
        best: Optional[Tuple[int, int, AuthScheme, NetworkCredential]] = None
        for (prefix, scheme), credential in self.entries.items():
            if not _matches_prefix(url, prefix):
                continue
            rank = (len(prefix), 1 if scheme is AuthScheme.BASIC else 0)
            if best is None or rank > best[:2]:
                best = (rank[0], rank[1], scheme, credential)

        if best is None:
            return None
        return best[2], best[3]

    def __len__(self) -> int:
        return len(self.entries)


CredentialStrategy = Union[DefaultIdentity, ImpersonatedCredential, CredentialCache]


def _matches_prefix(url: str, prefix: str) -> bool:
    if not url.lower().startswith(prefix.lower()):
        return False
    # "https://api.example.com/admin" не должен совпадать с ".../administrator"
    rest = url[len(prefix):]
    return not rest or rest[0] in "/?#"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REQUESTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class CredentialCacheAuth(AuthBase):
    """
    requests auth для CredentialCache.

    Basic заголовок добавляется сразу (pre-authentication), Digest
    делегируется HTTPDigestAuth, который отвечает на 401 challenge.
    """

    def __init__(self, cache: CredentialCache):
        self.cache = cache
        self._digest: Dict[NetworkCredential, HTTPDigestAuth] = {}
        self._lock = threading.Lock()

    def _digest_for(self, credential: NetworkCredential) -> HTTPDigestAuth:
        # HTTPDigestAuth хранит nonce в thread-local, один объект на учётку
        with self._lock:
            if credential not in self._digest:
                self._digest[credential] = HTTPDigestAuth(credential.qualified_username, credential.password)
            return self._digest[credential]

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        match = self.cache.lookup(r.url or "")
        if match is None:
            return r

        scheme, credential = match
        if scheme is AuthScheme.BASIC:
            return HTTPBasicAuth(credential.qualified_username, credential.password)(r)
        return self._digest_for(credential)(r)


def build_requests_auth(strategy: Optional[CredentialStrategy]) -> Optional[AuthBase]:
    """
    Построить auth-объект requests для стратегии.

    Returns:
        AuthBase или None для DefaultIdentity
    """
    if strategy is None or isinstance(strategy, DefaultIdentity):
        return None

    if isinstance(strategy, ImpersonatedCredential):
        credential = strategy.credential
        if strategy.scheme is AuthScheme.BASIC:
            return HTTPBasicAuth(credential.qualified_username, credential.password)
        return HTTPDigestAuth(credential.qualified_username, credential.password)

    if isinstance(strategy, CredentialCache):
        return CredentialCacheAuth(strategy)

    raise ConfigurationError(f"Unknown credential strategy: {type(strategy).__name__}")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# HTTPX
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class HttpxCredentialCacheAuth(httpx.Auth):
    """httpx auth для CredentialCache (та же политика, что и CredentialCacheAuth)."""

    def __init__(self, cache: CredentialCache):
        self.cache = cache

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        match = self.cache.lookup(str(request.url))
        if match is None:
            yield request
            return

        scheme, credential = match
        if scheme is AuthScheme.BASIC:
            auth: httpx.Auth = httpx.BasicAuth(credential.qualified_username, credential.password)
        else:
            auth = httpx.DigestAuth(credential.qualified_username, credential.password)
        yield from auth.auth_flow(request)


def build_httpx_auth(strategy: Optional[CredentialStrategy]) -> Optional[httpx.Auth]:
    """
    Построить auth-объект httpx для стратегии.

    Returns:
        httpx.Auth или None для DefaultIdentity
    """
    if strategy is None or isinstance(strategy, DefaultIdentity):
        return None

    if isinstance(strategy, ImpersonatedCredential):
        credential = strategy.credential
        if strategy.scheme is AuthScheme.BASIC:
            return httpx.BasicAuth(credential.qualified_username, credential.password)
        return httpx.DigestAuth(credential.qualified_username, credential.password)

    if isinstance(strategy, CredentialCache):
        return HttpxCredentialCacheAuth(strategy)

    raise ConfigurationError(f"Unknown credential strategy: {type(strategy).__name__}")
