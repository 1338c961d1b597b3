"""Authentication module for issuer-signed JWT validation against a remote key set."""
import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from uuid import UUID

import httpx
import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWK, PyJWKSet

from core.config import Settings

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

# Every verification failure produces the same response so callers learn nothing
# about which check rejected the token.
UNAUTHENTICATED_DETAIL = "Invalid or missing credentials"


class UnauthenticatedError(Exception):
    """Raised when a bearer token fails any verification check."""

    def __init__(self) -> None:
        super().__init__(UNAUTHENTICATED_DETAIL)


class JWKSUnavailableError(Exception):
    """Raised when the issuer's key set cannot be fetched and no cached copy exists."""


@dataclass(frozen=True)
class IdentityClaims:
    """Verified identity extracted from a token."""

    subject: UUID
    email: str | None
    claims: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class KeySetSnapshot:
    """Immutable view of the issuer's signing keys at one point in time."""

    keys: Mapping[str | None, PyJWK]
    fetched_at: float

    def find(self, kid: str | None) -> PyJWK | None:
        """Look up a key by id; tokens without a kid match a single-key set."""
        if kid is None and len(self.keys) == 1:
            return next(iter(self.keys.values()))
        return self.keys.get(kid)


class JWKSCache:
    """
    Process-wide cache of the issuer's JSON Web Key Set.

    The current snapshot is replaced wholesale on refresh, never mutated, so
    concurrent readers always see a consistent key set. Refreshes happen when
    the snapshot outlives `lifespan`, or when a token names a kid the snapshot
    does not contain (key rotation). Forced refreshes are rate limited by
    `min_refresh_interval` so unknown kids cannot hammer the issuer.
    """

    def __init__(
        self,
        jwks_url: str,
        http_client: httpx.AsyncClient,
        lifespan: float = 3600,
        min_refresh_interval: float = 30,
        fetch_timeout: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.jwks_url = jwks_url
        self._http_client = http_client
        self._lifespan = lifespan
        self._min_refresh_interval = min_refresh_interval
        self._fetch_timeout = fetch_timeout
        self._clock = clock
        self._snapshot: KeySetSnapshot | None = None
        self._failed_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> KeySetSnapshot | None:
        """Current key set snapshot, or None before the first fetch."""
        return self._snapshot

    def _age(self, snapshot: KeySetSnapshot) -> float:
        return self._clock() - snapshot.fetched_at

    def _recently_failed(self) -> bool:
        return (
            self._failed_at is not None
            and self._clock() - self._failed_at < self._min_refresh_interval
        )

    async def get_signing_key(self, kid: str | None) -> PyJWK | None:
        """
        Return the signing key for `kid`, fetching or refreshing the key set as needed.

        Returns None if the key is still unknown after a refresh.
        """
        snapshot = self._snapshot
        if snapshot is None or self._age(snapshot) >= self._lifespan:
            snapshot = await self.refresh(seen=snapshot)

        key = snapshot.find(kid)
        if key is None:
            snapshot = await self.refresh(seen=snapshot, force=True)
            key = snapshot.find(kid)
        return key

    async def refresh(
        self,
        seen: KeySetSnapshot | None = None,
        force: bool = False,
    ) -> KeySetSnapshot:
        """
        Fetch a new key set unless another task already replaced `seen`.

        If the fetch fails while an older snapshot exists, the older snapshot keeps
        serving; only a cache with nothing to fall back on raises. A failed fetch is
        not retried for `min_refresh_interval`, so tasks queued behind it reuse its
        outcome instead of each waiting out their own fetch timeout.
        """
        async with self._lock:
            current = self._snapshot
            if current is not None and current is not seen:
                return current
            if current is not None:
                age = self._age(current)
                if force and age < self._min_refresh_interval:
                    return current
                if not force and age < self._lifespan:
                    return current
            if self._recently_failed():
                if current is None:
                    raise JWKSUnavailableError("JWKS fetch recently failed; retry later")
                return current

            try:
                key_set = await self._fetch()
            except JWKSUnavailableError:
                self._failed_at = self._clock()
                if current is None:
                    raise
                logger.error("Serving stale JWKS after failed refresh from %s", self.jwks_url)
                return current

            snapshot = KeySetSnapshot(
                keys=MappingProxyType({key.key_id: key for key in key_set.keys}),
                fetched_at=self._clock(),
            )
            self._snapshot = snapshot
            self._failed_at = None
            logger.info("Loaded %d signing key(s) from %s", len(snapshot.keys), self.jwks_url)
            return snapshot

    async def _fetch(self) -> PyJWKSet:
        try:
            response = await self._http_client.get(self.jwks_url, timeout=self._fetch_timeout)
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise jwt.PyJWKSetError("JWKS document is not a JSON object")
            return PyJWKSet.from_dict(data)
        except httpx.HTTPError as e:
            logger.error("Failed to fetch JWKS from %s: %s", self.jwks_url, e, exc_info=True)
            raise JWKSUnavailableError(str(e)) from e
        except (jwt.PyJWKSetError, ValueError) as e:
            logger.error("Unusable JWKS payload from %s: %s", self.jwks_url, e)
            raise JWKSUnavailableError(str(e)) from e


class TokenVerifier:
    """Verify bearer tokens issued by the configured identity provider."""

    def __init__(
        self,
        issuer: str,
        key_cache: JWKSCache,
        algorithms: list[str],
        audience: str | None = None,
    ) -> None:
        self.issuer = issuer
        self.key_cache = key_cache
        self._algorithms = algorithms
        self._audience = audience or None

    async def verify(self, token: str) -> IdentityClaims:
        """
        Verify signature, expiry, issuer and audience; return the identity claims.

        Raises:
            UnauthenticatedError: For any verification failure.
            JWKSUnavailableError: If no key set could be obtained at all.
        """
        try:
            header = jwt.get_unverified_header(token)
            signing_key = await self.key_cache.get_signing_key(header.get("kid"))
            if signing_key is None:
                raise jwt.InvalidKeyError(f"No signing key matches kid {header.get('kid')!r}")

            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=self._algorithms,
                issuer=self.issuer,
                audience=self._audience,
                options={
                    "require": ["exp", "iss", "sub"],
                    "verify_aud": self._audience is not None,
                },
            )
        except jwt.PyJWTError as e:
            # Log full details for debugging (server-side only)
            logger.warning("JWT validation failed: %s", e)
            raise UnauthenticatedError() from e

        try:
            subject = UUID(str(payload["sub"]))
        except ValueError as e:
            logger.warning("JWT validation failed: sub claim is not a UUID")
            raise UnauthenticatedError() from e

        return IdentityClaims(
            subject=subject,
            email=payload.get("email"),
            claims=MappingProxyType(dict(payload)),
        )


def build_token_verifier(settings: Settings, http_client: httpx.AsyncClient) -> TokenVerifier:
    """Create a verifier with its own key cache from application settings."""
    key_cache = JWKSCache(
        settings.auth_jwks_url,
        http_client,
        lifespan=settings.jwks_cache_lifespan,
        fetch_timeout=settings.jwks_fetch_timeout,
    )
    return TokenVerifier(
        issuer=settings.auth_issuer,
        key_cache=key_cache,
        algorithms=settings.auth_algorithms,
        audience=settings.auth_audience,
    )


def get_token_verifier(request: Request) -> TokenVerifier:
    """Dependency returning the verifier owned by the application lifespan."""
    return request.app.state.token_verifier


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=UNAUTHENTICATED_DETAIL,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> IdentityClaims:
    """
    Dependency that verifies the bearer token and returns the caller's identity.

    Runs before any database access; every failure is a uniform 401.
    """
    if credentials is None:
        raise _unauthenticated()

    try:
        return await verifier.verify(credentials.credentials)
    except UnauthenticatedError:
        raise _unauthenticated()
    except JWKSUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not validate credentials",
        )
