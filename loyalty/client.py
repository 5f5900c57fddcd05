# loyalty/client.py
"""
Loyalty profile client.

Fetches the authenticated user's loyalty record from the platform API and
caches it for the session. Fetch failures are logged and degrade to the
last cached profile (or None); callers fall back to a derived profile.

Configuration via environment variables (see app.config):
- LOYALTY_API_BASE_URL: Platform API root
- LOYALTY_API_TIMEOUT: HTTP timeout in seconds (default: 10)
- LOYALTY_CACHE_TTL_SECONDS: Cache lifetime (default: 300)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any, Optional

import httpx

from loyalty.models import LoyaltyProfile
from loyalty.roadmap import derive_profile

logger = logging.getLogger(__name__)

LOYALTY_PATH = "/api/users/loyalty"


@dataclass
class CacheEntry:
    """Cached profile with expiration."""

    profile: LoyaltyProfile
    expires_at: datetime

    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) > self.expires_at


class LoyaltyClient:
    """
    Reads LoyaltyProfile records from the platform API.

    One client per user session. The most recent successful response
    replaces whatever was cached before it.
    """

    DEFAULT_TIMEOUT_SECONDS = 10
    DEFAULT_TTL_SECONDS = 300

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        cache_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Platform API root, e.g. "https://battlenest.example"
            token: Bearer token for the signed-in user, if any
            timeout: HTTP timeout in seconds
            cache_ttl_seconds: How long a fetched profile is reused
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._cache_ttl = timedelta(seconds=cache_ttl_seconds)
        self._transport = transport
        self._cache: Optional[CacheEntry] = None
        self._lock = Lock()

    @property
    def url(self) -> str:
        return f"{self._base_url}{LOYALTY_PATH}"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": "BattleNest-Loyalty/0.1",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def fetch_profile(self, force_refresh: bool = False) -> Optional[LoyaltyProfile]:
        """
        Get the user's loyalty profile.

        Args:
            force_refresh: If True, bypass the cache and refetch

        Returns:
            The server profile, the previously cached one if the fetch fails,
            or None if nothing has been fetched successfully yet.
        """
        if not force_refresh:
            cached = self._get_cached()
            if cached is not None:
                return cached

        profile = self._fetch()
        if profile is None:
            with self._lock:
                return self._cache.profile if self._cache else None

        self._set_cached(profile)
        return profile

    def get_profile_or_fallback(
        self,
        matches_played: Any = 0,
        force_refresh: bool = False,
    ) -> LoyaltyProfile:
        """Server profile when available, otherwise one derived from matches_played."""
        profile = self.fetch_profile(force_refresh=force_refresh)
        if profile is not None:
            return profile
        logger.info("[LOYALTY] Server profile unavailable, deriving from match count")
        return derive_profile(matches_played)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache = None

    def _fetch(self) -> Optional[LoyaltyProfile]:
        """Fetch and parse the profile. Returns None on any failure."""
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(self.url, headers=self._headers())
        except httpx.TimeoutException:
            logger.warning("[LOYALTY] Profile request timed out")
            return None
        except httpx.RequestError as e:
            logger.warning(f"[LOYALTY] Profile request failed: {e}")
            return None

        if response.status_code != 200:
            logger.warning(f"[LOYALTY] Profile API returned {response.status_code}")
            return None

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"[LOYALTY] Profile response is not JSON: {e}")
            return None

        if not isinstance(payload, dict):
            logger.warning("[LOYALTY] Profile response is not a JSON object")
            return None

        return LoyaltyProfile.from_dict(payload)

    def _get_cached(self) -> Optional[LoyaltyProfile]:
        with self._lock:
            if self._cache is not None and not self._cache.is_expired():
                return self._cache.profile
            return None

    def _set_cached(self, profile: LoyaltyProfile) -> None:
        with self._lock:
            self._cache = CacheEntry(
                profile=profile,
                expires_at=datetime.now(timezone.utc) + self._cache_ttl,
            )
