"""
Amadeus API client.

Handles the OAuth2 client-credentials exchange, caches the bearer token on
the instance until shortly before it expires, and paces outbound calls
through an injected RateLimiter.
"""
import asyncio
import httpx
import logging
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Optional

from vandra.config import get_settings
from vandra.services.rate_limit import RateLimiter, MinIntervalRateLimiter

logger = logging.getLogger(__name__)

# Refresh this long before the provider's declared expiry
TOKEN_EXPIRY_MARGIN_SECONDS = 300


class ProviderError(Exception):
    """A failed call to the flight-offer provider."""

    def __init__(self, message: str, code: str = "UNKNOWN", status: int = 500, details: Any = None):
        super().__init__(message)
        self.code = code
        self.status = status
        self.details = details

    @classmethod
    def from_payload(cls, payload: Any, http_status: Optional[int] = None) -> "ProviderError":
        """Build from the provider's {"errors": [{code, detail, status}]} envelope."""
        errors = payload.get("errors") if isinstance(payload, dict) else None
        first = errors[0] if errors else {}
        return cls(
            first.get("detail") or "Amadeus API error",
            code=str(first.get("code") or "UNKNOWN"),
            status=first.get("status") or http_status or 500,
            details=payload,
        )

    def __repr__(self) -> str:
        return f"ProviderError(code={self.code!r}, status={self.status}, message={str(self)!r})"


class AmadeusClient:
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        settings = get_settings()
        self.client_id = client_id if client_id is not None else settings.amadeus_api_key
        self.client_secret = client_secret if client_secret is not None else settings.amadeus_api_secret
        self.base_url = (base_url or settings.amadeus_base_url).rstrip("/")
        self.rate_limiter = rate_limiter or MinIntervalRateLimiter(settings.provider_min_interval_seconds)
        self.timeout = timeout
        self._transport = transport
        self._token: Optional[str] = None
        self._token_expires: Optional[datetime] = None
        self._token_lock = asyncio.Lock()

    def is_available(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _http_client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self.timeout, transport=self._transport)

    def _has_valid_token(self) -> bool:
        return bool(self._token and self._token_expires and datetime.utcnow() < self._token_expires)

    async def get_access_token(self) -> str:
        if self._has_valid_token():
            return self._token

        # Concurrent callers share one token exchange
        async with self._token_lock:
            if self._has_valid_token():
                return self._token
            return await self._fetch_token()

    async def _fetch_token(self) -> str:
        if not self.is_available():
            raise ProviderError(
                "Amadeus API credentials not configured",
                code="CONFIG_MISSING",
                status=500,
            )

        async with self._http_client(timeout=10.0) as client:
            response = await client.post(
                f"{self.base_url}/v1/security/oauth2/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
            )

        if response.status_code >= 400:
            logger.error(f"Amadeus auth failed: HTTP {response.status_code} {response.text[:200]}")
            raise ProviderError(
                "Failed to authenticate with Amadeus",
                code="AUTH_FAILED",
                status=response.status_code,
                details=response.text,
            )

        data = response.json()
        self._token = data["access_token"]
        expires_in = int(data.get("expires_in", 1799))
        self._token_expires = datetime.utcnow() + timedelta(
            seconds=expires_in - TOKEN_EXPIRY_MARGIN_SECONDS
        )
        return self._token

    async def request(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        method: str = "GET",
        json: Optional[dict] = None,
    ) -> dict:
        """Call an API endpoint with the current bearer token. Raises ProviderError on non-2xx."""
        token = await self.get_access_token()

        try:
            async with self._http_client() as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{endpoint}",
                    params=params,
                    json=json,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.RequestError as e:
            raise ProviderError(
                f"Amadeus request failed: {e}",
                code="NETWORK_ERROR",
                status=503,
            ) from e

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            logger.error(f"Amadeus API error on {endpoint}: HTTP {response.status_code} {payload}")
            raise ProviderError.from_payload(payload, http_status=response.status_code)

        return response.json()

    async def request_with_rate_limit(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        method: str = "GET",
        json: Optional[dict] = None,
    ) -> dict:
        await self.rate_limiter.acquire()
        return await self.request(endpoint, params=params, method=method, json=json)


@lru_cache
def get_amadeus_client() -> AmadeusClient:
    """Process-wide client; searches and monitor runs share its token and rate gate."""
    return AmadeusClient()
