"""
Twitch app-access-token service.

Handles the OAuth client credentials exchange with Twitch, keeps the single
bearer token in memory and performs authenticated Helix requests with one
re-acquire-and-retry when Twitch answers 401.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from aiohttp import ClientError, ClientSession, ClientTimeout
from pydantic import BaseModel, Field

from ..lib.errors import (
    AuthenticationError,
    ErrorContext,
    UnauthorizedError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

QueryParams = Union[Dict[str, Any], Sequence[Tuple[str, Any]]]


class TokenResponse(BaseModel):
    """OAuth token response model."""

    access_token: str = Field(..., description="Access token")
    token_type: str = Field("bearer", description="Token type")
    expires_in: Optional[int] = Field(None, description="Token lifetime in seconds")

    # Twitch's expiry is not trusted; the token is used until a 401 arrives
    issued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class OAuthConfig:
    """OAuth configuration for the Twitch API."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str = "https://id.twitch.tv/oauth2/token",
        api_base_url: str = "https://api.twitch.tv/helix",
        timeout_seconds: float = 10,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.api_base_url = api_base_url
        self.timeout_seconds = timeout_seconds

    def validate(self) -> None:
        """Validate configuration parameters."""
        if not self.client_id or not self.client_id.strip():
            raise ValueError("Client ID is required")

        if not self.client_secret or not self.client_secret.strip():
            raise ValueError("Client secret is required")

        if not self.token_url:
            raise ValueError("Token URL is required")

        if not self.api_base_url:
            raise ValueError("API base URL is required")


class RetryBudget:
    """
    Allows a single token refresh per logical request.

    One budget is created per aggregation call and shared by every Helix
    request that call makes, including parallel fan-out branches.
    """

    def __init__(self, retries: int = 1):
        self._remaining = retries

    def consume(self) -> bool:
        if self._remaining <= 0:
            return False
        self._remaining -= 1
        return True

    @property
    def exhausted(self) -> bool:
        return self._remaining <= 0


class TwitchAuthService:
    """
    Owner of the Twitch app access token.

    The token is acquired lazily, cleared on any failed exchange and on any
    401 from Helix, and never persisted.
    """

    def __init__(self, config: OAuthConfig, session: Optional[ClientSession] = None):
        self.config = config
        self.config.validate()

        self._session = session
        self._owns_session = session is None
        self._current_token: Optional[TokenResponse] = None
        self._token_lock = asyncio.Lock()
        self._request_count = 0
        self._last_request_time: Optional[datetime] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Initialize the HTTP session."""
        if self._session:
            return

        timeout = ClientTimeout(total=self.config.timeout_seconds)
        self._session = ClientSession(
            timeout=timeout,
            headers={"Accept": "application/json"}
        )
        self._owns_session = True
        logger.info("Twitch auth service started")

    async def close(self) -> None:
        """Close the HTTP session and drop the token."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None
        self._current_token = None
        logger.info("Twitch auth service closed")

    @property
    def has_token(self) -> bool:
        return self._current_token is not None

    async def get_access_token(self) -> str:
        """
        Get the cached access token, exchanging credentials if none is held.

        Returns:
            Bearer token value

        Raises:
            AuthenticationError: If the credential exchange fails
        """
        async with self._token_lock:
            if self._current_token:
                return self._current_token.access_token

            logger.info("Requesting new Twitch access token")
            try:
                self._current_token = await self._request_token()
            except AuthenticationError:
                self._current_token = None
                raise

            logger.info("Twitch access token obtained")
            return self._current_token.access_token

    async def ensure_token(self) -> Optional[str]:
        """Like get_access_token but reports failure as None."""
        try:
            return await self.get_access_token()
        except AuthenticationError as e:
            logger.error(f"Could not obtain Twitch access token: {e}")
            return None

    async def invalidate_token(self) -> None:
        """Invalidate current token to force a new exchange on next use."""
        async with self._token_lock:
            self._current_token = None
        logger.info("Twitch access token invalidated")

    async def _request_token(self) -> TokenResponse:
        """Request new access token using client credentials flow."""
        if not self._session:
            raise AuthenticationError("Auth service not started")

        params = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "grant_type": "client_credentials",
        }

        try:
            async with self._session.post(self.config.token_url, params=params) as response:
                self._record_request()

                if response.status != 200:
                    error_text = await response.text()
                    logger.warning(f"Token request failed with status {response.status}: {error_text[:200]}")
                    raise AuthenticationError(f"Token request failed: HTTP {response.status}")

                token_data = await response.json(content_type=None)
                return TokenResponse(**token_data)

        except (ClientError, asyncio.TimeoutError) as e:
            raise AuthenticationError(f"Token request failed: {e}", cause=e) from e
        except ValueError as e:
            # Covers malformed JSON and pydantic validation failures
            raise AuthenticationError(f"Malformed token response: {e}", cause=e) from e

    async def make_authenticated_request(
        self,
        endpoint: str,
        params: Optional[QueryParams] = None,
        budget: Optional[RetryBudget] = None,
    ) -> Dict[str, Any]:
        """
        GET a Helix endpoint with the bearer token.

        Args:
            endpoint: Path relative to the Helix base URL
            params: Query parameters; a sequence of pairs allows repeated keys
            budget: Per-request refresh allowance shared across calls

        Returns:
            Decoded JSON body

        Raises:
            AuthenticationError: No token could be obtained
            UnauthorizedError: Twitch rejected the token and no retry remains
            UpstreamError: Transport failure or other non-200 status
        """
        if not self._session:
            raise AuthenticationError("Auth service not started")

        budget = budget if budget is not None else RetryBudget()
        url = f"{self.config.api_base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        context = ErrorContext(operation="helix_get", component="twitch", upstream=endpoint)

        while True:
            access_token = await self.get_access_token()
            headers = {
                'Client-ID': self.config.client_id,
                'Authorization': f"Bearer {access_token}",
            }

            try:
                logger.debug(f"Request: GET {url}")
                async with self._session.get(url, params=params, headers=headers) as response:
                    self._record_request()

                    if response.status == 200:
                        return await response.json(content_type=None)

                    if response.status == 401:
                        logger.warning(f"401 Unauthorized from {endpoint}")
                        await self.invalidate_token()
                        if budget.consume():
                            logger.info("Retrying with a fresh token")
                            continue
                        raise UnauthorizedError(
                            f"Twitch rejected credentials for {endpoint}",
                            context=context,
                        )

                    error_text = await response.text()
                    logger.warning(f"{response.status} from {endpoint}: {error_text[:100]}")
                    raise UpstreamError(
                        f"Twitch API request failed: HTTP {response.status}",
                        status=response.status,
                        context=context,
                    )

            except (ClientError, asyncio.TimeoutError) as e:
                raise UpstreamError(f"Twitch API request failed: {e}", context=context, cause=e) from e
            except ValueError as e:
                raise UpstreamError(f"Malformed Twitch response: {e}", context=context, cause=e) from e

    def _record_request(self) -> None:
        self._last_request_time = datetime.now(timezone.utc)
        self._request_count += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get service statistics."""
        return {
            "total_requests": self._request_count,
            "last_request_time": self._last_request_time.isoformat() if self._last_request_time else None,
            "has_token": self.has_token,
        }
