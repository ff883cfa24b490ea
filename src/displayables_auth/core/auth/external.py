"""Shared behavior for external (OAuth-style) identity providers.

External credentials are not self-contained: every check goes back out to the
provider, using a profile fetch as the validity check. Any provider failure is
reported to the caller as an invalid token, never as "provider down".
"""

import logging
from abc import abstractmethod
from typing import Any, Dict, Optional

import httpx

from displayables_auth.core.errors import AuthenticationError, ProviderError
from displayables_auth.core.messages import Describe, MessageKey
from displayables_auth.domain.models import AuthRequest, ExternalIdentity, RefreshResult

from .provider import ProviderAdapter

logger = logging.getLogger(__name__)

USER_AGENT = "Displayables"


class ExternalProviderAdapter(ProviderAdapter):
    """Base for providers that validate credentials with an HTTP round-trip."""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        describe_fn: Optional[Describe] = None,
    ):
        """Initialize external adapter

        Args:
            timeout: Seconds to wait on any provider call before giving up
            transport: Optional httpx transport (tests pass a MockTransport)
            describe_fn: Message formatter
        """
        super().__init__(describe_fn)
        self.timeout = timeout
        self.transport = transport

    @abstractmethod
    async def fetch_identity(self, credential: str) -> ExternalIdentity:
        """Ask the provider who owns the credential.

        Raises:
            ProviderError: If the provider rejects the credential, errors out,
                or returns no usable profile
        """
        pass

    async def prepare_credential(self, credential: str) -> str:
        """Turn the inbound bearer value into the credential to validate.

        Providers with short-lived exchange codes override this to trade the
        code for a long-lived token.
        """
        return credential

    async def check_incoming_credential(self, request: AuthRequest) -> ExternalIdentity:
        token = request.bearer_token
        if not token:
            raise AuthenticationError(MessageKey.INVALID_TOKEN)

        try:
            credential = await self.prepare_credential(token)
            identity = await self.fetch_identity(credential)
        except ProviderError as e:
            logger.warning(f"{self.name.value} rejected credential: {e.detail}")
            raise AuthenticationError(MessageKey.INVALID_TOKEN) from e

        logger.debug(f"{self.name.value} verified identity {identity.external_id}")
        return identity

    async def refresh(self, request: AuthRequest) -> RefreshResult:
        """Reconfirm the credential is live and echo it back unchanged.

        New long-lived external credentials can only be minted by the provider.
        """
        identity = await self.check_incoming_credential(request)
        return RefreshResult(
            username=identity.external_id,
            name=identity.display_name,
            credential=identity.credential,
            metadata=identity.metadata,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            headers={"User-Agent": USER_AGENT},
        )

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Perform a provider call and return its JSON object body.

        Raises:
            ProviderError: On timeout, transport failure, error status or a body
                that is not a JSON object
        """
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderError(f"{self.name.value} timed out calling {url}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.name.value} request failed: {e}") from e
        except (httpx.InvalidURL, UnicodeError) as e:
            # Credentials that cannot be sent as header or query values
            raise ProviderError(f"{self.name.value} request could not be built: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(f"{self.name.value} returned {response.status_code} for {url}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(f"{self.name.value} returned a non-JSON body") from e

        if not isinstance(payload, dict):
            raise ProviderError(f"{self.name.value} returned an unexpected payload")
        return payload
