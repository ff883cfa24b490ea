"""Google identity provider.

The bearer value is a Google ID token. It is validated locally against Google's
published signing keys (discovery document -> JWKS), checking the RS256
signature, the issuer and the audience (our OAuth client id).
"""

import logging
from typing import List, Optional

import httpx
from jose import JWTError, jwt

from displayables_auth.core.errors import ProviderError
from displayables_auth.core.messages import Describe
from displayables_auth.domain.models import ExternalIdentity, ProviderName

from .external import ExternalProviderAdapter

logger = logging.getLogger(__name__)

DEFAULT_ISSUERS = ["https://accounts.google.com", "accounts.google.com"]


class GoogleProviderAdapter(ExternalProviderAdapter):
    """Validates Google ID tokens.

    Example Configuration:
        GOOGLE_CLIENT_ID=xxx.apps.googleusercontent.com
        GOOGLE_DISCOVERY_URL=https://accounts.google.com/.well-known/openid-configuration
    """

    name = ProviderName.GOOGLE

    def __init__(
        self,
        client_id: str,
        discovery_url: str,
        issuers: Optional[List[str]] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        describe_fn: Optional[Describe] = None,
    ):
        """Initialize Google adapter.

        Args:
            client_id: OAuth client id, the expected token audience
            discovery_url: OpenID discovery document URL
            issuers: Accepted ``iss`` values
            timeout: Provider call timeout in seconds
            transport: Optional httpx transport
            describe_fn: Message formatter
        """
        super().__init__(timeout=timeout, transport=transport, describe_fn=describe_fn)
        self.client_id = client_id
        self.discovery_url = discovery_url
        self.issuers = issuers or DEFAULT_ISSUERS

        # Lazy-loaded, kept for the adapter's lifetime
        self._discovery: Optional[dict] = None
        self._jwks: Optional[dict] = None

    async def _get_discovery(self) -> dict:
        """Fetch the OpenID discovery document."""
        if self._discovery is None:
            self._discovery = await self._request_json("GET", self.discovery_url)
            logger.info(f"Google discovery loaded from {self.discovery_url}")
        return self._discovery

    async def _get_jwks(self, key_id: Optional[str] = None) -> dict:
        """Fetch the JSON Web Key Set used to sign ID tokens.

        A cached set that does not contain ``key_id`` is refetched once, so
        Google key rotation is picked up without a restart.
        """
        if self._jwks is not None and key_id and key_id not in self._key_ids(self._jwks):
            logger.info(f"Google key {key_id} not cached, refreshing JWKS")
            self._jwks = None

        if self._jwks is None:
            discovery = await self._get_discovery()
            jwks_uri = discovery.get("jwks_uri")
            if not jwks_uri:
                raise ProviderError("google discovery document has no jwks_uri")

            jwks = await self._request_json("GET", jwks_uri)
            if not jwks.get("keys"):
                raise ProviderError("google JWKS has no keys")

            self._jwks = jwks
            logger.info(f"Google JWKS loaded from {jwks_uri}")
        return self._jwks

    @staticmethod
    def _key_ids(jwks: dict) -> set:
        return {key.get("kid") for key in jwks.get("keys", []) if isinstance(key, dict)}

    async def fetch_identity(self, credential: str) -> ExternalIdentity:
        if not self.client_id:
            raise ProviderError("google client id is not configured")

        try:
            header = jwt.get_unverified_header(credential)
        except JWTError as e:
            raise ProviderError(f"google ID token rejected: {e}") from e

        jwks = await self._get_jwks(header.get("kid"))

        try:
            claims = jwt.decode(
                credential,
                jwks,
                algorithms=["RS256"],
                audience=self.client_id,
                options={"verify_iss": False, "verify_at_hash": False},
            )
        except JWTError as e:
            raise ProviderError(f"google ID token rejected: {e}") from e

        if claims.get("iss") not in self.issuers:
            raise ProviderError(f"google ID token has unexpected issuer {claims.get('iss')}")

        subject = claims.get("sub")
        if not subject:
            raise ProviderError("google ID token has no subject")

        return ExternalIdentity(
            external_id=str(subject),
            display_name=claims.get("name") or claims.get("email") or str(subject),
            provider=self.name,
            credential=credential,
            metadata={"claims": claims},
        )
