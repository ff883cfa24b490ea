"""GitHub identity provider.

The bearer value is either a GitHub OAuth access token or, straight after the
browser redirect, a short-lived exchange code. Codes are recognised by their
fixed length and traded for an access token before validation; the access token
then replaces the inbound value for the rest of the request.
"""

import logging
from typing import Optional

from displayables_auth.core.errors import ProviderError
from displayables_auth.domain.models import ExternalIdentity, ProviderName

from .external import ExternalProviderAdapter

logger = logging.getLogger(__name__)

EXCHANGE_CODE_LENGTH = 20


class GitHubProviderAdapter(ExternalProviderAdapter):
    """Validates GitHub access tokens with ``GET /user``.

    Example Configuration:
        GITHUB_CLIENT_ID=Iv1.xxx
        GITHUB_CLIENT_SECRET=xxx
        GITHUB_REDIRECT_URI=https://displayables.example.com/login/github
    """

    name = ProviderName.GITHUB

    def __init__(
        self,
        api_url: str,
        oauth_url: str,
        client_id: str = "",
        client_secret: str = "",
        redirect_uri: Optional[str] = None,
        exchange_code_length: int = EXCHANGE_CODE_LENGTH,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.api_url = api_url.rstrip("/")
        self.oauth_url = oauth_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.exchange_code_length = exchange_code_length

    def is_exchange_code(self, value: str) -> bool:
        return len(value) == self.exchange_code_length

    async def prepare_credential(self, credential: str) -> str:
        if not self.is_exchange_code(credential):
            return credential

        logger.info("Exchanging GitHub code for an access token")
        return await self.exchange_code(credential)

    async def exchange_code(self, code: str) -> str:
        """Trade a short-lived exchange code for a long-lived access token.

        Raises:
            ProviderError: If GitHub refuses the code
        """
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
        }
        if self.redirect_uri:
            data["redirect_uri"] = self.redirect_uri

        payload = await self._request_json(
            "POST",
            f"{self.oauth_url}/access_token",
            data=data,
            headers={"Accept": "application/json"},
        )

        token = payload.get("access_token")
        if not token:
            reason = payload.get("error_description") or payload.get("error") or "no access token"
            raise ProviderError(f"github code exchange failed: {reason}")
        return token

    async def fetch_identity(self, credential: str) -> ExternalIdentity:
        profile = await self._request_json(
            "GET",
            f"{self.api_url}/user",
            headers={
                "Authorization": f"Bearer {credential}",
                "Accept": "application/vnd.github+json",
            },
        )

        if profile.get("id") is None:
            reason = profile.get("message") or "no profile id"
            raise ProviderError(f"github error: {reason}")

        external_id = str(profile["id"])
        return ExternalIdentity(
            external_id=external_id,
            display_name=profile.get("name") or profile.get("login") or external_id,
            provider=self.name,
            credential=credential,
            metadata={"profile": profile},
        )
