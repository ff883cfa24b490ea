"""Facebook identity provider.

The bearer value is a Facebook user access token, validated by fetching the
owner's profile from the Graph API.
"""

import logging

from displayables_auth.core.errors import ProviderError
from displayables_auth.domain.models import ExternalIdentity, ProviderName

from .external import ExternalProviderAdapter

logger = logging.getLogger(__name__)


class FacebookProviderAdapter(ExternalProviderAdapter):
    """Validates Facebook access tokens with ``GET /me``."""

    name = ProviderName.FACEBOOK

    def __init__(self, graph_url: str, **kwargs):
        super().__init__(**kwargs)
        self.graph_url = graph_url.rstrip("/")

    async def fetch_identity(self, credential: str) -> ExternalIdentity:
        profile = await self._request_json(
            "GET",
            f"{self.graph_url}/me",
            params={"access_token": credential, "fields": "id,name"},
        )

        # Graph API failures come back as {"error": {...}}
        if "error" in profile:
            error = profile["error"]
            reason = error.get("message") if isinstance(error, dict) else error
            raise ProviderError(f"facebook error: {reason}")

        if not profile.get("id"):
            raise ProviderError("facebook returned no profile id")

        external_id = str(profile["id"])
        return ExternalIdentity(
            external_id=external_id,
            display_name=profile.get("name") or external_id,
            provider=self.name,
            credential=credential,
            metadata={"profile": profile},
        )
