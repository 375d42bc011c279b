"""
OAuth Provider Base Interface

Defines the abstract interface that all OAuth providers must implement.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import aiohttp
import structlog
from pydantic import BaseModel, ConfigDict

from fict.core.exceptions import ProviderAPIError
from fict.core.logging import redact_state

from .state_store import OAuthStateStore

logger = structlog.get_logger(__name__)


class ProviderOptions(BaseModel):
    """Connection parameters shared by every supported OAuth provider."""
    model_config = ConfigDict(frozen=True)

    name: str
    route_prefix: str
    client_id: str
    client_secret: str
    authorization_url: str
    token_url: str


class ExternalIdentity(BaseModel):
    """Identity reported by a provider's profile API."""
    email: str
    name: str


class OAuthTokens(BaseModel):
    """Token endpoint response. Only ``access_token`` is required."""
    access_token: str
    token_type: Optional[str] = None
    scope: Optional[str] = None


class OAuthProviderInterface(ABC):
    """
    Abstract base class for OAuth providers.

    A provider carries its immutable ``options`` and owns one
    ``OAuthStateStore``. The handshake itself lives in ``OAuthHandshake``
    and is written only against this interface.
    """

    def __init__(
        self,
        options: ProviderOptions,
        state_store: OAuthStateStore,
        callback_base_url: str,
    ):
        self._options = options
        self._state_store = state_store
        self.callback_base_url = callback_base_url.rstrip("/")

    @property
    def options(self) -> ProviderOptions:
        return self._options

    @property
    def state_store(self) -> OAuthStateStore:
        return self._state_store

    @property
    def name(self) -> str:
        return self._options.name

    @property
    @abstractmethod
    def scope(self) -> str:
        """Scopes to request during authorization, in the provider's format."""
        pass

    @abstractmethod
    async def get_user_data(
        self,
        access_token: str,
        timeout: aiohttp.ClientTimeout,
    ) -> ExternalIdentity:
        """
        Use the access token acquired on behalf of the authenticating user to
        look up the user's email address and display name.

        Raises:
            ProviderAPIError: If the profile cannot be fetched or parsed
        """
        pass

    @property
    def request_path(self) -> str:
        """Route of the request (redirect) handler."""
        return f"{self._options.route_prefix}/{self._options.name}"

    @property
    def callback_path(self) -> str:
        """Route of the callback handler."""
        return f"{self.request_path}/callback"

    @property
    def callback_url(self) -> str:
        """Full URL of the callback handler, sent as ``redirect_uri``."""
        return f"{self.callback_base_url}{self.callback_path}"

    def generate_authorization_url(self, state: str) -> str:
        """
        Generate OAuth authorization URL.

        Args:
            state: CSRF protection state parameter

        Returns:
            Authorization URL
        """
        params = {
            "client_id": self._options.client_id,
            "redirect_uri": self.callback_url,
            "scope": self.scope,
            "state": state,
        }
        params.update(self.extra_authorization_params())

        url = f"{self._options.authorization_url}?{urlencode(params)}"
        logger.debug(
            "oauth_authorization_url_generated",
            provider=self.name,
            state=redact_state(state),
        )
        return url

    def token_request_data(self, code: str) -> Dict[str, str]:
        """Form body posted to the token endpoint."""
        data = {
            "client_id": self._options.client_id,
            "client_secret": self._options.client_secret,
            "code": code,
        }
        data.update(self.extra_token_params())
        return data

    def extra_authorization_params(self) -> Dict[str, str]:
        """
        Get provider-specific authorization parameters.
        Override in subclasses if needed.
        """
        return {}

    def extra_token_params(self) -> Dict[str, str]:
        """
        Get provider-specific token request parameters.
        Override in subclasses if needed.
        """
        return {}

    async def _get_json(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: Dict[str, str],
    ) -> Any:
        """GET ``url`` and decode its JSON body, mapping failures to ProviderAPIError."""
        async with session.get(url, headers=headers) as response:
            if response.status != 200:
                error_text = await response.text()
                logger.error(
                    "oauth_userinfo_failed",
                    provider=self.name,
                    status=response.status,
                    error=error_text[:200],
                )
                raise ProviderAPIError(
                    f"{self.name} profile request failed with HTTP {response.status}",
                    provider=self.name,
                )
            return await response.json(content_type=None)
