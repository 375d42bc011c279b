"""
Provider registry.

Builds one provider, with its own state store, for every identity service
configured in settings.
"""
from functools import lru_cache
from typing import Dict, Iterator, Optional

import structlog

from fict.core.config import Settings, get_settings

from . import github, google
from .base import OAuthProviderInterface, ProviderOptions
from .github import GitHubOAuthProvider
from .google import GoogleOAuthProvider
from .state_store import OAuthStateStore

logger = structlog.get_logger(__name__)


class ProviderRegistry:
    """Configured OAuth providers, keyed by name."""

    def __init__(self) -> None:
        self._providers: Dict[str, OAuthProviderInterface] = {}

    def register(self, provider: OAuthProviderInterface) -> None:
        if provider.name in self._providers:
            raise ValueError(f"OAuth provider already registered: {provider.name}")
        self._providers[provider.name] = provider
        logger.info("oauth_provider_registered", provider=provider.name, route=provider.request_path)

    def get(self, name: str) -> Optional[OAuthProviderInterface]:
        return self._providers.get(name)

    def __iter__(self) -> Iterator[OAuthProviderInterface]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)


def _state_store(name: str, settings: Settings) -> OAuthStateStore:
    return OAuthStateStore(
        provider_name=name,
        ttl_seconds=settings.OAUTH_STATE_TTL_SECONDS,
        max_outstanding=settings.OAUTH_STATE_MAX_OUTSTANDING,
    )


def build_registry(settings: Settings) -> ProviderRegistry:
    """Create the providers whose client credentials are configured."""
    registry = ProviderRegistry()
    callback_base_url = f"{settings.API_BASE_URL}{settings.API_V1_PREFIX}"

    if settings.github_enabled:
        options = ProviderOptions(
            name="github",
            route_prefix=settings.OAUTH_ROUTE_PREFIX,
            client_id=settings.GITHUB_CLIENT_ID,
            client_secret=settings.GITHUB_CLIENT_SECRET,
            authorization_url=github.AUTHORIZATION_URL,
            token_url=github.TOKEN_URL,
        )
        registry.register(GitHubOAuthProvider(
            options,
            _state_store(options.name, settings),
            callback_base_url,
            api_url=settings.GITHUB_API_URL,
        ))

    if settings.google_enabled:
        options = ProviderOptions(
            name="google",
            route_prefix=settings.OAUTH_ROUTE_PREFIX,
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            authorization_url=google.AUTHORIZATION_URL,
            token_url=google.TOKEN_URL,
        )
        registry.register(GoogleOAuthProvider(
            options,
            _state_store(options.name, settings),
            callback_base_url,
        ))

    if not registry:
        logger.warning("oauth_no_providers_configured")

    return registry


@lru_cache
def get_provider_registry() -> ProviderRegistry:
    """Process-wide registry; providers and their state stores live as long as the process."""
    return build_registry(get_settings())
