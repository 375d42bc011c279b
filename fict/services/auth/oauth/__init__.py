"""
OAuth integration framework for Fict authentication.

This module provides a provider-agnostic OAuth2 handshake plus GitHub and
Google provider implementations.
"""

from .base import (
    ExternalIdentity,
    OAuthProviderInterface,
    OAuthTokens,
    ProviderOptions,
)
from .github import GitHubOAuthProvider
from .google import GoogleOAuthProvider
from .handshake import OAuthHandshake
from .registry import ProviderRegistry, build_registry, get_provider_registry
from .state_store import OAuthStateStore

__all__ = [
    # Base classes and types
    "ExternalIdentity",
    "OAuthProviderInterface",
    "OAuthTokens",
    "ProviderOptions",

    # Providers
    "GitHubOAuthProvider",
    "GoogleOAuthProvider",

    # Flow
    "OAuthHandshake",
    "OAuthStateStore",
    "ProviderRegistry",
    "build_registry",
    "get_provider_registry",
]
