"""
API v1 router configuration.
"""
from fastapi import APIRouter

from fict.api.v1.endpoints import health, oauth, users
from fict.services.auth.oauth import OAuthHandshake, ProviderRegistry


def build_api_router(registry: ProviderRegistry, handshake: OAuthHandshake) -> APIRouter:
    """Assemble every v1 endpoint router."""
    api_router = APIRouter()

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(oauth.build_router(registry, handshake), tags=["oauth"])
    api_router.include_router(users.router, prefix="/users", tags=["users"])

    return api_router
