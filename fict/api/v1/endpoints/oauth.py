"""
OAuth authentication endpoints.

Every configured provider gets two routes: a request route that redirects
to the provider's authorization page, and a callback route the provider
redirects back to.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

import structlog

from fict.core.exceptions import OAuthFlowError, StorageError
from fict.domain.schemas.auth import SessionCreatedResponse, SessionInfo
from fict.infrastructure.database.base import get_db
from fict.services.auth.oauth import (
    OAuthHandshake,
    OAuthProviderInterface,
    ProviderRegistry,
)

logger = structlog.get_logger(__name__)


def route_provider(
    router: APIRouter,
    provider: OAuthProviderInterface,
    handshake: OAuthHandshake,
) -> None:
    """Register the request and callback routes for ``provider``."""

    async def request_handler() -> RedirectResponse:
        """Redirect to the provider's authorization page."""
        url = handshake.begin_login(provider)
        return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)

    async def callback_handler(
        request: Request,
        db: AsyncSession = Depends(get_db),
    ) -> SessionCreatedResponse:
        """Complete the login and hand the new session token back to the caller."""
        try:
            session = await handshake.complete_login(provider, request.url.query, db)
        except (OAuthFlowError, StorageError) as e:
            logger.warning(
                "oauth_flow_failed",
                provider=provider.name,
                error_type=type(e).__name__,
                error=e.message,
            )
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

        return SessionCreatedResponse(session=SessionInfo.model_validate(session))

    router.add_api_route(
        provider.request_path,
        request_handler,
        methods=["GET"],
        name=f"oauth_{provider.name}_request",
        status_code=status.HTTP_302_FOUND,
        response_class=RedirectResponse,
    )
    router.add_api_route(
        provider.callback_path,
        callback_handler,
        methods=["GET"],
        name=f"oauth_{provider.name}_callback",
        response_model=SessionCreatedResponse,
    )


def build_router(registry: ProviderRegistry, handshake: OAuthHandshake) -> APIRouter:
    """Create a router carrying the routes of every registered provider."""
    router = APIRouter()
    for provider in registry:
        route_provider(router, provider, handshake)
    return router
