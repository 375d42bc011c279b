"""
OAuth Handshake Engine

Provider-agnostic control flow for the two phases of an OAuth2 login:

*Phase 1:* redirect to the provider's authorization page with a freshly
generated ``state`` parameter.

*Phase 2:* accept the redirect back from the provider, validate the
``state``, exchange the ``code`` for an access token, use the access token
with the provider's API to find the user's email address and display name,
then resolve the local user and issue a session.

Each callback stage must succeed before the next one runs. The state store
lock is taken only inside ``generate``/``validate``, never across the
outbound HTTP calls.
"""
import asyncio
from typing import Tuple
from urllib.parse import parse_qsl

import aiohttp
import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from fict.core.exceptions import (
    InvalidStateError,
    MissingParametersError,
    TokenExchangeError,
)
from fict.core.logging import redact_state
from fict.infrastructure.database.models import Session
from fict.repositories.session import SessionRepository
from fict.repositories.user import UserRepository

from .base import ExternalIdentity, OAuthProviderInterface, OAuthTokens

logger = structlog.get_logger(__name__)


class OAuthHandshake:
    """Drives the OAuth2 authorization code flow for any provider."""

    def __init__(self, http_timeout_seconds: float = 10.0):
        self.timeout = aiohttp.ClientTimeout(total=http_timeout_seconds)

    def begin_login(self, provider: OAuthProviderInterface) -> str:
        """
        Mint a new state for ``provider`` and build the authorization URL the
        user agent should be redirected to.
        """
        state = provider.state_store.generate()
        url = provider.generate_authorization_url(state)

        logger.info("oauth_login_started", provider=provider.name, state=redact_state(state))
        return url

    async def complete_login(
        self,
        provider: OAuthProviderInterface,
        query_string: str,
        db: AsyncSession,
    ) -> Session:
        """
        Run the callback pipeline for ``provider``.

        Args:
            provider: Provider whose callback route was hit
            query_string: Raw query string of the callback request
            db: Request-scoped database session

        Returns:
            The newly assigned session

        Raises:
            OAuthFlowError: If any stage of the pipeline fails
            StorageError: If the user or session cannot be persisted
        """
        code, state = self.extract_callback_params(provider, query_string)
        self.validate_state(provider, state)

        tokens = await self.exchange_code(provider, code)
        identity = await self.fetch_identity(provider, tokens.access_token)

        user = await UserRepository(db).find_or_create(identity.email, identity.name)
        session = await SessionRepository(db).assign(user)

        logger.info(
            "oauth_flow_completed",
            provider=provider.name,
            user_id=session.user_id,
            session_id=session.id,
        )
        return session

    def extract_callback_params(
        self,
        provider: OAuthProviderInterface,
        query_string: str,
    ) -> Tuple[str, str]:
        """
        Extract the ``code`` and ``state`` query parameters from the callback
        request. Fail if either is absent; ignore anything else.
        """
        if not query_string:
            logger.warning("oauth_callback_missing_query", provider=provider.name)
            raise MissingParametersError("Callback missing query parameters", provider=provider.name)

        code = None
        state = None
        for key, value in parse_qsl(query_string, keep_blank_values=True):
            if key == "code":
                code = value
            elif key == "state":
                state = value
            else:
                logger.warning("oauth_callback_unrecognized_parameter", provider=provider.name, parameter=key)

        if not code or not state:
            logger.warning(
                "oauth_callback_missing_parameters",
                provider=provider.name,
                has_code=bool(code),
                has_state=bool(state),
            )
            raise MissingParametersError(
                "Callback request missing required query parameters",
                provider=provider.name,
            )

        return code, state

    def validate_state(self, provider: OAuthProviderInterface, state: str) -> None:
        """
        Ensure that the ``state`` returned by the provider is one that was
        generated by this service. Consumes the state on success.
        """
        if not provider.state_store.validate(state):
            logger.error(
                "oauth_state_rejected",
                provider=provider.name,
                state=redact_state(state),
                security_event="possible_csrf",
            )
            raise InvalidStateError(provider=provider.name)

    async def exchange_code(self, provider: OAuthProviderInterface, code: str) -> OAuthTokens:
        """Exchange a ``code`` obtained through an OAuth handshake for an access token."""
        token_url = provider.options.token_url
        logger.debug("oauth_token_requested", provider=provider.name, token_url=token_url)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(
                    token_url,
                    data=provider.token_request_data(code),
                    headers={"Accept": "application/json"},
                ) as response:
                    if response.status < 200 or response.status >= 300:
                        error_text = await response.text()
                        logger.error(
                            "oauth_token_exchange_failed",
                            provider=provider.name,
                            status=response.status,
                            error=error_text[:200],
                        )
                        raise TokenExchangeError(
                            f"Token exchange with {provider.name} failed with HTTP {response.status}",
                            provider=provider.name,
                        )

                    token_response = await response.json(content_type=None)

        except asyncio.TimeoutError:
            logger.error("oauth_token_request_timeout", provider=provider.name, timeout=self.timeout.total)
            raise TokenExchangeError(f"Token exchange with {provider.name} timed out", provider=provider.name)
        except aiohttp.ClientError as e:
            logger.error("oauth_token_request_failed", provider=provider.name, error=str(e))
            raise TokenExchangeError(f"Failed to connect to {provider.name}: {e}", provider=provider.name)
        except ValueError:
            logger.error("oauth_token_response_unreadable", provider=provider.name)
            raise TokenExchangeError("Unable to read token response", provider=provider.name)

        if not isinstance(token_response, dict) or not isinstance(token_response.get("access_token"), str):
            error = token_response.get("error") if isinstance(token_response, dict) else None
            logger.error("oauth_token_response_invalid", provider=provider.name, error=error)
            message = f"Token response from {provider.name} did not include an access token"
            if error:
                message = f"{message} ({error})"
            raise TokenExchangeError(message, provider=provider.name)

        try:
            return OAuthTokens(**token_response)
        except ValidationError:
            logger.error("oauth_token_response_invalid", provider=provider.name)
            raise TokenExchangeError(
                f"Token response from {provider.name} was malformed",
                provider=provider.name,
            )

    async def fetch_identity(self, provider: OAuthProviderInterface, access_token: str) -> ExternalIdentity:
        """Look up the authenticated user's email and display name."""
        return await provider.get_user_data(access_token, self.timeout)
