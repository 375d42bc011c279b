"""
Google OAuth Provider Implementation
"""
import asyncio
from typing import Dict

import aiohttp
import structlog
from pydantic import ValidationError

from fict.core.exceptions import ProviderAPIError

from .base import ExternalIdentity, OAuthProviderInterface, ProviderOptions
from .state_store import OAuthStateStore

logger = structlog.get_logger(__name__)

AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USER_INFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


class GoogleOAuthProvider(OAuthProviderInterface):
    """Google OAuth provider."""

    def __init__(
        self,
        options: ProviderOptions,
        state_store: OAuthStateStore,
        callback_base_url: str,
        user_info_url: str = USER_INFO_URL,
    ):
        super().__init__(options, state_store, callback_base_url)
        self.user_info_url = user_info_url

    @property
    def scope(self) -> str:
        return "openid profile email"

    def extra_authorization_params(self) -> Dict[str, str]:
        return {"response_type": "code"}

    def extra_token_params(self) -> Dict[str, str]:
        # Google rejects code redemption without these two.
        return {
            "grant_type": "authorization_code",
            "redirect_uri": self.callback_url,
        }

    async def get_user_data(
        self,
        access_token: str,
        timeout: aiohttp.ClientTimeout,
    ) -> ExternalIdentity:
        """Fetch user information from Google."""
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                user_data = await self._get_json(session, self.user_info_url, headers)

            identity = ExternalIdentity(
                email=user_data["email"],
                name=user_data.get("name") or user_data["email"],
            )

        except asyncio.TimeoutError:
            logger.error("google_userinfo_timeout", timeout=timeout.total)
            raise ProviderAPIError("google profile request timed out", provider=self.name)
        except aiohttp.ClientError as e:
            logger.error("google_userinfo_request_failed", error=str(e))
            raise ProviderAPIError(f"Failed to connect to google: {e}", provider=self.name)
        except (KeyError, TypeError) as e:
            logger.error("google_userinfo_invalid_response", missing_field=str(e))
            raise ProviderAPIError(f"google profile missing required field: {e}", provider=self.name)
        except (ValueError, ValidationError) as e:
            logger.error("google_userinfo_validation_failed", error=str(e))
            raise ProviderAPIError("google profile response could not be decoded", provider=self.name)

        logger.info("google_userinfo_obtained", email=identity.email)
        return identity
