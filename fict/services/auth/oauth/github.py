"""
GitHub OAuth Provider Implementation
"""
import asyncio
from typing import Any, Dict, List, Optional

import aiohttp
import structlog
from pydantic import ValidationError

from fict.core.exceptions import ProviderAPIError

from .base import ExternalIdentity, OAuthProviderInterface, ProviderOptions
from .state_store import OAuthStateStore

logger = structlog.get_logger(__name__)

AUTHORIZATION_URL = "https://github.com/login/oauth/authorize"
TOKEN_URL = "https://github.com/login/oauth/access_token"
API_URL = "https://api.github.com"


class GitHubOAuthProvider(OAuthProviderInterface):
    """GitHub OAuth provider."""

    def __init__(
        self,
        options: ProviderOptions,
        state_store: OAuthStateStore,
        callback_base_url: str,
        api_url: str = API_URL,
    ):
        super().__init__(options, state_store, callback_base_url)
        self.api_url = api_url.rstrip("/")

    @property
    def scope(self) -> str:
        return "user:email"

    async def get_user_data(
        self,
        access_token: str,
        timeout: aiohttp.ClientTimeout,
    ) -> ExternalIdentity:
        """Fetch the user's display name and email from the GitHub API."""
        headers = {
            "Authorization": f"token {access_token}",
            "Accept": "application/vnd.github+json",
        }

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                profile = await self._get_json(session, f"{self.api_url}/user", headers)
                if not isinstance(profile, dict):
                    raise ProviderAPIError("github profile response was not an object", provider=self.name)

                email = profile.get("email")
                if not email:
                    # Private addresses are omitted from /user; ask for the list instead.
                    emails = await self._get_json(session, f"{self.api_url}/user/emails", headers)
                    email = self._primary_email(emails)

                if not email:
                    logger.error("github_userinfo_missing_email", login=profile.get("login"))
                    raise ProviderAPIError("github account has no verified email address", provider=self.name)

                identity = ExternalIdentity(
                    email=email,
                    name=profile.get("name") or profile["login"],
                )

        except asyncio.TimeoutError:
            logger.error("github_userinfo_timeout", timeout=timeout.total)
            raise ProviderAPIError("github profile request timed out", provider=self.name)
        except aiohttp.ClientError as e:
            logger.error("github_userinfo_request_failed", error=str(e))
            raise ProviderAPIError(f"Failed to connect to github: {e}", provider=self.name)
        except KeyError as e:
            logger.error("github_userinfo_invalid_response", missing_field=str(e))
            raise ProviderAPIError(f"github profile missing required field: {e}", provider=self.name)
        except (ValueError, ValidationError) as e:
            logger.error("github_userinfo_validation_failed", error=str(e))
            raise ProviderAPIError("github profile response could not be decoded", provider=self.name)

        logger.info("github_userinfo_obtained", email=identity.email)
        return identity

    @staticmethod
    def _primary_email(emails: Any) -> Optional[str]:
        if not isinstance(emails, list):
            return None
        candidates: List[Dict[str, Any]] = [e for e in emails if isinstance(e, dict)]
        for entry in candidates:
            if entry.get("primary") and entry.get("verified"):
                return entry.get("email")
        for entry in candidates:
            if entry.get("verified"):
                return entry.get("email")
        return None
