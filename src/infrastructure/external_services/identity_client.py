"""HTTP client for the campus identity service."""

import httpx
import structlog

from src.application.interfaces.collaborators import UserDirectory, UserSummary
from src.config import settings

logger = structlog.get_logger(__name__)


class IdentityClient(UserDirectory):
    """
    Thin HTTP wrapper around ``GET /users/{id}``.

    Lookups only decorate order views, so every failure is logged and
    reported as an unknown user instead of raised.
    """

    def __init__(
        self,
        base_url: str = settings.identity_api_url,
        api_key: str = settings.identity_api_key,
        timeout: float = 5.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {"x-api-key": api_key} if api_key else {}

    async def get_user(self, user_id: int) -> UserSummary | None:
        """
        GET /users/{id} → {"id": 1, "nickname": "...", "avatar": "..."}
        """
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.get(
                    f"{self._base_url}/users/{user_id}",
                    headers=self._headers,
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                logger.warning(
                    "identity_lookup_failed",
                    user_id=user_id,
                    status_code=exc.response.status_code,
                )
                return None
            except httpx.RequestError as exc:
                logger.warning("identity_connection_failed", user_id=user_id, error=str(exc))
                return None
            except ValueError as exc:
                logger.warning("identity_lookup_failed", user_id=user_id, error=str(exc))
                return None

        if not isinstance(data, dict):
            logger.warning(
                "identity_lookup_failed", user_id=user_id, payload_type=type(data).__name__
            )
            return None

        return UserSummary(
            user_id=user_id,
            display_name=data.get("nickname") or data.get("username") or f"user-{user_id}",
            avatar=data.get("avatar"),
        )
