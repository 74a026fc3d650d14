"""Content moderation client (moderatecontent.com).

The classifier rates a publicly reachable URL and returns a label such as
"everyone", "teen" or "adult". Any failure is raised as
ModerationUnavailableError; callers decide how to degrade.
"""

import httpx

from filegate.logging import get_logger

logger = get_logger(__name__)


class ModerationUnavailableError(Exception):
    """The moderation call failed or returned an unusable answer."""


class ModerateContentClient:
    """Synchronous moderatecontent.com client over a shared httpx.Client."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        api_key: str,
        api_url: str = "https://api.moderatecontent.com/moderate/",
    ):
        self._client = client
        self._api_key = api_key
        self._api_url = api_url

    def rate(self, url: str) -> str | None:
        """Rate the content at url.

        Returns:
            The rating label, or None if the classifier returned none.

        Raises:
            ModerationUnavailableError: On network, HTTP or decoding failure.
        """
        try:
            response = self._client.get(self._api_url, params={"key": self._api_key, "url": url})
        except httpx.RequestError as e:
            raise ModerationUnavailableError(f"Moderation request failed: {e}") from e

        if response.status_code != 200:
            raise ModerationUnavailableError(
                f"Moderation API request failed: {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ModerationUnavailableError("Moderation API returned invalid JSON") from e

        label = data.get("rating_label") if isinstance(data, dict) else None
        logger.info("moderation_rated", rating_label=label)
        return label or None
