"""Telegram Bot API client for message-hosted files.

Files uploaded through the bot live as attachments of messages in a chat.
The bot API exposes them through two calls the gateway uses:
- getFile: exchange a file_id for a short-lived file_path
- deleteMessage: remove the message (and with it the attachment)

Downloads go to {base}/file/bot{token}/{file_path}. Legacy Telegraph uploads
are plain public URLs and need no API call.
"""

import httpx

from filegate.logging import get_logger

logger = get_logger(__name__)

# Ids longer than this are bot API file ids; shorter ones are legacy Telegraph uploads
TELEGRAPH_MAX_ID_LENGTH = 33


def is_telegraph_file(file_id: str) -> bool:
    """Check whether an id names a legacy Telegraph upload."""
    return len(file_id) <= TELEGRAPH_MAX_ID_LENGTH


def bot_file_id(file_id: str) -> str:
    """Strip the extension clients append to bot file ids.

    Example:
        >>> bot_file_id("AgACAgEAAxkDAAMDZt1Gzs4W8dQPWiQJ.png")
        'AgACAgEAAxkDAAMDZt1Gzs4W8dQPWiQJ'
    """
    return file_id.split(".")[0]


class TelegramBotClient:
    """Production Telegram client.

    Uses a shared httpx.Client. Download responses are opened in streaming
    mode; callers own them and must close them.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        bot_token: str | None,
        chat_id: str | None,
        api_base_url: str = "https://api.telegram.org",
        telegraph_base_url: str = "https://telegra.ph",
    ):
        self._client = client
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._api_base_url = api_base_url.rstrip("/")
        self._telegraph_base_url = telegraph_base_url.rstrip("/")

    @property
    def can_resolve(self) -> bool:
        """Whether bot file ids can be exchanged for download URLs."""
        return bool(self._bot_token)

    @property
    def can_delete(self) -> bool:
        """Whether messages can be deleted (needs token and chat id)."""
        return bool(self._bot_token and self._chat_id)

    def telegraph_url(self, file_id: str) -> str:
        """Public URL of a legacy Telegraph upload."""
        return f"{self._telegraph_base_url}/file/{file_id}"

    def get_file_path(self, file_id: str) -> str | None:
        """Resolve a bot file id to its current file_path.

        Returns:
            The file_path, or None if the lookup failed for any reason.
        """
        url = f"{self._api_base_url}/bot{self._bot_token}/getFile"
        try:
            response = self._client.get(url, params={"file_id": file_id})
        except httpx.RequestError as e:
            logger.warning("telegram_get_file_failed", error=str(e))
            return None

        if response.status_code != 200:
            logger.warning("telegram_get_file_failed", status_code=response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("telegram_get_file_invalid_json")
            return None

        if not isinstance(data, dict):
            logger.warning("telegram_get_file_unexpected_response")
            return None

        result = data.get("result") or {}
        if data.get("ok") and result.get("file_path"):
            return result["file_path"]

        logger.warning("telegram_get_file_unexpected_response", description=data.get("description"))
        return None

    def download_url(self, file_path: str) -> str:
        """Build the bot download URL for a resolved file_path."""
        return f"{self._api_base_url}/file/bot{self._bot_token}/{file_path}"

    def open(
        self, url: str, *, method: str = "GET", range_header: str | None = None
    ) -> httpx.Response:
        """Open an upstream download, forwarding the client's Range header.

        The body is requested unencoded so Content-Length and Content-Range
        describe the bytes actually served.

        Raises:
            httpx.RequestError: On network failure.
        """
        headers = {"Accept-Encoding": "identity"}
        if range_header:
            headers["Range"] = range_header
        request = self._client.build_request(method, url, headers=headers)
        return self._client.send(request, stream=True)

    def delete_message(self, message_id: int | str) -> bool:
        """Delete the message carrying a file.

        Returns:
            True only if the API confirmed the deletion.
        """
        if not self.can_delete:
            return False

        url = f"{self._api_base_url}/bot{self._bot_token}/deleteMessage"
        try:
            response = self._client.post(
                url, json={"chat_id": self._chat_id, "message_id": message_id}
            )
            data = response.json()
        except (httpx.RequestError, ValueError) as e:
            logger.warning("telegram_delete_message_failed", error=str(e))
            return False

        return response.is_success and bool(data.get("ok"))
