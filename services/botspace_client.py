"""
BotSpace WhatsApp API client - sends replies back to customers.

Auth: Bearer API key, all paths scoped under the channel id.
"""

import time
from typing import Optional

import requests as http_requests

from services.errors import BotSpaceError
from chat_logger import get_logger, mask_phone
from app_config import (
    BOTSPACE_API_URL,
    BOTSPACE_CHANNEL_ID,
    BOTSPACE_API_KEY,
    BOTSPACE_TIMEOUT_SECONDS,
    BOTSPACE_MAX_RETRIES,
)

logger = get_logger("printo_cs")

_STATUS_ERRORS = {
    401: ("AUTHENTICATION_ERROR", "Invalid BotSpace API key"),
    403: ("PERMISSION_ERROR", "No permission to access this resource"),
    404: ("NOT_FOUND", "Resource not found"),
    429: ("RATE_LIMIT", "Rate limit exceeded"),
    500: ("SERVER_ERROR", "BotSpace server error"),
}


class BotSpaceClient:
    """Sends WhatsApp messages through BotSpace."""

    def __init__(self, base_url: str = BOTSPACE_API_URL,
                 channel_id: str = BOTSPACE_CHANNEL_ID,
                 api_key: str = BOTSPACE_API_KEY,
                 timeout: int = BOTSPACE_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.channel_id = channel_id
        self.api_key = api_key
        self.timeout = timeout
        self.session = http_requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

        if not self.is_configured():
            logger.warning("BotSpace credentials not configured. Set BOTSPACE_CHANNEL_ID and BOTSPACE_API_KEY")

    def is_configured(self) -> bool:
        return bool(self.channel_id and self.api_key)

    def _post(self, path: str, payload: dict, method: str) -> dict:
        url = f"{self.base_url}/{self.channel_id}/{path}"
        logger.info(f"BotSpace API request: POST /{path}")
        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
        except http_requests.exceptions.RequestException as e:
            raise self._to_error(e, method) from e
        logger.info(f"BotSpace API response: {resp.status_code} /{path}")
        try:
            return resp.json()
        except ValueError:
            return {}

    def send_message(self, phone: str, message: str, **options) -> dict:
        """Send a text message to a phone number (with country code)."""
        data = self._post(
            "message/send-message",
            {"phone": phone, "message": message, **options},
            "send_message",
        )
        logger.info(f"Message sent to {mask_phone(phone)}")
        return data

    def send_session_message(self, conversation_id: str, message: str, **options) -> dict:
        """Reply inside an ongoing BotSpace conversation."""
        data = self._post(
            "message/send-session-message",
            {"conversationId": conversation_id, "message": message, **options},
            "send_session_message",
        )
        logger.info(f"Session message sent to conversation {conversation_id}")
        return data

    def send_message_with_retry(self, phone: str, message: str,
                                max_retries: int = BOTSPACE_MAX_RETRIES) -> dict:
        """send_message with exponential backoff (1s, 2s, 4s ...) between attempts."""
        last_error: Optional[BotSpaceError] = None
        for attempt in range(1, max_retries + 1):
            try:
                return self.send_message(phone, message)
            except BotSpaceError as e:
                last_error = e
                logger.warning(f"Retry {attempt}/{max_retries} for message to {mask_phone(phone)}")
                if attempt < max_retries:
                    time.sleep(2 ** (attempt - 1))
        raise last_error

    @staticmethod
    def _to_error(error: Exception, method: str) -> BotSpaceError:
        response = getattr(error, "response", None)
        if response is not None:
            error_type, message = _STATUS_ERRORS.get(
                response.status_code, ("API_ERROR", str(error))
            )
            try:
                data = response.json()
            except ValueError:
                data = response.text[:300]
            logger.error(f"BotSpace response error: {response.status_code} {error_type}")
            return BotSpaceError(method, error_type, message, response.status_code, data)
        if isinstance(error, http_requests.exceptions.Timeout):
            return BotSpaceError(method, "TIMEOUT", "Request timeout")
        return BotSpaceError(method, "NETWORK_ERROR", str(error))


# Global BotSpace client instance
botspace_client = BotSpaceClient()
