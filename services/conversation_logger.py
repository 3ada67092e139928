"""
Google Sheets conversation log.

Rows are appended from a daemon thread so the customer reply never waits on
Sheets; any failure is logged locally and dropped.
"""

import threading
from datetime import datetime, timezone
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials

from chat_logger import get_logger, sanitize_log_string
from app_config import (
    GOOGLE_SHEET_ID,
    GOOGLE_SERVICE_ACCOUNT_EMAIL,
    GOOGLE_PRIVATE_KEY,
    SHEET_CELL_LIMIT,
)

logger = get_logger("printo_cs")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

SHEET_HEADERS = [
    "Timestamp", "Session ID", "User Input", "Bot Response",
    "Product", "Pincode", "Status", "Response Time (ms)", "Source",
]


def _clean_private_key(key: str) -> str:
    """Env-provided keys often arrive with literal \\n and stray quotes."""
    key = key.replace("\\n", "\n")
    return key.strip().strip("'\"")


class ConversationLogger:
    """Appends one row per exchange to the first worksheet of GOOGLE_SHEET_ID."""

    def __init__(self, sheet_id: str = GOOGLE_SHEET_ID,
                 service_account_email: str = GOOGLE_SERVICE_ACCOUNT_EMAIL,
                 private_key: str = GOOGLE_PRIVATE_KEY):
        self.sheet_id = sheet_id
        self.service_account_email = service_account_email
        self.private_key = private_key
        self.enabled = bool(sheet_id and service_account_email and private_key)
        self._worksheet = None
        self._lock = threading.Lock()

        if not self.enabled:
            logger.warning("Google Sheets credentials not fully configured. Logging will be disabled.")

    def _get_worksheet(self):
        with self._lock:
            if self._worksheet is None:
                creds = Credentials.from_service_account_info(
                    {
                        "type": "service_account",
                        "client_email": self.service_account_email,
                        "private_key": _clean_private_key(self.private_key),
                        "token_uri": "https://oauth2.googleapis.com/token",
                    },
                    scopes=SCOPES,
                )
                client = gspread.authorize(creds)
                self._worksheet = client.open_by_key(self.sheet_id).sheet1
            return self._worksheet

    def initialize_headers(self) -> bool:
        """Write the header row if the sheet is empty."""
        if not self.enabled:
            return False
        try:
            worksheet = self._get_worksheet()
            if not worksheet.row_values(1):
                worksheet.append_row(SHEET_HEADERS, value_input_option="USER_ENTERED")
                logger.info("Google Sheets headers initialized")
            return True
        except Exception as e:
            logger.error(f"Google Sheets header setup failed: {e}")
            return False

    def log_conversation(
        self,
        session_id: str,
        user_input: str,
        bot_response: str,
        product: str = "N/A",
        pincode: Optional[str] = "N/A",
        status: str = "success",
        response_time_ms: int = 0,
        source: str = "web",
    ) -> bool:
        """Append one row. Returns False (never raises) when the write fails."""
        if not self.enabled:
            return False
        row = [
            datetime.now(timezone.utc).isoformat(),
            session_id or "N/A",
            (user_input or "")[:SHEET_CELL_LIMIT],
            (bot_response or "")[:SHEET_CELL_LIMIT],
            product or "N/A",
            pincode or "N/A",
            status,
            response_time_ms,
            source,
        ]
        try:
            self._get_worksheet().append_row(row, value_input_option="USER_ENTERED")
            return True
        except Exception as e:
            logger.error(
                f"Background logging error | session={session_id} | "
                f"{sanitize_log_string(str(e))}"
            )
            return False

    def log_conversation_async(self, **row) -> Optional[threading.Thread]:
        """Fire-and-forget variant of log_conversation. Never joined by callers."""
        if not self.enabled:
            return None
        thread = threading.Thread(target=self.log_conversation, kwargs=row, daemon=True)
        thread.start()
        return thread


# Global conversation logger instance
conversation_logger = ConversationLogger()
