"""
Application configuration module for the Printo CS Assistant.
Contains environment variables, constants, and settings.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ═══════════════════════════════════════════
# SERVER
# ═══════════════════════════════════════════

PORT = int(os.getenv("PORT", 3000))
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SERVICE_VERSION = "1.0.0"

# ═══════════════════════════════════════════
# PIA (ORDER API)
# ═══════════════════════════════════════════

PIA_API_URL = os.getenv(
    "PIA_API_URL", "https://beta-pia.printo.in/api/v1/legacy/chatbot/order-status/"
)
PIA_AUTH_URL = os.getenv("PIA_AUTH_URL", "https://beta-pia.printo.in/api/v1/auth/")
PIA_BEARER_TOKEN = os.getenv("PIA_BEARER_TOKEN", "")
PIA_USERNAME = os.getenv("PIA_USERNAME", "")
PIA_PASSWORD = os.getenv("PIA_PASSWORD", "")
PIA_TIMEOUT_SECONDS = int(os.getenv("PIA_TIMEOUT_SECONDS", "10"))

# ═══════════════════════════════════════════
# CUSTOMER SUPPORT
# ═══════════════════════════════════════════

SUPPORT_PHONE = os.getenv("SUPPORT_PHONE", "9513734374")
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@printo.in")

# ═══════════════════════════════════════════
# ORDER STATUS & SESSIONS
# ═══════════════════════════════════════════

ORDER_PAGE_SIZE = int(os.getenv("ORDER_PAGE_SIZE", "3"))  # Orders shown per WhatsApp page

# Status IDs that mean the order has left the active pipeline
STATUS_DELIVERED = 8000
STATUS_CANCELLED = 8010
STATUS_COMPLETED = 9000
STATUS_CANCELLED_LEGACY = 9999
TERMINAL_STATUS_IDS = {
    STATUS_DELIVERED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CANCELLED_LEGACY,
}
TERMINAL_STATUS_KEYWORDS = ("delivered", "completed", "cancelled", "dispatched")

SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", str(24 * 3600)))
SESSION_SWEEP_INTERVAL_SECONDS = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "3600"))
SESSION_HISTORY_LIMIT = 2  # Messages kept as LLM context (1 user + 1 assistant)
QUESTIONS_ASKED_LIMIT = 5  # Earlier questions listed in the LLM prompt

# ═══════════════════════════════════════════
# LLM CONFIGURATION
# ═══════════════════════════════════════════

LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")  # openai, azure_openai, gemini
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o")
LLM_API_KEY = os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", ""))
LLM_API_BASE_URL = os.getenv("LLM_API_BASE_URL", "")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "150"))
LLM_TIMEOUT_SECONDS = int(os.getenv("LLM_TIMEOUT_SECONDS", "10"))
ORDER_STATUS_MAX_TOKENS = 200  # Existing-order status message

# ═══════════════════════════════════════════
# BOTSPACE (WHATSAPP DELIVERY)
# ═══════════════════════════════════════════

BOTSPACE_API_URL = os.getenv("BOTSPACE_API_URL", "https://api.bot.space/v1")
BOTSPACE_CHANNEL_ID = os.getenv("BOTSPACE_CHANNEL_ID", "")
BOTSPACE_API_KEY = os.getenv("BOTSPACE_API_KEY", "")
BOTSPACE_TIMEOUT_SECONDS = 10
BOTSPACE_MAX_RETRIES = 3

# ═══════════════════════════════════════════
# GOOGLE SHEETS CONVERSATION LOG
# ═══════════════════════════════════════════

GOOGLE_SHEET_ID = os.getenv("GOOGLE_SHEET_ID", "")
GOOGLE_SERVICE_ACCOUNT_EMAIL = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")
GOOGLE_PRIVATE_KEY = os.getenv("GOOGLE_PRIVATE_KEY", "")
SHEET_CELL_LIMIT = 500  # Max characters stored per message cell
