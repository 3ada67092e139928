"""
Phone Number Extractor
======================
Pulls a 10-digit Indian mobile number out of free-text customer messages
("my number is +91 86414 93433", "864-149-3433", "9811552920").

Each rule is an independent matcher ``(text, digits_only) -> Optional[str]``.
Rules are tried in order and the first hit wins, so the most specific
patterns run before the lenient ones. This keeps order IDs and pincodes
embedded in longer digit runs from being mistaken for phone numbers.
"""

import re
from typing import Callable, List, Optional

from models import PhoneExtraction
from chat_logger import get_logger, mask_phone

logger = get_logger("printo_cs")

Matcher = Callable[[str, str], Optional[str]]

_MOBILE_RE = re.compile(r'^[6-9]\d{9}$', re.ASCII)
_CC_MOBILE_RE = re.compile(r'^91[6-9]\d{9}$', re.ASCII)
_EMBEDDED_CC_RE = re.compile(r'91[6-9]\d{9}(?!\d)', re.ASCII)
_BOUNDED_MOBILE_RE = re.compile(r'(?:^|\D)([6-9]\d{9})(?:\D|$)', re.ASCII)
_ANY_MOBILE_RE = re.compile(r'[6-9]\d{9}', re.ASCII)

NO_TEXT_ERROR = "No text provided"
NO_NUMBER_ERROR = (
    "No valid Indian mobile number found. "
    "Please provide a 10-digit number starting with 6, 7, 8, or 9."
)


# ─────────────────────────────────────────────
# MATCHERS (priority order)
# ─────────────────────────────────────────────

def match_whole_number(text: str, digits: str) -> Optional[str]:
    """The whole message is the number: "98115 52920"."""
    if len(digits) == 10 and _MOBILE_RE.match(digits):
        return digits
    return None


def match_whole_with_country_code(text: str, digits: str) -> Optional[str]:
    """The whole message is country code + number: "+91 98115 52920"."""
    if len(digits) == 12 and _CC_MOBILE_RE.match(digits):
        return digits[2:]
    return None


def match_embedded_country_code(text: str, digits: str) -> Optional[str]:
    """A 91-prefixed number somewhere in the digits: "call +918641493433 pls"."""
    match = _EMBEDDED_CC_RE.search(digits)
    if match:
        return match.group(0)[2:]
    return None


def match_bounded_number(text: str, digits: str) -> Optional[str]:
    """
    A 10-digit run surrounded by non-digits in the original text.

    The run must not sit inside a longer digit sequence once punctuation is
    stripped, unless the two digits before it are a 91 country code.
    """
    match = _BOUNDED_MOBILE_RE.search(text)
    if not match:
        return None
    phone = match.group(1)
    position = digits.find(phone)
    if position == -1:
        return None

    has_digit_before = position > 0
    has_digit_after = position + 10 < len(digits)

    if has_digit_before and digits[max(position - 2, 0):position] == "91":
        return phone
    if not has_digit_before and not has_digit_after:
        return phone
    return None


def match_any_number(text: str, digits: str) -> Optional[str]:
    """Last resort: first 10-digit mobile-looking run anywhere in the digits."""
    candidates = _ANY_MOBILE_RE.findall(digits)
    if not candidates:
        return None
    if len(candidates) > 1:
        logger.warning(
            f"Multiple phone numbers found: {', '.join(mask_phone(c) for c in candidates)}. "
            f"Using first one."
        )
    return candidates[0]


MATCHERS: List[Matcher] = [
    match_whole_number,
    match_whole_with_country_code,
    match_embedded_country_code,
    match_bounded_number,
    match_any_number,
]


# ─────────────────────────────────────────────
# PUBLIC API
# ─────────────────────────────────────────────

def extract_phone_number(text) -> PhoneExtraction:
    """
    Extract an Indian mobile number from a customer message.

    Returns:
        PhoneExtraction(success, phone, error). Never raises, including for
        None or non-string input.
    """
    if not text or not isinstance(text, str):
        return PhoneExtraction(success=False, phone=None, error=NO_TEXT_ERROR)

    digits = re.sub(r'[^0-9]', '', text)

    for matcher in MATCHERS:
        phone = matcher(text, digits)
        if phone:
            return PhoneExtraction(success=True, phone=phone, error=None)

    return PhoneExtraction(success=False, phone=None, error=NO_NUMBER_ERROR)


def is_valid_indian_mobile(phone) -> bool:
    """10 characters, starts with 6-9, all digits."""
    if not phone or not isinstance(phone, str):
        return False
    if len(phone) != 10:
        return False
    if phone[0] not in "6789":
        return False
    return bool(re.fullmatch(r'[0-9]{10}', phone))


def format_phone_for_display(phone: str) -> str:
    """Format as XXX-XXX-XXXX; anything that is not 10 characters is returned as-is."""
    if not phone or len(phone) != 10:
        return phone
    return f"{phone[:3]}-{phone[3:6]}-{phone[6:]}"


def get_phone_from_message(message) -> Optional[str]:
    """Return the cleaned 10-digit phone number in *message*, or None."""
    result = extract_phone_number(message)
    if result.success:
        logger.info(f"Extracted phone number: {mask_phone(result.phone)}")
        return result.phone
    logger.info(f"Phone extraction failed: {result.error}")
    return None
