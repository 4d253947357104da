"""
Validators — Regex and rule-based validation for payment credentials.
Run before a session is created; they gate what metadata reaches the engine.
"""
import re

from app.exceptions import (
    InvalidCardNumber, InvalidCardHolder, InvalidExpiry, InvalidCvv, InvalidUpiId,
)

CARD_NUMBER_PATTERN = re.compile(r"[0-9]{16}")
EXPIRY_PATTERN = re.compile(r"(0[1-9]|1[0-2])/([0-9]{2})")
CVV_PATTERN = re.compile(r"[0-9]{3,4}")


def validate_card_payload(
    card_number: str | None,
    card_holder: str | None,
    expiry: str | None,
    cvv: str | None,
) -> str:
    """Validate card details and return the sanitized 16-digit card number.

    Raises:
        InvalidCardNumber, InvalidCardHolder, InvalidExpiry, InvalidCvv
    """
    sanitized = re.sub(r"[\s-]", "", card_number or "")
    if not CARD_NUMBER_PATTERN.fullmatch(sanitized):
        raise InvalidCardNumber()

    if not card_holder or len(card_holder.strip()) < 3:
        raise InvalidCardHolder()

    if not EXPIRY_PATTERN.fullmatch(expiry or ""):
        raise InvalidExpiry()

    if not CVV_PATTERN.fullmatch(cvv or ""):
        raise InvalidCvv()

    return sanitized


def validate_upi_payload(upi_id: str | None) -> str:
    """Validate a UPI VPA (user@provider) and return it trimmed."""
    if not upi_id or "@" not in upi_id:
        raise InvalidUpiId()
    return upi_id.strip()
