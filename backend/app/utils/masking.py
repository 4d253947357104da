"""
Credential Masking — irreversible display forms for card numbers and UPI ids.
"""
import re

_CARD_BRANDS = (
    (re.compile(r"^4"), "VISA"),
    (re.compile(r"^5[1-5]"), "MASTERCARD"),
    (re.compile(r"^3[47]"), "AMEX"),
    (re.compile(r"^6"), "RUPAY"),
)


def sanitize_card_number(card_number: str | None) -> str:
    """Keep ASCII digits only."""
    return re.sub(r"[^0-9]", "", card_number or "")


def mask_card(card_number: str | None) -> str:
    """Mask to XXXX-XXXX-XXXX-<last4>."""
    sanitized = sanitize_card_number(card_number)
    if len(sanitized) < 4:
        return "XXXX-XXXX-XXXX-0000"
    return f"XXXX-XXXX-XXXX-{sanitized[-4:]}"


def derive_card_brand(card_number: str | None) -> str:
    """Derive the card network from the leading digits (IIN prefix)."""
    sanitized = sanitize_card_number(card_number)
    for pattern, brand in _CARD_BRANDS:
        if pattern.match(sanitized):
            return brand
    return "CARD"


def mask_upi(upi_id: str | None) -> str:
    """Mask the handle of a VPA, keeping the provider suffix.

    Examples:
        "ab@upi"      -> "ab***@upi"
        "a@upi"       -> "a***@upi"
        "rahul@okhdfc" -> "ra***@okhdfc"
    """
    upi_id = upi_id or ""
    if "@" not in upi_id:
        return f"{upi_id[:2]}***@upi"

    handle, provider = upi_id.split("@", 1)
    masked_handle = f"{handle}***" if len(handle) <= 2 else f"{handle[:2]}***"
    return f"{masked_handle}@{provider}"
