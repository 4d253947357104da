from app.utils.hashing import generate_hash, generate_chain_hash
from app.utils.masking import mask_card, mask_upi, derive_card_brand, sanitize_card_number
from app.utils.validators import validate_card_payload, validate_upi_payload

__all__ = [
    "generate_hash", "generate_chain_hash",
    "mask_card", "mask_upi", "derive_card_brand", "sanitize_card_number",
    "validate_card_payload", "validate_upi_payload",
]
