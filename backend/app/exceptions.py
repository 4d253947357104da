"""
Payment Errors — Client-facing failures raised by validators and the session engine.
Each error carries the HTTP status and a stable error code for the API layer.
"""


class PaymentError(Exception):
    status_code = 400
    error_code = "PAYMENT_ERROR"
    default_message = "Payment request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ──────────────── Input validation ────────────────

class InvalidAmount(PaymentError):
    error_code = "INVALID_AMOUNT"
    default_message = "Amount must be greater than zero"


class PaymentMethodRequired(PaymentError):
    error_code = "METHOD_REQUIRED"
    default_message = "Payment method is required"


class InvalidPaymentMethod(PaymentError):
    error_code = "INVALID_METHOD"
    default_message = "Unsupported payment method"


class InvalidCardNumber(PaymentError):
    error_code = "INVALID_CARD_NUMBER"
    default_message = "Card number must be 16 digits"


class InvalidCardHolder(PaymentError):
    error_code = "INVALID_CARD_HOLDER"
    default_message = "Card holder name is required"


class InvalidExpiry(PaymentError):
    error_code = "INVALID_EXPIRY"
    default_message = "Expiry must be in MM/YY format"


class InvalidCvv(PaymentError):
    error_code = "INVALID_CVV"
    default_message = "CVV must be 3 or 4 digits"


class InvalidUpiId(PaymentError):
    error_code = "INVALID_UPI_ID"
    default_message = "Enter a valid UPI ID"


# ──────────────── Session lifecycle ────────────────

class SessionNotFound(PaymentError):
    status_code = 404
    error_code = "SESSION_NOT_FOUND"
    default_message = "Payment session not found or expired"


class OtpRequired(PaymentError):
    error_code = "OTP_REQUIRED"
    default_message = "OTP is required"


class InvalidOtp(PaymentError):
    error_code = "INVALID_OTP"
    default_message = "Invalid OTP code"
