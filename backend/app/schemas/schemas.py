"""
Pydantic Schemas — Request & Response models for API validation.
"""
from datetime import datetime
from typing import Optional, Dict, List
from pydantic import BaseModel, ConfigDict, Field

from app.services.payment_engine import PaymentResult, PaymentSession


# ──────────────── Payment ────────────────

class PaymentInitRequest(BaseModel):
    amount: Optional[float] = Field(None, description="Amount in major units, must be > 0")
    method: Optional[str] = Field(None, description="Card | UPI | NetBanking | Wallet | COD")
    currency: Optional[str] = Field(None, description="ISO currency code (default INR)")

    # Card
    card_number: Optional[str] = None
    card_holder: Optional[str] = None
    expiry: Optional[str] = Field(None, description="MM/YY")
    cvv: Optional[str] = None

    # UPI
    upi_id: Optional[str] = Field(None, description="VPA, e.g. name@okhdfc")


class PaymentSessionOut(BaseModel):
    """Externally observable session fields. Never carries raw credentials."""
    id: str
    status: str
    amount: Optional[float] = None
    currency: Optional[str] = None
    method: str
    requires_otp: bool
    masked_card: Optional[str] = None
    card_brand: Optional[str] = None
    masked_upi: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    otp_hint: Optional[str] = None

    @classmethod
    def from_session(cls, session: PaymentSession, otp_hint: bool = False) -> "PaymentSessionOut":
        return cls(
            id=session.id,
            status=session.status.value,
            amount=session.amount,
            currency=session.currency,
            method=session.method.value,
            requires_otp=session.requires_otp,
            masked_card=session.metadata.masked_card,
            card_brand=session.metadata.card_brand,
            masked_upi=session.metadata.masked_upi,
            created_at=session.created_at,
            expires_at=session.expires_at,
            otp_hint=session.otp if otp_hint else None,
        )


class PaymentInitResponse(BaseModel):
    success: bool
    session: PaymentSessionOut
    payment_result: Optional[PaymentResult] = None
    message: str = ""


class PaymentConfirmRequest(BaseModel):
    session_id: Optional[str] = None
    otp: Optional[str] = None


class PaymentConfirmResponse(BaseModel):
    success: bool
    payment_result: PaymentResult


class PaymentStatusResponse(BaseModel):
    success: bool
    session: PaymentSessionOut


# ──────────────── Admin / Audit ────────────────

class AuditLogEntry(BaseModel):
    id: int
    session_id: str
    action: str
    payload_hash: Optional[str] = None
    previous_hash: Optional[str] = None
    timestamp: datetime
    log_metadata: Optional[Dict] = None

    model_config = ConfigDict(from_attributes=True)


class AuditChainResponse(BaseModel):
    valid: bool
    total_entries: int
    broken_at: Optional[int] = None
    message: Optional[str] = None


class PaymentRecordOut(BaseModel):
    transaction_id: str
    reference: str
    session_id: str
    method: str
    amount: float
    currency: str
    status: str
    card_brand: Optional[str] = None
    masked_card: Optional[str] = None
    masked_upi: Optional[str] = None
    email_address: Optional[str] = None
    settled_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentRecordList(BaseModel):
    total: int
    payments: List[PaymentRecordOut]


class PurgeResponse(BaseModel):
    evicted: int
    live_sessions: int


# ──────────────── Generic ────────────────

class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    database: str
    live_payment_sessions: int
    uptime_seconds: float


class ErrorResponse(BaseModel):
    detail: str
    error_code: Optional[str] = None
