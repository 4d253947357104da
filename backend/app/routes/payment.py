"""
Payment Routes — Simulated checkout payments.
Handles: Card, UPI, NetBanking (OTP confirmed), Wallet and COD (instant).
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.exceptions import InvalidOtp
from app.schemas.schemas import (
    PaymentInitRequest, PaymentInitResponse, PaymentSessionOut,
    PaymentConfirmRequest, PaymentConfirmResponse, PaymentStatusResponse,
)
from app.services.audit_service import AuditService
from app.services.payment_engine import PaymentResult, PaymentSessionEngine, get_payment_engine
from app.services.settlement_service import SettlementService
from app.utils.rate_limiter import rate_limit
from app.utils.validators import validate_card_payload, validate_upi_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["Payment"])


def get_customer(
    email: Optional[str] = Header(None, alias="x-customer-email"),
    name: Optional[str] = Header(None, alias="x-customer-name"),
) -> dict:
    """Customer identity forwarded by the upstream auth layer."""
    if not email:
        raise HTTPException(status_code=401, detail="Missing customer identity")
    return {"name": name, "email": email}


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _settled(db: Session, request: Request, session_id: str, result: PaymentResult) -> None:
    _, created = SettlementService.record(db, session_id, result)
    if not created:
        return
    AuditService.record(
        db, session_id, "PAYMENT_CONFIRMED",
        payload={"transaction_id": result.id, "reference": result.reference, "amount": result.amount},
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/initiate", response_model=PaymentInitResponse)
def initiate_payment(
    payload: PaymentInitRequest,
    request: Request,
    customer: dict = Depends(get_customer),
    engine: PaymentSessionEngine = Depends(get_payment_engine),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit("payment-initiate")),
):
    """Create a payment session; instant methods are settled straight away."""
    metadata = {}
    if payload.method == "Card":
        metadata["card_number"] = validate_card_payload(
            payload.card_number, payload.card_holder, payload.expiry, payload.cvv,
        )
        metadata["card_holder"] = payload.card_holder.strip()
        metadata["expiry"] = payload.expiry
    elif payload.method == "UPI":
        metadata["upi_id"] = validate_upi_payload(payload.upi_id)

    session = engine.create_session(
        amount=payload.amount,
        method=payload.method,
        currency=payload.currency,
        metadata=metadata,
        customer=customer,
    )

    AuditService.record(
        db, session.id, "PAYMENT_INITIATED",
        payload={
            "method": session.method.value,
            "amount": session.amount,
            "currency": session.currency,
            "requires_otp": session.requires_otp,
            "masked_card": session.metadata.masked_card,
            "masked_upi": session.metadata.masked_upi,
        },
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    instant_result = None
    if not session.requires_otp:
        instant_result = engine.verify(session.id, None, customer["email"])
        _settled(db, request, session.id, instant_result)

    return PaymentInitResponse(
        success=True,
        session=PaymentSessionOut.from_session(session, otp_hint=settings.otp_hint_enabled),
        payment_result=instant_result,
        message=(
            "OTP sent to your registered mobile number"
            if session.requires_otp
            else "Payment authorized successfully"
        ),
    )


@router.post("/confirm", response_model=PaymentConfirmResponse)
def confirm_payment(
    payload: PaymentConfirmRequest,
    request: Request,
    customer: dict = Depends(get_customer),
    engine: PaymentSessionEngine = Depends(get_payment_engine),
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit("payment-confirm")),
):
    """Verify the OTP for a session and settle it. Safe to repeat."""
    if not payload.session_id:
        raise HTTPException(status_code=400, detail="session_id is required")

    try:
        result = engine.verify(payload.session_id, payload.otp, customer["email"])
    except InvalidOtp:
        AuditService.record(
            db, payload.session_id, "PAYMENT_OTP_REJECTED",
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        raise

    _settled(db, request, payload.session_id, result)
    return PaymentConfirmResponse(success=True, payment_result=result)


@router.get("/status/{session_id}", response_model=PaymentStatusResponse)
def get_payment_status(
    session_id: str,
    _customer: dict = Depends(get_customer),
    engine: PaymentSessionEngine = Depends(get_payment_engine),
):
    """Poll a live session."""
    session = engine.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Payment session not found or expired")

    return PaymentStatusResponse(success=True, session=PaymentSessionOut.from_session(session))
