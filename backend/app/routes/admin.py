"""
Admin Routes — Audit trail access, settled payments and session housekeeping.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.schemas import (
    AuditLogEntry, AuditChainResponse, PaymentRecordList, PurgeResponse,
)
from app.services.audit_service import AuditService
from app.services.payment_engine import PaymentSessionEngine, get_payment_engine
from app.services.settlement_service import SettlementService

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/audit/{session_id}", response_model=list[AuditLogEntry])
def get_audit_trail(session_id: str, db: Session = Depends(get_db)):
    """Get the full audit trail for a payment session."""
    logs = AuditService.get_trail(db, session_id)
    if not logs:
        raise HTTPException(status_code=404, detail="No audit logs found for this session")
    return logs


@router.get("/audit/{session_id}/verify", response_model=AuditChainResponse)
def verify_audit_chain(session_id: str, db: Session = Depends(get_db)):
    """Verify the integrity of the audit hash chain for a session."""
    return AuditService.verify_chain(db, session_id)


@router.get("/payments", response_model=PaymentRecordList)
def list_payments(
    email: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    """List settled payments, newest first."""
    total, records = SettlementService.list_recent(db, email=email, limit=limit, offset=offset)
    return PaymentRecordList(total=total, payments=records)


@router.post("/payments/purge-expired", response_model=PurgeResponse)
def purge_expired_sessions(engine: PaymentSessionEngine = Depends(get_payment_engine)):
    """Evict expired sessions now instead of waiting for the next lookup."""
    evicted = engine.purge_expired()
    return PurgeResponse(evicted=evicted, live_sessions=engine.live_count)
