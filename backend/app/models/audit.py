"""
Audit Log Model — Tamper-evident trail of payment session events.
Every entry is SHA-256 chained to the previous entry of the same session.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON

from app.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    session_id = Column(String(40), nullable=False, index=True)   # payment session id (in-memory)

    action = Column(String(50), nullable=False)
    # Actions: PAYMENT_INITIATED, PAYMENT_OTP_REJECTED, PAYMENT_CONFIRMED

    payload_hash = Column(String(64))       # chain hash of the action payload
    previous_hash = Column(String(64))

    ip_address = Column(String(45))
    user_agent = Column(String(256))

    log_metadata = Column(JSON, default=dict)
    timestamp = Column(DateTime, default=datetime.utcnow)
