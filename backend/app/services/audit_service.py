"""
Audit Service — Hash-chained audit trail for payment session events.
"""
import logging
from datetime import datetime
from typing import Optional, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.audit import AuditLog
from app.utils.hashing import generate_chain_hash

logger = logging.getLogger(__name__)


class AuditService:
    """Creates tamper-evident audit log entries with hash chaining."""

    @staticmethod
    def log(
        db: Session,
        session_id: str,
        action: str,
        payload: Optional[Dict] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Append an audit entry for a payment session.

        The payload is stored alongside its chain hash so the chain can be
        recomputed later. Callers must pass masked values only.

        Args:
            db: Database session.
            session_id: Payment session id.
            action: PAYMENT_INITIATED, PAYMENT_OTP_REJECTED, PAYMENT_CONFIRMED.
            payload: Masked event data.
            ip_address: Client IP.
            user_agent: Client user agent.

        Returns:
            The created AuditLog entry.
        """
        last_entry = (
            db.query(AuditLog)
            .filter(AuditLog.session_id == session_id)
            .order_by(AuditLog.id.desc())
            .first()
        )
        previous_hash = last_entry.payload_hash if last_entry else ""

        payload_data = payload or {}
        entry = AuditLog(
            session_id=session_id,
            action=action,
            payload_hash=generate_chain_hash(payload_data, previous_hash),
            previous_hash=previous_hash,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:256] or None,
            log_metadata=payload_data,
            timestamp=datetime.utcnow(),
        )

        db.add(entry)
        db.commit()
        db.refresh(entry)

        return entry

    @staticmethod
    def record(db: Session, session_id: str, action: str, **kwargs) -> Optional[AuditLog]:
        """Best-effort variant of log(): a storage failure never fails the payment call."""
        try:
            return AuditService.log(db, session_id, action, **kwargs)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to write audit entry %s for %s", action, session_id)
            return None

    @staticmethod
    def get_trail(db: Session, session_id: str) -> list[AuditLog]:
        """Get the full audit trail for a session, in insertion order."""
        return (
            db.query(AuditLog)
            .filter(AuditLog.session_id == session_id)
            .order_by(AuditLog.id.asc())
            .all()
        )

    @staticmethod
    def verify_chain(db: Session, session_id: str) -> dict:
        """Recompute every link of the chain for a session.

        Returns:
            dict with 'valid' (bool), 'total_entries', and 'broken_at' (if invalid).
        """
        entries = AuditService.get_trail(db, session_id)

        previous_hash = ""
        for entry in entries:
            expected = generate_chain_hash(entry.log_metadata or {}, previous_hash)
            if entry.previous_hash != previous_hash or entry.payload_hash != expected:
                return {
                    "valid": False,
                    "total_entries": len(entries),
                    "broken_at": entry.id,
                    "message": f"Chain broken at entry {entry.id} ({entry.action})",
                }
            previous_hash = entry.payload_hash

        return {"valid": True, "total_entries": len(entries), "broken_at": None}
