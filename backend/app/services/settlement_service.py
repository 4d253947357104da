"""
Settlement Service — Persists settled PaymentResults for reporting.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.payment import PaymentRecord
from app.services.payment_engine import PaymentResult

logger = logging.getLogger(__name__)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SettlementService:

    @staticmethod
    def record(db: Session, session_id: str, result: PaymentResult) -> Tuple[Optional[PaymentRecord], bool]:
        """Store a settlement once.

        Returns:
            (record, created). Repeated confirmations get the existing row and
            created=False; a storage failure gives (None, False).
        """
        try:
            existing = (
                db.query(PaymentRecord)
                .filter(PaymentRecord.transaction_id == result.id)
                .first()
            )
            if existing:
                return existing, False

            record = PaymentRecord(
                transaction_id=result.id,
                reference=result.reference,
                session_id=session_id,
                method=result.method,
                amount=result.amount,
                currency=result.currency,
                status=result.status.value,
                card_brand=result.card_brand,
                masked_card=result.masked_card,
                masked_upi=result.masked_upi,
                email_address=result.email_address,
                settled_at=_naive_utc(result.update_time),
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            return record, True
        except IntegrityError:
            # a concurrent confirmation inserted the same transaction first
            db.rollback()
            existing = (
                db.query(PaymentRecord)
                .filter(PaymentRecord.transaction_id == result.id)
                .first()
            )
            return existing, False
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to persist settlement %s for %s", result.id, session_id)
            return None, False

    @staticmethod
    def list_recent(db: Session, email: Optional[str] = None, limit: int = 50, offset: int = 0):
        query = db.query(PaymentRecord).order_by(PaymentRecord.id.desc())
        if email:
            query = query.filter(PaymentRecord.email_address == email)
        total = query.count()
        return total, query.offset(offset).limit(limit).all()
