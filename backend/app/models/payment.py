"""
Payment Record Model — Settled payments (one row per PaymentResult).
Only masked credential fields are stored.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Numeric

from app.database import Base


class PaymentRecord(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    transaction_id = Column(String(40), unique=True, nullable=False, index=True)   # txn_...
    reference = Column(String(40), nullable=False)                                 # ref_...
    session_id = Column(String(40), nullable=False, index=True)

    method = Column(String(16), nullable=False)   # Card | UPI | NetBanking | Wallet | COD
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="INR")
    status = Column(String(16), default="succeeded")

    card_brand = Column(String(16))
    masked_card = Column(String(24))
    masked_upi = Column(String(64))
    email_address = Column(String(254))

    settled_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
