from app.services.payment_engine import PaymentSessionEngine, PaymentSession, PaymentResult
from app.services.audit_service import AuditService
from app.services.settlement_service import SettlementService

__all__ = ["PaymentSessionEngine", "PaymentSession", "PaymentResult", "AuditService", "SettlementService"]
