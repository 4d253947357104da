from app.models.audit import AuditLog
from app.models.payment import PaymentRecord

__all__ = ["AuditLog", "PaymentRecord"]
