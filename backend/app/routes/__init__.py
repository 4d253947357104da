from app.routes.payment import router as payment_router
from app.routes.admin import router as admin_router

__all__ = ["payment_router", "admin_router"]
