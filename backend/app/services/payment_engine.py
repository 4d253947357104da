"""
Payment Session Engine — Simulated card/UPI/netbanking authorization.

Sessions live in memory only. A session moves through:

    requires_action --(OTP verified)--> succeeded  (removed from the live table)

Instant methods (wallet, cash on delivery) start as ``succeeded`` but still
need one ``verify`` call to produce their PaymentResult. Expiry is lazy: an
expired session is evicted the next time anything looks it up.
"""
import logging
import math
import secrets
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Callable, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from app.config import Settings, get_settings
from app.exceptions import (
    InvalidAmount, InvalidOtp, InvalidPaymentMethod, OtpRequired,
    PaymentMethodRequired, SessionNotFound,
)
from app.utils.masking import derive_card_brand, mask_card, mask_upi, sanitize_card_number

logger = logging.getLogger(__name__)


class PaymentMethod(str, Enum):
    CARD = "Card"
    UPI = "UPI"
    NETBANKING = "NetBanking"
    WALLET = "Wallet"
    COD = "COD"


class SessionStatus(str, Enum):
    REQUIRES_ACTION = "requires_action"
    SUCCEEDED = "succeeded"


OTP_METHODS = frozenset({PaymentMethod.CARD, PaymentMethod.UPI, PaymentMethod.NETBANKING})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CustomerSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    email: Optional[str] = None


class PaymentMetadata(BaseModel):
    """Display-safe credential summary. The sanitized card number never serializes."""

    card_number: Optional[str] = Field(default=None, exclude=True, repr=False)
    card_holder: Optional[str] = None
    expiry: Optional[str] = None
    masked_card: Optional[str] = None
    card_brand: Optional[str] = None
    masked_upi: Optional[str] = None


class PaymentResult(BaseModel):
    """Settlement record, produced exactly once per session."""

    model_config = ConfigDict(frozen=True)

    id: str                          # transaction id (txn_...)
    reference: str                   # gateway reference (ref_...)
    status: SessionStatus = SessionStatus.SUCCEEDED
    update_time: datetime
    email_address: Optional[str] = None
    method: str
    currency: str
    amount: float
    card_brand: Optional[str] = None
    card_last4: Optional[str] = None
    masked_card: Optional[str] = None
    masked_upi: Optional[str] = None


class PaymentSession(BaseModel):
    id: str
    amount: float
    currency: str
    method: PaymentMethod
    status: SessionStatus
    requires_otp: bool
    otp: Optional[str] = Field(default=None, exclude=True, repr=False)
    metadata: PaymentMetadata
    customer: CustomerSnapshot
    created_at: datetime
    expires_at: datetime
    payment_result: Optional[PaymentResult] = None

    # Serializes verify/settle on this session id
    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


class PaymentSessionEngine:
    """Owns the live session table and the short-lived settled-result table."""

    def __init__(
        self,
        ttl_seconds: int = 300,
        default_currency: str = "INR",
        clock: Callable[[], datetime] = utcnow,
        purge_every: int = 500,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.default_currency = default_currency
        self._clock = clock
        self._sessions: Dict[str, PaymentSession] = {}
        # session id -> (result, retain_until); answers repeated confirmations
        self._settled: Dict[str, Tuple[PaymentResult, datetime]] = {}
        # every N inserts, create_session also sweeps expired entries
        self.purge_every = purge_every
        self._inserts = 0
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentSessionEngine":
        return cls(
            ttl_seconds=settings.PAYMENT_SESSION_TTL_SECONDS,
            default_currency=settings.DEFAULT_CURRENCY,
        )

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    # ─── Generators ──────────────────────────────────────────────────

    @staticmethod
    def generate_id(prefix: str) -> str:
        """Prefixed id with 48 random bits, e.g. session_3fa91c0d2b7e."""
        return f"{prefix}_{secrets.token_hex(6)}"

    @staticmethod
    def generate_otp() -> str:
        """Six decimal digits, leading zeros kept."""
        return f"{secrets.randbelow(1_000_000):06d}"

    # ─── Operations ──────────────────────────────────────────────────

    def create_session(
        self,
        amount,
        method,
        currency: Optional[str] = None,
        metadata: Optional[Mapping] = None,
        customer: Optional[Mapping] = None,
    ) -> PaymentSession:
        """Create a session and store it in the live table.

        Args:
            amount: Positive amount in major currency units.
            method: A PaymentMethod or its string value ("Card", "UPI", ...).
            currency: ISO code, defaults to the engine's default currency.
            metadata: Raw method fields (card_number, card_holder, expiry, upi_id).
                Not mutated; only masked/derived values are kept.
            customer: {"name": ..., "email": ...} snapshot.

        Raises:
            InvalidAmount, PaymentMethodRequired, InvalidPaymentMethod
        """
        if (
            isinstance(amount, bool)
            or not isinstance(amount, (int, float, Decimal))
            or not math.isfinite(amount)
            or amount <= 0
        ):
            raise InvalidAmount()

        method = self._resolve_method(method)
        requires_otp = method in OTP_METHODS
        raw = dict(metadata or {})

        card_number = raw.get("card_number")
        upi_id = raw.get("upi_id")
        session_metadata = PaymentMetadata(
            card_number=sanitize_card_number(card_number) if card_number else None,
            card_holder=raw.get("card_holder"),
            expiry=raw.get("expiry"),
            masked_card=mask_card(card_number) if card_number else None,
            card_brand=derive_card_brand(card_number) if card_number else None,
            masked_upi=mask_upi(upi_id) if upi_id else None,
        )

        now = self._clock()
        with self._lock:
            session_id = self.generate_id("session")
            while session_id in self._sessions or session_id in self._settled:
                session_id = self.generate_id("session")

            session = PaymentSession(
                id=session_id,
                amount=float(amount),
                currency=currency or self.default_currency,
                method=method,
                status=SessionStatus.REQUIRES_ACTION if requires_otp else SessionStatus.SUCCEEDED,
                requires_otp=requires_otp,
                otp=self.generate_otp() if requires_otp else None,
                metadata=session_metadata,
                customer=CustomerSnapshot(**dict(customer or {})),
                created_at=now,
                expires_at=now + self.ttl,
            )
            self._sessions[session_id] = session

            self._inserts += 1
            if self.purge_every and self._inserts % self.purge_every == 0:
                self._purge_locked(now)

        logger.info(
            "Payment session %s created: method=%s amount=%s %s requires_otp=%s",
            session_id, method.value, session.amount, session.currency, requires_otp,
        )
        return session

    def get_session(self, session_id: str) -> Optional[PaymentSession]:
        """Return the live session, or None if it is unknown, expired or settled."""
        with self._lock:
            return self._get_live(session_id, self._clock())

    def verify(self, session_id: str, otp: Optional[str], email: Optional[str]) -> PaymentResult:
        """Check the OTP and settle the session.

        Repeating the call for an already settled session returns the stored
        result without settling again.

        Raises:
            SessionNotFound, OtpRequired, InvalidOtp
        """
        now = self._clock()
        with self._lock:
            session = self._get_live(session_id, now)
            if session is None:
                settled = self._get_settled(session_id, now)
                if settled is not None:
                    logger.info("Payment session %s already settled, returning stored result", session_id)
                    return settled
                raise SessionNotFound()

        with session._lock:
            if session.payment_result is not None:
                return session.payment_result

            if session.requires_otp:
                if not otp:
                    raise OtpRequired()
                if str(otp) != session.otp:
                    logger.warning("Invalid OTP submitted for payment session %s", session_id)
                    raise InvalidOtp()

            return self._settle(session, email)

    def purge_expired(self) -> int:
        """Evict expired live sessions and stale settled results. Returns the count evicted."""
        with self._lock:
            return self._purge_locked(self._clock())

    # ─── Internals ───────────────────────────────────────────────────

    @staticmethod
    def _resolve_method(method) -> PaymentMethod:
        if method is None or method == "":
            raise PaymentMethodRequired()
        try:
            return PaymentMethod(method)
        except ValueError:
            raise InvalidPaymentMethod(f"Unsupported payment method: {method}") from None

    def _purge_locked(self, now: datetime) -> int:
        # caller holds self._lock
        expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
        for sid in expired:
            del self._sessions[sid]
        stale = [sid for sid, (_, until) in self._settled.items() if until < now]
        for sid in stale:
            del self._settled[sid]

        if expired or stale:
            logger.info("Purged %d expired sessions and %d settled results", len(expired), len(stale))
        return len(expired) + len(stale)

    def _get_live(self, session_id: str, now: datetime) -> Optional[PaymentSession]:
        # caller holds self._lock
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.is_expired(now):
            del self._sessions[session_id]
            logger.info("Payment session %s expired and was evicted", session_id)
            return None
        return session

    def _get_settled(self, session_id: str, now: datetime) -> Optional[PaymentResult]:
        # caller holds self._lock
        entry = self._settled.get(session_id)
        if entry is None:
            return None
        result, retain_until = entry
        if retain_until < now:
            del self._settled[session_id]
            return None
        return result

    def _settle(self, session: PaymentSession, email: Optional[str]) -> PaymentResult:
        # caller holds session._lock
        now = self._clock()
        metadata = session.metadata
        result = PaymentResult(
            id=self.generate_id("txn"),
            reference=self.generate_id("ref"),
            update_time=now,
            email_address=email,
            method=session.method.value,
            currency=session.currency,
            amount=session.amount,
            card_brand=metadata.card_brand,
            card_last4=metadata.masked_card[-4:] if metadata.masked_card else None,
            masked_card=metadata.masked_card,
            masked_upi=metadata.masked_upi,
        )

        with self._lock:
            session.payment_result = result
            session.status = SessionStatus.SUCCEEDED
            self._sessions.pop(session.id, None)
            self._settled[session.id] = (result, now + self.ttl)

        logger.info("Payment session %s settled as %s (ref %s)", session.id, result.id, result.reference)
        return result


@lru_cache()
def get_payment_engine() -> PaymentSessionEngine:
    """Process-wide engine; FastAPI dependency (override in tests)."""
    return PaymentSessionEngine.from_settings(get_settings())
