"""Simulated payment: input validation and a timed stand-in for the provider."""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Union

import structlog

from .config import DEFAULT_CARD_DELAY, DEFAULT_MOBILE_MONEY_DELAYS, Settings
from .errors import PaymentValidationError
from .models import PaymentRecord

logger = structlog.get_logger(__name__)

# 07xxxxxxxx, 2547xxxxxxxx or +2547xxxxxxxx
MOBILE_MONEY_PHONE_RE = re.compile(r"^(?:254|\+254|0)?(7[0-9]{8})$")
CARD_EXPIRY_RE = re.compile(r"^\d{2}/\d{2}$")
MIN_CARD_DIGITS = 16
MIN_CVC_LENGTH = 3


@dataclass(frozen=True)
class MobileMoneyPayment:
    phone: str

    method = "mobile_money"


@dataclass(frozen=True)
class CardPayment:
    number: str
    name: str
    expiry: str  # MM/YY
    cvc: str

    method = "card"


PaymentRequest = Union[MobileMoneyPayment, CardPayment]


def validate_mobile_money_phone(phone: str) -> str:
    """
    Check a mobile-money number and return its 9-digit subscriber part.

    Raises:
        PaymentValidationError: If the number doesn't match the local pattern.
    """
    match = MOBILE_MONEY_PHONE_RE.match((phone or "").strip())
    if not match:
        raise PaymentValidationError("phone", "Please enter a valid M-Pesa phone number")
    return match.group(1)


def validate_card(card: CardPayment) -> None:
    """
    Check card details, reporting the first failing field.

    Raises:
        PaymentValidationError: If number, name, expiry or CVC is invalid.
    """
    digits = re.sub(r"[\s-]", "", card.number or "")
    if not digits.isdigit() or len(digits) < MIN_CARD_DIGITS:
        raise PaymentValidationError("number", "Please enter a valid card number")
    if not (card.name or "").strip():
        raise PaymentValidationError("name", "Please enter the name on the card")
    if not CARD_EXPIRY_RE.match(card.expiry or ""):
        raise PaymentValidationError("expiry", "Please enter a valid expiry date (MM/YY)")
    if len((card.cvc or "").strip()) < MIN_CVC_LENGTH:
        raise PaymentValidationError("cvc", "Please enter a valid security code")


def validate_payment(request: PaymentRequest) -> None:
    if isinstance(request, MobileMoneyPayment):
        validate_mobile_money_phone(request.phone)
    elif isinstance(request, CardPayment):
        validate_card(request)
    else:
        raise PaymentValidationError("method", f"Unsupported payment method: {request!r}")


def _transaction_id() -> str:
    return f"TXN-{uuid.uuid4().hex[:16].upper()}"


class PaymentSimulator:
    """
    Stand-in for the payment provider.

    Mobile money waits twice (request sent, then confirmed); card waits once.
    Once input validates, the simulated provider always succeeds.
    """

    def __init__(
        self,
        mobile_money_delays: tuple[float, float] = DEFAULT_MOBILE_MONEY_DELAYS,
        card_delay: float = DEFAULT_CARD_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        on_progress: Callable[[str], None] | None = None,
    ):
        self.mobile_money_delays = mobile_money_delays
        self.card_delay = card_delay
        self._sleep = sleep
        self._on_progress = on_progress

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "PaymentSimulator":
        return cls(
            mobile_money_delays=settings.mobile_money_delays,
            card_delay=settings.card_delay,
            **kwargs,
        )

    def _progress(self, message: str) -> None:
        if self._on_progress is not None:
            self._on_progress(message)

    def charge(self, request: PaymentRequest) -> PaymentRecord:
        """
        Validate and run a simulated payment.

        Raises:
            PaymentValidationError: If the payment input is invalid. Nothing
                is waited on in that case.
        """
        validate_payment(request)

        if isinstance(request, MobileMoneyPayment):
            sent_delay, confirm_delay = self.mobile_money_delays
            self._sleep(sent_delay)
            logger.info("mobile_money_request_sent")
            self._progress("M-Pesa request sent. Check your phone for the payment prompt.")
            self._sleep(confirm_delay)
            logger.info("mobile_money_confirmed")
        else:
            self._sleep(self.card_delay)
            logger.info("card_payment_processed")

        record = PaymentRecord(
            method=request.method, status="completed", transaction_id=_transaction_id()
        )
        self._progress("Payment successful.")
        return record
