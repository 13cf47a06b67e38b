"""Tests for payment validation and the payment simulator."""

import pytest

from localmarket.config import Settings
from localmarket.errors import PaymentValidationError
from localmarket.payment import (
    CardPayment,
    MobileMoneyPayment,
    PaymentSimulator,
    validate_card,
    validate_mobile_money_phone,
)

VALID_CARD = CardPayment(number="4242 4242 4242 4242", name="Amina Otieno", expiry="12/27", cvc="123")


def card(**overrides):
    fields = {"number": VALID_CARD.number, "name": VALID_CARD.name, "expiry": VALID_CARD.expiry, "cvc": VALID_CARD.cvc}
    fields.update(overrides)
    return CardPayment(**fields)


class TestMobileMoneyPhone:
    @pytest.mark.parametrize("phone", ["0712345678", "254712345678", "+254712345678", " 0798765432 "])
    def test_valid_numbers(self, phone):
        subscriber = validate_mobile_money_phone(phone)
        assert len(subscriber) == 9
        assert subscriber.startswith("7")

    @pytest.mark.parametrize("phone", ["123", "", "0812345678", "07123456789", "071234567", "07123abc78"])
    def test_invalid_numbers(self, phone):
        with pytest.raises(PaymentValidationError) as exc_info:
            validate_mobile_money_phone(phone)
        assert exc_info.value.field == "phone"


class TestCardValidation:
    def test_valid_card(self):
        validate_card(VALID_CARD)

    def test_dashes_in_number_allowed(self):
        validate_card(card(number="4242-4242-4242-4242"))

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"number": "4242 4242"}, "number"),
            ({"number": "4242 4242 4242 424x"}, "number"),
            ({"name": "  "}, "name"),
            ({"expiry": "1227"}, "expiry"),
            ({"expiry": "12/2027"}, "expiry"),
            ({"cvc": "12"}, "cvc"),
        ],
    )
    def test_invalid_field_reported(self, overrides, field):
        with pytest.raises(PaymentValidationError) as exc_info:
            validate_card(card(**overrides))
        assert exc_info.value.field == field

    def test_first_failing_field_wins(self):
        with pytest.raises(PaymentValidationError) as exc_info:
            validate_card(card(number="1", expiry="bad", cvc=""))
        assert exc_info.value.field == "number"


class TestPaymentSimulator:
    def test_mobile_money_waits_twice(self):
        waits, progress = [], []
        sim = PaymentSimulator(
            mobile_money_delays=(2.0, 3.0), sleep=waits.append, on_progress=progress.append
        )

        record = sim.charge(MobileMoneyPayment(phone="0712345678"))

        assert waits == [2.0, 3.0]
        assert record.method == "mobile_money"
        assert record.status == "completed"
        assert record.transaction_id.startswith("TXN-")
        assert any("M-Pesa request sent" in m for m in progress)

    def test_card_waits_once(self):
        waits = []
        sim = PaymentSimulator(card_delay=2.0, sleep=waits.append)

        record = sim.charge(VALID_CARD)

        assert waits == [2.0]
        assert record.method == "card"
        assert record.status == "completed"

    def test_invalid_input_does_not_wait(self):
        waits = []
        sim = PaymentSimulator(sleep=waits.append)

        with pytest.raises(PaymentValidationError):
            sim.charge(MobileMoneyPayment(phone="123"))

        assert waits == []

    def test_transaction_ids_are_unique(self):
        sim = PaymentSimulator(sleep=lambda _: None)
        ids = {sim.charge(VALID_CARD).transaction_id for _ in range(5)}
        assert len(ids) == 5

    def test_from_settings(self):
        waits = []
        settings = Settings(mobile_money_delays=(0.5, 0.25), card_delay=0.1)
        sim = PaymentSimulator.from_settings(settings, sleep=waits.append)

        sim.charge(MobileMoneyPayment(phone="0712345678"))
        sim.charge(VALID_CARD)

        assert waits == [0.5, 0.25, 0.1]
