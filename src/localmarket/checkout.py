"""Checkout: turn a cart, shipping details and a payment into a placed order."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from .cart import Cart
from .errors import EmptyCartError, ShippingInfoError
from .models import CustomerInfo, Order, OrderItem, ShippingAddress
from .order_store import OrderStore
from .payment import PaymentRequest, PaymentSimulator, validate_payment
from .pricing import PriceBreakdown, PricingPolicy, price_lines

logger = structlog.get_logger(__name__)

REQUIRED_SHIPPING_FIELDS = ("name", "email", "phone", "street", "city", "region", "postal_code")


@dataclass(frozen=True)
class ShippingInfo:
    """Shipping form as entered by the shopper."""

    name: str = ""
    email: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    region: str = ""
    postal_code: str = ""

    def validate(self) -> None:
        """
        Raises:
            ShippingInfoError: Listing every empty required field.
        """
        missing = [f for f in REQUIRED_SHIPPING_FIELDS if not str(getattr(self, f) or "").strip()]
        if missing:
            raise ShippingInfoError(missing)

    @property
    def customer(self) -> CustomerInfo:
        return CustomerInfo(name=self.name, email=self.email, phone=self.phone)

    @property
    def address(self) -> ShippingAddress:
        return ShippingAddress(
            street=self.street, city=self.city, region=self.region, postal_code=self.postal_code
        )


class Checkout:
    """Prices a cart, runs the simulated payment and records the order."""

    def __init__(
        self,
        orders: OrderStore,
        payments: PaymentSimulator | None = None,
        policy: PricingPolicy | None = None,
    ):
        self.orders = orders
        self.payments = payments or PaymentSimulator()
        self.policy = policy or PricingPolicy()

    def quote(self, cart: Cart) -> PriceBreakdown:
        """Price the cart as it stands, without placing anything."""
        return price_lines(cart.items, self.policy)

    def place_order(self, cart: Cart, shipping: ShippingInfo, payment: PaymentRequest) -> Order:
        """
        Check out the cart.

        All input is validated before the payment simulation starts. On
        success the order is stored as pending and the cart is cleared; on
        any failure the cart and the order store are left untouched.

        Raises:
            EmptyCartError: If the cart has no lines.
            ShippingInfoError: If required shipping fields are missing.
            PaymentValidationError: If the payment input is invalid.
        """
        if cart.is_empty():
            raise EmptyCartError()
        shipping.validate()
        validate_payment(payment)

        # Snapshot before the payment wait so later cart or catalog edits
        # cannot leak into the order.
        lines = cart.items
        items = [OrderItem.from_cart_item(line) for line in lines]
        breakdown = price_lines(lines, self.policy)

        record = self.payments.charge(payment)

        order = Order.create(
            customer=shipping.customer,
            shipping_address=shipping.address,
            items=items,
            subtotal=breakdown.subtotal,
            shipping_fee=breakdown.shipping,
            tax=breakdown.tax,
            total_amount=breakdown.total,
            payment=record,
            # Orders are attributed to the seller of the first line
            seller_id=lines[0].product.seller_id,
        )
        self.orders.add(order)
        cart.clear()

        logger.info(
            "checkout_completed",
            order_id=order.id,
            method=record.method,
            items=len(items),
            total=str(order.total_amount),
        )
        return order
