"""Data models for localmarket."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
import uuid

from .errors import InvalidProductError

CATEGORIES = ("groceries", "handmade", "farm")
DELIVERY_OPTIONS = ("delivery", "pickup", "both")
ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
PAYMENT_METHODS = ("mobile_money", "card")
PAYMENT_STATUSES = ("pending", "completed", "failed")

# Fallbacks used when decoding stored rows with unknown enum values
DEFAULT_CATEGORY = "farm"
DEFAULT_DELIVERY_OPTION = "both"
PLACEHOLDER_IMAGE = "/placeholder.svg"

CENTS = Decimal("0.01")


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _generate_id() -> str:
    """Generate a new record ID."""
    return str(uuid.uuid4())


def to_money(value: Any) -> Decimal:
    """Coerce a number or numeric string to a Decimal rounded to cents."""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _parse_price(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidProductError("price is required", "price")
    try:
        price = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidProductError(f"not a number: {value!r}", "price")
    if not price.is_finite() or price <= 0:
        raise InvalidProductError("must be greater than 0", "price")
    return price


def _parse_stock(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidProductError(f"not an integer: {value!r}", "stock")
    if isinstance(value, int):
        stock = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        stock = int(value.strip())
    elif isinstance(value, float) and value.is_integer():
        stock = int(value)
    else:
        raise InvalidProductError(f"not an integer: {value!r}", "stock")
    if stock < 0:
        raise InvalidProductError("must not be negative", "stock")
    return stock


def _pick(data: dict[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    """Read a field that may arrive in snake_case or camelCase."""
    if snake in data:
        return data[snake]
    return data.get(camel, default)


def parse_product_input(data: dict[str, Any]) -> dict[str, Any]:
    """
    Validate seller-supplied product fields.

    Unlike Product.from_dict this is strict: enum values outside their sets
    are rejected rather than mapped to a fallback.

    Returns:
        Dict with name, description, price, category, stock, delivery_option.

    Raises:
        InvalidProductError: If any field is missing or invalid.
    """
    if not isinstance(data, dict):
        raise InvalidProductError("product data must be a JSON object")

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise InvalidProductError("is required", "name")

    description = data.get("description") or ""
    if not isinstance(description, str):
        raise InvalidProductError("must be a string", "description")

    category = data.get("category")
    if category not in CATEGORIES:
        raise InvalidProductError(f"must be one of {', '.join(CATEGORIES)}", "category")

    delivery_option = _pick(data, "delivery_option", "deliveryOption")
    if delivery_option not in DELIVERY_OPTIONS:
        raise InvalidProductError(
            f"must be one of {', '.join(DELIVERY_OPTIONS)}", "deliveryOption"
        )

    return {
        "name": name.strip(),
        "description": description,
        "price": _parse_price(data.get("price")),
        "category": category,
        "stock": _parse_stock(data.get("stock", 0)),
        "delivery_option": delivery_option,
    }


@dataclass
class Product:
    """A catalog listing owned by one seller."""

    id: str
    name: str
    price: Decimal
    seller_id: str
    description: str = ""
    image: str = PLACEHOLDER_IMAGE
    category: str = DEFAULT_CATEGORY
    stock: int = 0
    delivery_option: str = DEFAULT_DELIVERY_OPTION
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "image": self.image,
            "category": self.category,
            "stock": self.stock,
            "delivery_option": self.delivery_option,
            "seller_id": self.seller_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        """
        Decode a stored or external row.

        Unknown category and delivery option values fall back to
        DEFAULT_CATEGORY and DEFAULT_DELIVERY_OPTION. Rows without an id or
        name, or with an unusable price or stock, are rejected.

        Raises:
            InvalidProductError: If the row is malformed.
        """
        product_id = data.get("id")
        if not isinstance(product_id, str) or not product_id:
            raise InvalidProductError("is required", "id")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidProductError("is required", "name")

        category = data.get("category")
        if category not in CATEGORIES:
            category = DEFAULT_CATEGORY
        delivery_option = _pick(data, "delivery_option", "deliveryOption")
        if delivery_option not in DELIVERY_OPTIONS:
            delivery_option = DEFAULT_DELIVERY_OPTION

        return cls(
            id=product_id,
            name=name,
            description=data.get("description") or "",
            price=_parse_price(data.get("price")),
            image=data.get("image") or PLACEHOLDER_IMAGE,
            category=category,
            stock=_parse_stock(data.get("stock", 0)),
            delivery_option=delivery_option,
            seller_id=str(_pick(data, "seller_id", "sellerId", "")),
            created_at=_pick(data, "created_at", "createdAt", ""),
            updated_at=_pick(data, "updated_at", "updatedAt", ""),
        )

    @classmethod
    def create(
        cls,
        name: str,
        price: Decimal,
        seller_id: str,
        description: str = "",
        image: str | None = None,
        category: str = DEFAULT_CATEGORY,
        stock: int = 0,
        delivery_option: str = DEFAULT_DELIVERY_OPTION,
    ) -> "Product":
        """Create a new product with generated ID and timestamps."""
        now = _utc_now()
        return cls(
            id=_generate_id(),
            name=name,
            description=description,
            price=price,
            image=image or PLACEHOLDER_IMAGE,
            category=category,
            stock=stock,
            delivery_option=delivery_option,
            seller_id=seller_id,
            created_at=now,
            updated_at=now,
        )

    def with_changes(self, **changes: Any) -> "Product":
        """Return a copy with the given fields replaced and updated_at refreshed."""
        changes.pop("id", None)
        changes.pop("seller_id", None)
        return replace(self, updated_at=_utc_now(), **changes)


@dataclass
class CartItem:
    """A cart line: a product snapshot and a requested quantity."""

    product: Product
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {"product": self.product.to_dict(), "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartItem":
        return cls(
            product=Product.from_dict(data["product"]),
            quantity=int(data["quantity"]),
        )


@dataclass(frozen=True)
class OrderItem:
    """Denormalized copy of a cart line taken at checkout."""

    product_id: str
    product_name: str
    quantity: int
    price: Decimal  # unit price at checkout

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": str(self.price),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderItem":
        return cls(
            product_id=data["product_id"],
            product_name=data["product_name"],
            quantity=int(data["quantity"]),
            price=Decimal(data["price"]),
        )

    @classmethod
    def from_cart_item(cls, item: CartItem) -> "OrderItem":
        return cls(
            product_id=item.product.id,
            product_name=item.product.name,
            quantity=item.quantity,
            price=item.product.price,
        )


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    email: str
    phone: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "email": self.email, "phone": self.phone}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomerInfo":
        return cls(name=data["name"], email=data["email"], phone=data["phone"])


@dataclass(frozen=True)
class ShippingAddress:
    street: str
    city: str
    region: str  # county
    postal_code: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "street": self.street,
            "city": self.city,
            "region": self.region,
            "postal_code": self.postal_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShippingAddress":
        return cls(
            street=data["street"],
            city=data["city"],
            region=data["region"],
            postal_code=data["postal_code"],
        )


@dataclass(frozen=True)
class PaymentRecord:
    """Payment sub-record of an order; set once at checkout."""

    method: str  # "mobile_money" | "card"
    status: str  # "pending" | "completed" | "failed"
    transaction_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"method": self.method, "status": self.status}
        if self.transaction_id is not None:
            result["transaction_id"] = self.transaction_id
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaymentRecord":
        return cls(
            method=data["method"],
            status=data["status"],
            transaction_id=data.get("transaction_id"),
        )


@dataclass
class Order:
    """A placed order. Everything but status and updated_at is fixed at creation."""

    id: str
    customer: CustomerInfo
    shipping_address: ShippingAddress
    items: tuple[OrderItem, ...]
    subtotal: Decimal
    shipping_fee: Decimal
    tax: Decimal
    total_amount: Decimal
    payment: PaymentRecord
    seller_id: str
    status: str = "pending"
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customer": self.customer.to_dict(),
            "shipping_address": self.shipping_address.to_dict(),
            "items": [i.to_dict() for i in self.items],
            "subtotal": str(self.subtotal),
            "shipping_fee": str(self.shipping_fee),
            "tax": str(self.tax),
            "total_amount": str(self.total_amount),
            "status": self.status,
            "payment": self.payment.to_dict(),
            "seller_id": self.seller_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            id=data["id"],
            customer=CustomerInfo.from_dict(data["customer"]),
            shipping_address=ShippingAddress.from_dict(data["shipping_address"]),
            items=tuple(OrderItem.from_dict(i) for i in data.get("items", [])),
            subtotal=Decimal(data["subtotal"]),
            shipping_fee=Decimal(data["shipping_fee"]),
            tax=Decimal(data["tax"]),
            total_amount=Decimal(data["total_amount"]),
            status=data.get("status", "pending"),
            payment=PaymentRecord.from_dict(data["payment"]),
            seller_id=data.get("seller_id", ""),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )

    @classmethod
    def create(
        cls,
        customer: CustomerInfo,
        shipping_address: ShippingAddress,
        items: list[OrderItem],
        subtotal: Decimal,
        shipping_fee: Decimal,
        tax: Decimal,
        total_amount: Decimal,
        payment: PaymentRecord,
        seller_id: str,
    ) -> "Order":
        """Create a new pending order with generated ID and timestamps."""
        now = _utc_now()
        return cls(
            id=f"ORD-{uuid.uuid4().hex.upper()}",
            customer=customer,
            shipping_address=shipping_address,
            items=tuple(items),
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            tax=tax,
            total_amount=total_amount,
            payment=payment,
            seller_id=seller_id,
            status="pending",
            created_at=now,
            updated_at=now,
        )
