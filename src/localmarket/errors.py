"""Custom exceptions for localmarket."""


class LocalmarketError(Exception):
    """Base exception for all localmarket errors."""

    # Short user-facing headline; str(exc) carries the detail.
    title = "Request failed"


class ValidationError(LocalmarketError):
    """Input was rejected before any state was mutated."""

    title = "Invalid input"


class NotFoundError(LocalmarketError):
    """A referenced record does not exist."""

    title = "Not found"


class InvalidProductError(ValidationError):
    """Raised when a product payload or stored row is malformed."""

    title = "Invalid product data"

    def __init__(self, reason: str, field: str | None = None):
        self.reason = reason
        self.field = field
        msg = reason if field is None else f"{field}: {reason}"
        super().__init__(msg)


class InvalidImageError(ValidationError):
    """Raised when an uploaded image violates the type or size constraint."""

    title = "Invalid image"

    def __init__(self, constraint: str, reason: str):
        self.constraint = constraint
        super().__init__(reason)


class PaymentValidationError(ValidationError):
    """Raised when payment input (phone or card details) is invalid."""

    title = "Payment details invalid"

    def __init__(self, field: str, reason: str):
        self.field = field
        super().__init__(reason)


class ShippingInfoError(ValidationError):
    """Raised when required shipping fields are missing."""

    title = "Missing information"

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Please fill in all required fields: {', '.join(missing)}")


class CartQuantityError(ValidationError):
    """Raised when a non-positive quantity is added to the cart."""

    title = "Invalid quantity"

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Quantity must be at least 1, got {quantity}")


class InsufficientStockError(ValidationError):
    """Raised when a cart line would exceed the product's stock."""

    title = "Not enough stock"

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Only {available} unit(s) of {product_id} available, requested {requested}"
        )


class InvalidOrderStatusError(ValidationError):
    """Raised for a status value outside the order status set."""

    title = "Invalid order status"

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Unknown order status: {status}")


class InvalidStatusTransitionError(ValidationError):
    """Raised when an order status change is not allowed by the lifecycle."""

    title = "Status change not allowed"

    def __init__(self, order_id: str, current: str, requested: str):
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(f"Order {order_id} cannot move from {current} to {requested}")


class UnknownTierError(ValidationError):
    """Raised for a subscription tier name that is not in the tier table."""

    title = "Unknown subscription tier"

    def __init__(self, tier: str):
        self.tier = tier
        super().__init__(f"Unknown subscription tier: {tier}")


class ProductNotFoundError(NotFoundError):
    """Raised when a product ID doesn't exist."""

    title = "Product not found"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class OrderNotFoundError(NotFoundError):
    """Raised when an order ID doesn't exist."""

    title = "Order not found"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class ProductLimitReachedError(LocalmarketError):
    """Raised when a seller is at the product ceiling of their tier."""

    title = "Product limit reached"

    def __init__(self, tier: str, limit: int):
        self.tier = tier
        self.limit = limit
        super().__init__(
            f"You've reached your product limit ({limit} on the {tier} plan). "
            "Upgrade your plan to list more products."
        )


class EmptyCartError(LocalmarketError):
    """Raised when checkout is attempted with an empty cart."""

    title = "Cart is empty"

    def __init__(self):
        super().__init__("Your cart is empty. Browse products to add items.")


class StoreError(LocalmarketError):
    """Raised when a backing store cannot be read or written."""

    title = "Storage unavailable"

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Store at {path} failed: {reason}")


class InvalidSchemaVersionError(StoreError):
    """Raised when a stored document has an unsupported schema version."""

    def __init__(self, path: str, found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(
            path, f"unsupported schema version {found}, this tool supports version {supported}"
        )
