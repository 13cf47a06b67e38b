"""FastAPI REST API for the localmarket storefront."""

import json
from typing import Literal, Optional

from fastapi import FastAPI, File, Form, Header, Query, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
import structlog

from . import __version__
from .browse import browse_products
from .cart import Cart
from .catalog_store import CatalogStore, JsonCatalogStore, MemoryCatalogStore
from .checkout import Checkout, ShippingInfo
from .config import Settings, load_settings
from .errors import (
    EmptyCartError,
    InvalidProductError,
    LocalmarketError,
    NotFoundError,
    ProductLimitReachedError,
    StoreError,
    ValidationError,
)
from .images import ImageStore, ImageUpload
from .logs import configure_logging
from .models import Order, Product
from .order_store import JsonOrderStore, MemoryOrderStore, OrderStore
from .payment import CardPayment, MobileMoneyPayment, PaymentRequest, PaymentSimulator
from .pricing import PricingPolicy
from .seller import SellerCatalog
from .tiers import DEFAULT_TIER, TIERS

logger = structlog.get_logger(__name__)

# Seller used when neither the header nor the payload names one
DEFAULT_SELLER_ID = "s5"


# --- Pydantic Schemas ---


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductSchema(CamelModel):
    id: str
    name: str
    description: str
    price: float
    image: str
    category: str
    stock: int
    delivery_option: str
    seller_id: str
    created_at: str
    updated_at: str


class TierSchema(CamelModel):
    id: str
    name: str
    monthly_price: float
    product_limit: Optional[int]  # null means unlimited
    features: list[str]
    perks: list[str]


class CustomerSchema(CamelModel):
    name: str
    email: str
    phone: str


class ShippingAddressSchema(CamelModel):
    street: str
    city: str
    region: str
    postal_code: str


class OrderItemSchema(CamelModel):
    product_id: str
    product_name: str
    quantity: int
    price: float


class PaymentSchema(CamelModel):
    method: str
    status: str
    transaction_id: Optional[str] = None


class OrderSchema(CamelModel):
    id: str
    customer: CustomerSchema
    shipping_address: ShippingAddressSchema
    items: list[OrderItemSchema]
    subtotal: float
    shipping_fee: float
    tax: float
    total_amount: float
    status: str
    payment: PaymentSchema
    seller_id: str
    created_at: str
    updated_at: str


class OrderListResponse(CamelModel):
    orders: list[OrderSchema]
    count: int


class OrderStatsResponse(CamelModel):
    counts: dict[str, int]
    total: int
    recent: list[OrderSchema]


class OrderStatusUpdateRequest(CamelModel):
    status: str = Field(..., description="pending|processing|shipped|delivered|cancelled")


class CartLineRequest(CamelModel):
    product_id: str
    quantity: int = Field(default=1)


class ShippingRequest(CamelModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    region: str = ""
    postal_code: str = ""


class PaymentRequestSchema(CamelModel):
    method: Literal["mobile_money", "card"]
    phone: Optional[str] = Field(None, description="Mobile-money number (mobile_money)")
    card_number: Optional[str] = None
    card_name: Optional[str] = None
    expiry: Optional[str] = Field(None, description="MM/YY")
    cvc: Optional[str] = None


class CheckoutRequest(CamelModel):
    items: list[CartLineRequest]
    shipping: ShippingRequest
    payment: PaymentRequestSchema


# --- Helper Functions ---


# Memory-backed stores must outlive a single request
_memory_stores: dict[str, object] = {}


def get_settings() -> Settings:
    """Read settings from the environment on every call."""
    return load_settings()


def get_catalog_store(settings: Settings) -> CatalogStore:
    if settings.store_backend == "memory":
        return _memory_stores.setdefault("catalog", MemoryCatalogStore())
    return JsonCatalogStore(settings.catalog_path)


def get_order_store(settings: Settings) -> OrderStore:
    if settings.store_backend == "memory":
        return _memory_stores.setdefault("orders", MemoryOrderStore())
    return JsonOrderStore(settings.orders_path)


def get_image_store(settings: Settings) -> ImageStore:
    return ImageStore(settings.uploads_dir, max_bytes=settings.max_image_bytes)


def product_to_schema(product: Product) -> ProductSchema:
    return ProductSchema(**{**product.to_dict(), "price": float(product.price)})


def order_to_schema(order: Order) -> OrderSchema:
    return OrderSchema(
        id=order.id,
        customer=CustomerSchema(**order.customer.to_dict()),
        shipping_address=ShippingAddressSchema(**order.shipping_address.to_dict()),
        items=[
            OrderItemSchema(
                product_id=i.product_id,
                product_name=i.product_name,
                quantity=i.quantity,
                price=float(i.price),
            )
            for i in order.items
        ],
        subtotal=float(order.subtotal),
        shipping_fee=float(order.shipping_fee),
        tax=float(order.tax),
        total_amount=float(order.total_amount),
        status=order.status,
        payment=PaymentSchema(**order.payment.to_dict()),
        seller_id=order.seller_id,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _parse_product_data(raw: str) -> dict:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidProductError(f"productData is not valid JSON ({e.msg})")
    if not isinstance(data, dict):
        raise InvalidProductError("productData must be a JSON object")
    return data


def _read_upload(image: Optional[UploadFile], max_bytes: int) -> Optional[ImageUpload]:
    # Browsers send an empty part when no file was chosen
    if image is None or not image.filename:
        return None
    # One byte past the limit is enough for check_image to reject it
    return ImageUpload(
        filename=image.filename,
        content_type=image.content_type or "",
        data=image.file.read(max_bytes + 1),
    )


def _payment_from_request(request: PaymentRequestSchema) -> PaymentRequest:
    if request.method == "mobile_money":
        return MobileMoneyPayment(phone=request.phone or "")
    return CardPayment(
        number=request.card_number or "",
        name=request.card_name or "",
        expiry=request.expiry or "",
        cvc=request.cvc or "",
    )


# --- FastAPI App ---


app = FastAPI(
    title="localmarket API",
    description="Local marketplace storefront: catalog, checkout and seller dashboard",
    version=__version__,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:8080",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Checked along the exception's MRO, most specific first
ERROR_STATUS_CODES: dict[type, int] = {
    ValidationError: 400,
    EmptyCartError: 400,
    NotFoundError: 404,
    ProductLimitReachedError: 403,
    StoreError: 500,
}


@app.exception_handler(LocalmarketError)
async def localmarket_error_handler(request: Request, exc: LocalmarketError) -> JSONResponse:
    """Map LocalmarketError subclasses to appropriate HTTP responses."""
    status_code = 500
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            status_code = ERROR_STATUS_CODES[cls]
            break
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status_code,
        content={"message": exc.title, "error": str(exc), "error_type": type(exc).__name__},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies in the same shape as other input errors."""
    return JSONResponse(
        status_code=400,
        content={
            "message": "Invalid request",
            "error": "; ".join(
                f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()
            ),
            "error_type": "RequestValidationError",
        },
    )


# --- Endpoints ---


@app.get("/api/health")
def health_check():
    """Basic service status."""
    settings = get_settings()
    try:
        count = get_catalog_store(settings).count()
        return {"status": "ok", "product_count": count, "store": settings.store_backend}
    except LocalmarketError as e:
        return {"status": "error", "detail": str(e)}


@app.get("/api/tiers", response_model=list[TierSchema])
def list_tiers():
    """Subscription tiers with their product ceilings and features."""
    return [
        TierSchema(
            id=t.id,
            name=t.name,
            monthly_price=float(t.monthly_price),
            product_limit=t.product_limit,
            features=sorted(t.features),
            perks=list(t.perks),
        )
        for t in TIERS.values()
    ]


# --- Product Endpoints ---


@app.get("/api/products", response_model=list[ProductSchema])
def list_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    delivery: Optional[str] = None,
    sort: str = "featured",
    seller_id: Optional[str] = Query(default=None, alias="sellerId"),
):
    """List catalog products with optional search, filters and sorting."""
    store = get_catalog_store(get_settings())
    products = browse_products(
        store.list(seller_id=seller_id), query=q, category=category, delivery=delivery, sort=sort
    )
    return [product_to_schema(p) for p in products]


@app.get("/api/products/{product_id}", response_model=ProductSchema)
def get_product(product_id: str):
    store = get_catalog_store(get_settings())
    return product_to_schema(store.get(product_id))


@app.post("/api/products", response_model=ProductSchema, status_code=201)
def create_product(
    productData: str = Form(...),
    image: Optional[UploadFile] = File(None),
    x_seller_id: Optional[str] = Header(None),
    x_subscription_tier: Optional[str] = Header(None),
):
    """
    Create a product from a multipart form (productData JSON + optional image).

    The seller and tier come from the X-Seller-Id and X-Subscription-Tier
    headers; the login stub trusts them as sent.
    """
    settings = get_settings()
    data = _parse_product_data(productData)
    seller_id = x_seller_id or data.get("sellerId") or data.get("seller_id") or DEFAULT_SELLER_ID
    catalog = SellerCatalog(
        get_catalog_store(settings),
        seller_id=str(seller_id),
        tier=x_subscription_tier or DEFAULT_TIER,
        images=get_image_store(settings),
    )
    product = catalog.create_product(data, _read_upload(image, settings.max_image_bytes))
    return product_to_schema(product)


@app.put("/api/products/{product_id}", response_model=ProductSchema)
def update_product(
    product_id: str,
    productData: str = Form(...),
    image: Optional[UploadFile] = File(None),
    x_seller_id: Optional[str] = Header(None),
):
    """Replace a product's editable fields; keeps the old image unless a new one is sent."""
    settings = get_settings()
    store = get_catalog_store(settings)
    existing = store.get(product_id)
    data = _parse_product_data(productData)
    catalog = SellerCatalog(
        store,
        seller_id=x_seller_id or existing.seller_id,
        images=get_image_store(settings),
    )
    product = catalog.update_product(product_id, data, _read_upload(image, settings.max_image_bytes))
    return product_to_schema(product)


@app.delete("/api/products/{product_id}", status_code=204)
def delete_product(product_id: str, x_seller_id: Optional[str] = Header(None)):
    store = get_catalog_store(get_settings())
    existing = store.get(product_id)
    SellerCatalog(store, seller_id=x_seller_id or existing.seller_id).delete_product(product_id)
    return Response(status_code=204)


@app.get("/uploads/{filename}")
def serve_upload(filename: str):
    """Serve a stored product image."""
    path = get_image_store(get_settings()).resolve(filename)
    if path is None:
        return JSONResponse(status_code=404, content={"message": "File not found"})
    return FileResponse(path)


# --- Checkout & Order Endpoints ---


@app.post("/api/checkout", response_model=OrderSchema, status_code=201)
def checkout(request: CheckoutRequest):
    """
    Price the submitted cart, run the simulated payment and place the order.

    Cart lines are resolved against the current catalog, so prices and
    stock ceilings come from the store rather than the client.
    """
    settings = get_settings()
    store = get_catalog_store(settings)

    cart = Cart()
    for line in request.items:
        cart.add(store.get(line.product_id), line.quantity)

    service = Checkout(
        get_order_store(settings),
        payments=PaymentSimulator.from_settings(settings),
        policy=PricingPolicy.from_settings(settings),
    )
    order = service.place_order(
        cart,
        ShippingInfo(**request.shipping.model_dump()),
        _payment_from_request(request.payment),
    )
    return order_to_schema(order)


@app.get("/api/orders", response_model=OrderListResponse)
def list_orders(
    seller_id: Optional[str] = Query(default=None, alias="sellerId"),
    status: Optional[str] = None,
):
    """List orders newest first, optionally for one seller and/or status."""
    orders = get_order_store(get_settings()).list_orders(seller_id=seller_id, status=status)
    return OrderListResponse(orders=[order_to_schema(o) for o in orders], count=len(orders))


@app.get("/api/orders/stats", response_model=OrderStatsResponse)
def order_stats(
    seller_id: Optional[str] = Query(default=None, alias="sellerId"),
    limit: int = Query(default=5, ge=1, le=50),
):
    """Seller dashboard summary: per-status counts and the most recent orders."""
    store = get_order_store(get_settings())
    counts = store.status_counts(seller_id=seller_id)
    return OrderStatsResponse(
        counts=counts,
        total=sum(counts.values()),
        recent=[order_to_schema(o) for o in store.recent(limit=limit, seller_id=seller_id)],
    )


@app.get("/api/orders/{order_id}", response_model=OrderSchema)
def get_order(order_id: str):
    return order_to_schema(get_order_store(get_settings()).get(order_id))


@app.patch("/api/orders/{order_id}/status", response_model=OrderSchema)
def update_order_status(
    order_id: str,
    request: OrderStatusUpdateRequest,
    force: bool = Query(default=False),
):
    """
    Change an order's status.

    Only forward moves and cancellation are accepted; force=true lets a
    seller correct a mis-set status.
    """
    store = get_order_store(get_settings())
    order = store.update_status(order_id, request.status, force=force)
    return order_to_schema(order)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
