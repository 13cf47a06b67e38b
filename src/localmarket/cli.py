"""Command-line interface for localmarket."""

import argparse
import json
import sys

from . import __version__
from .browse import SORT_OPTIONS, browse_products
from .catalog_store import JsonCatalogStore
from .checkout import Checkout, ShippingInfo
from .client_state import USER_TYPES, ClientStateStore
from .config import Settings, load_settings
from .errors import LocalmarketError
from .logs import configure_logging
from .models import CATEGORIES, ORDER_STATUSES, Order, Product
from .order_store import JsonOrderStore
from .payment import CardPayment, MobileMoneyPayment, PaymentSimulator
from .pricing import PricingPolicy, price_lines
from .tiers import TIERS


def _stores(settings: Settings) -> tuple[JsonCatalogStore, JsonOrderStore, ClientStateStore]:
    return (
        JsonCatalogStore(settings.catalog_path),
        JsonOrderStore(settings.orders_path),
        ClientStateStore(settings.client_state_path),
    )


def format_product(product: Product) -> str:
    return (
        f"{product.id[:8]}  {product.name}  KES {product.price:,}  "
        f"[{product.category}, {product.delivery_option}, stock {product.stock}]"
    )


def format_order(order: Order) -> str:
    return (
        f"{order.id}  {order.status:<10}  KES {order.total_amount:,}  "
        f"{order.customer.name} ({len(order.items)} item(s))"
    )


def _resolve_product(catalog: JsonCatalogStore, ref: str) -> Product:
    """Find a product by full ID or unique ID prefix."""
    matches = [p for p in catalog.list() if p.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    # Fall through to the store for the not-found error on full IDs
    return catalog.get(ref)


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Start the API server."""
    import uvicorn

    port = args.port or settings.port
    print("Starting localmarket API server...")
    print(f"Data directory: {settings.data_dir}")
    print(f"API docs: http://{args.host}:{port}/docs")
    print()

    # When reload is enabled, uvicorn requires the app as an import string
    app_target = "localmarket.api:app" if args.reload else None
    if app_target is None:
        from .api import app

        app_target = app

    uvicorn.run(app_target, host=args.host, port=port, reload=args.reload)
    return 0


def cmd_products_list(args: argparse.Namespace, settings: Settings) -> int:
    """List catalog products."""
    catalog, _, _ = _stores(settings)
    products = browse_products(
        catalog.list(seller_id=args.seller),
        query=args.query,
        category=args.category,
        delivery=args.delivery,
        sort=args.sort,
    )
    if args.json:
        print(json.dumps([p.to_dict() for p in products], indent=2))
        return 0
    if not products:
        print("No products found.")
        return 0
    for p in products:
        print(format_product(p))
    return 0


def cmd_cart(args: argparse.Namespace, settings: Settings) -> int:
    """Cart subcommands."""
    catalog, _, client = _stores(settings)
    cart = client.open_cart()

    if args.cart_command == "add":
        product = _resolve_product(catalog, args.product_id)
        line = cart.add(product, args.quantity)
        print(f"Added to cart: {args.quantity} x {product.name} (now {line.quantity})")
    elif args.cart_command == "remove":
        cart.remove(args.product_id)
        print(f"Removed {args.product_id} from cart")
    elif args.cart_command == "update":
        cart.update_quantity(args.product_id, args.quantity)
        print(f"Updated {args.product_id} to {max(args.quantity, 0)}")
    elif args.cart_command == "clear":
        cart.clear()
        print("Cart cleared")
    else:
        if args.json:
            data = {
                "items": [i.to_dict() for i in cart.items],
                "total": str(cart.total),
                "item_count": cart.item_count,
            }
            print(json.dumps(data, indent=2))
            return 0
        if cart.is_empty():
            print("Your cart is empty.")
            return 0
        for item in cart.items:
            print(
                f"{item.product.id}  {item.product.name}  {item.quantity} x "
                f"KES {item.product.price:,} = KES {item.subtotal:,}"
            )
        quote = price_lines(cart.items, PricingPolicy.from_settings(settings))
        print()
        print(f"Subtotal: KES {quote.subtotal:,}")
        print(f"Shipping: KES {quote.shipping:,}")
        print(f"Tax:      KES {quote.tax:,}")
        print(f"Total:    KES {quote.total:,}")
    return 0


def cmd_checkout(args: argparse.Namespace, settings: Settings) -> int:
    """Check out the saved cart."""
    _, orders, client = _stores(settings)
    cart = client.open_cart()

    if args.mobile_money:
        payment = MobileMoneyPayment(phone=args.mobile_money)
    else:
        payment = CardPayment(
            number=args.card or "",
            name=args.card_name or "",
            expiry=args.expiry or "",
            cvc=args.cvc or "",
        )

    shipping = ShippingInfo(
        name=args.name or "",
        email=args.email or "",
        phone=args.phone or "",
        street=args.street or "",
        city=args.city or "",
        region=args.region or "",
        postal_code=args.postal_code or "",
    )
    service = Checkout(
        orders,
        payments=PaymentSimulator.from_settings(
            settings, on_progress=None if args.json else print
        ),
        policy=PricingPolicy.from_settings(settings),
    )
    order = service.place_order(cart, shipping, payment)

    if args.json:
        print(json.dumps(order.to_dict(), indent=2))
    else:
        print(f"Order placed: {order.id}")
        print(f"Total: KES {order.total_amount:,}")
        print(f"Transaction: {order.payment.transaction_id}")
    return 0


def cmd_orders(args: argparse.Namespace, settings: Settings) -> int:
    """Orders subcommands."""
    _, orders, _ = _stores(settings)

    if args.orders_command == "status":
        order = orders.update_status(args.order_id, args.status, force=args.force)
        print(f"Order {order.id} marked as {order.status}")
        return 0

    found = orders.list_orders(seller_id=args.seller, status=args.status)
    if args.json:
        print(json.dumps([o.to_dict() for o in found], indent=2))
        return 0
    if not found:
        print("No orders found.")
        return 0
    print(f"Orders ({len(found)}):")
    for o in found:
        print(format_order(o))
    return 0


def cmd_role(args: argparse.Namespace, settings: Settings) -> int:
    _, _, client = _stores(settings)
    state = client.set_user_type(args.user_type)
    print(f"Logged in as: {state.user_type}")
    return 0


def cmd_tier(args: argparse.Namespace, settings: Settings) -> int:
    _, _, client = _stores(settings)
    state = client.set_subscription_tier(args.tier)
    tier = TIERS[state.subscription_tier]
    limit = "unlimited" if tier.unlimited else str(tier.product_limit)
    print(f"Subscription: {tier.name} ({limit} products)")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="localmarket",
        description="Local marketplace storefront: browse, cart, checkout and manage orders.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, help="Port to bind to (default: $PORT or 5000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # products
    products_parser = subparsers.add_parser("products", help="Browse the catalog")
    products_subparsers = products_parser.add_subparsers(dest="products_command")
    products_list_parser = products_subparsers.add_parser("list", help="List products")
    products_list_parser.add_argument("--query", "-q", help="Search name and description")
    products_list_parser.add_argument("--category", choices=CATEGORIES)
    products_list_parser.add_argument("--delivery", choices=["delivery", "pickup"])
    products_list_parser.add_argument("--sort", choices=SORT_OPTIONS, default="featured")
    products_list_parser.add_argument("--seller", help="Only this seller's products")
    products_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # cart
    cart_parser = subparsers.add_parser("cart", help="Manage the shopping cart")
    cart_subparsers = cart_parser.add_subparsers(dest="cart_command")
    cart_add_parser = cart_subparsers.add_parser("add", help="Add a product")
    cart_add_parser.add_argument("product_id", help="Product ID (or unique prefix)")
    cart_add_parser.add_argument("--quantity", "-n", type=int, default=1)
    cart_remove_parser = cart_subparsers.add_parser("remove", help="Remove a product")
    cart_remove_parser.add_argument("product_id")
    cart_update_parser = cart_subparsers.add_parser(
        "update", help="Set a line's quantity (0 removes it)"
    )
    cart_update_parser.add_argument("product_id")
    cart_update_parser.add_argument("quantity", type=int)
    cart_show_parser = cart_subparsers.add_parser("show", help="Show cart and totals")
    cart_show_parser.add_argument("--json", action="store_true", help="Output as JSON")
    cart_subparsers.add_parser("clear", help="Empty the cart")

    # checkout
    checkout_parser = subparsers.add_parser("checkout", help="Pay for the cart and place an order")
    checkout_parser.add_argument("--name")
    checkout_parser.add_argument("--email")
    checkout_parser.add_argument("--phone", help="Contact phone")
    checkout_parser.add_argument("--street")
    checkout_parser.add_argument("--city")
    checkout_parser.add_argument("--region", help="County")
    checkout_parser.add_argument("--postal-code")
    pay_group = checkout_parser.add_mutually_exclusive_group(required=True)
    pay_group.add_argument("--mobile-money", metavar="PHONE", help="Pay by M-Pesa from this number")
    pay_group.add_argument("--card", metavar="NUMBER", help="Pay by card")
    checkout_parser.add_argument("--card-name")
    checkout_parser.add_argument("--expiry", help="MM/YY")
    checkout_parser.add_argument("--cvc")
    checkout_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # orders
    orders_parser = subparsers.add_parser("orders", help="Seller order management")
    orders_subparsers = orders_parser.add_subparsers(dest="orders_command")
    orders_list_parser = orders_subparsers.add_parser("list", help="List orders")
    orders_list_parser.add_argument("--seller", help="Only this seller's orders")
    orders_list_parser.add_argument("--status", choices=ORDER_STATUSES)
    orders_list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    orders_status_parser = orders_subparsers.add_parser("status", help="Change an order's status")
    orders_status_parser.add_argument("order_id")
    orders_status_parser.add_argument("status", choices=ORDER_STATUSES)
    orders_status_parser.add_argument(
        "--force", action="store_true", help="Allow moves outside the normal lifecycle"
    )

    # role
    role_parser = subparsers.add_parser("role", help="Set who is logged in")
    role_parser.add_argument("user_type", choices=USER_TYPES)

    # tier
    tier_parser = subparsers.add_parser("tier", help="Select the seller subscription tier")
    tier_parser.add_argument("tier", choices=list(TIERS))

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    # Default subcommands for the groups
    if args.command == "products" and not args.products_command:
        args.products_command = "list"
        for name, default in (
            ("query", None), ("category", None), ("delivery", None),
            ("sort", "featured"), ("seller", None), ("json", False),
        ):
            setattr(args, name, default)
    if args.command == "cart" and not args.cart_command:
        args.cart_command = "show"
        args.json = False
    if args.command == "orders" and not args.orders_command:
        args.orders_command = "list"
        args.seller, args.status, args.json = None, None, False

    commands = {
        "serve": cmd_serve,
        "products": cmd_products_list,
        "cart": cmd_cart,
        "checkout": cmd_checkout,
        "orders": cmd_orders,
        "role": cmd_role,
        "tier": cmd_tier,
    }

    try:
        return commands[args.command](args, settings)
    except LocalmarketError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
