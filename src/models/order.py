"""Order model type definitions for database operations."""

from typing import Literal, TypedDict


# Status enum values matching database enums
PaymentStatus = Literal["pending", "confirmed", "failed", "refunded"]
OrderStatus = Literal["confirmed", "processing", "shipped", "delivered"]


class OrderItem(TypedDict, total=False):
    """Structure for a single line item in an order.

    Stored as part of the order_items JSONB array. Keys keep the
    storefront's camelCase naming.
    """

    productId: int
    variantId: int
    title: str
    variant: str
    price: str
    quantity: int
    image: str
    sku: str


class ShippingAddress(TypedDict, total=False):
    """Shipping address inside the encrypted customer data blob."""

    name: str
    address1: str
    address2: str
    city: str
    state: str
    country: str
    zipCode: str
    phone: str


class CustomerData(TypedDict, total=False):
    """Decrypted customer contact and shipping data."""

    email: str
    shippingAddress: ShippingAddress
    billingAddress: ShippingAddress


class Order(TypedDict):
    """Order table row representation.

    Represents an order stored in the orders table.
    Maps directly to the database schema.
    """

    id: str
    order_reference: str
    customer_wallet: str
    farcaster_fid: str | None
    farcaster_username: str | None
    encrypted_customer_data: str
    order_items: list[OrderItem]
    total_amount: float
    currency: str
    payment_hash: str | None
    payment_status: PaymentStatus
    order_status: OrderStatus | None
    payment_completed_at: str | None
    created_at: str
    updated_at: str
    expires_at: str


class OrderPaymentUpdate(TypedDict):
    """Data written when a payment is confirmed."""

    payment_status: PaymentStatus
    order_status: OrderStatus
    payment_hash: str
    payment_completed_at: str
    updated_at: str
