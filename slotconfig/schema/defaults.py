"""Built-in default layouts for every editable page type.

A default configuration is used whenever a page has no draft yet, and as
the fallback when a persisted configuration cannot be decoded.  Each page
is a list of sections (major slots); each section lists its child slots
with their default grid span and starter content.

Slot id convention:
    <section>.<element>        — child slot, e.g. "header.title"
    <section>.custom_<n>       — user-added slot (see processor.editing)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from .models import (
    ConfigurationMetadata,
    SlotConfiguration,
    SlotDefinition,
    SlotSpan,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Child:
    name: str
    col: int = 12
    row: int = 1
    content: str = ""
    class_name: str = ""
    parent_class_name: str = ""


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
_CART = {
    "flashMessage": [
        _Child("content", content='<div class="bg-yellow-50 border-l-4 border-yellow-400 p-4">'
                                  "Item removed from your cart.</div>"),
        _Child("message"),
    ],
    "header": [
        _Child("title", content="My Cart", class_name="text-3xl font-bold text-gray-900"),
    ],
    "emptyCart": [
        _Child("icon", col=2),
        _Child("title", col=10, content="Your cart is empty",
               class_name="text-xl font-semibold"),
        _Child("text", content="Looks like you haven't added anything to your cart yet.",
               class_name="text-gray-600"),
        _Child("button", content="Continue Shopping", class_name="bg-blue-600 text-white",
               parent_class_name="text-center"),
    ],
    "cartItem": [
        _Child("productImage", col=2, row=2),
        _Child("productTitle", col=6, content="{{product.name}}"),
        _Child("quantityControl", col=2),
        _Child("productPrice", col=2, content="{{item.price}}", class_name="font-semibold"),
        _Child("removeButton", content="Remove", class_name="text-red-600"),
    ],
    "coupon": [
        _Child("title", content="Apply Coupon", class_name="text-lg font-semibold"),
        _Child("input", col=8),
        _Child("button", col=4, content="Apply"),
        _Child("message"),
        _Child("appliedCoupon"),
    ],
    "orderSummary": [
        _Child("title", content="Order Summary", class_name="text-lg font-semibold"),
        _Child("subtotal", content="Subtotal"),
        _Child("discount", content="Discount"),
        _Child("shipping", content="Shipping"),
        _Child("tax", content="Tax"),
        _Child("total", content="Total", class_name="text-lg font-semibold"),
        _Child("checkoutButton", content="Proceed to Checkout",
               class_name="bg-blue-600 text-white", parent_class_name="text-center"),
    ],
    "recommendations": [
        _Child("title", content="You might also like", class_name="text-xl font-bold"),
        _Child("products", row=3),
    ],
    "empty": [
        _Child("content", row=2, content="This is an empty slot. Click to edit and add your "
                                         "custom content.",
               class_name="empty-slot-content", parent_class_name="empty-slot-wrapper"),
    ],
}

# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------
_HEADER = {
    "topBar": [
        _Child("announcement", content="Free shipping on orders over $50",
               class_name="text-sm", parent_class_name="text-center"),
    ],
    "mainRow": [
        _Child("logo", col=3, content="{{store.name}}", class_name="text-2xl font-bold"),
        _Child("search", col=6),
        _Child("actions", col=3, parent_class_name="text-right"),
    ],
    "navigation": [
        _Child("categories"),
    ],
}

# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------
_CATEGORY = {
    "header": [
        _Child("title", content="{{category.name}}", class_name="text-3xl font-bold"),
        _Child("description", content="{{category.description}}", class_name="text-gray-600"),
    ],
    "breadcrumbs": [
        _Child("trail", content="Home > {{category.name}}", class_name="text-sm"),
    ],
    "filters": [
        _Child("layeredNavigation", row=4),
    ],
    "sorting": [
        _Child("productCount", col=6, content="{{products.count}} products"),
        _Child("sortSelector", col=6, parent_class_name="text-right"),
    ],
    "products": [
        _Child("grid", row=4),
    ],
    "pagination": [
        _Child("controls", parent_class_name="text-center"),
    ],
}

# ---------------------------------------------------------------------------
# Product
# ---------------------------------------------------------------------------
_PRODUCT = {
    "breadcrumbs": [
        _Child("trail", content="Home > {{category.name}} > {{product.name}}", class_name="text-sm"),
    ],
    "gallery": [
        _Child("mainImage", col=12, row=4),
        _Child("thumbnails", col=12),
    ],
    "info": [
        _Child("title", content="{{product.name}}", class_name="text-3xl font-bold"),
        _Child("price", col=6, content="{{product.price}}", class_name="text-2xl"),
        _Child("stockStatus", col=6, parent_class_name="text-right"),
        _Child("addToCart", content="Add to Cart", class_name="bg-blue-600 text-white"),
    ],
    "tabs": [
        _Child("description", row=2, content="{{product.description}}"),
    ],
    "related": [
        _Child("title", content="Related Products", class_name="text-xl font-bold"),
        _Child("products", row=3),
    ],
    "reviews": [
        _Child("summary", col=4),
        _Child("list", col=8, row=3),
    ],
}

_GENERIC = {
    "main": [_Child("content", row=2)],
}

PAGE_LAYOUTS = {
    "cart": _CART,
    "header": _HEADER,
    "category": _CATEGORY,
    "product": _PRODUCT,
}

PAGE_TYPES = tuple(PAGE_LAYOUTS)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _build(layout: dict[str, list[_Child]], page_name: str) -> SlotConfiguration:
    stamp = _now()
    config = SlotConfiguration(
        metadata=ConfigurationMetadata(created=stamp, last_modified=stamp, page_name=page_name),
    )
    for major_id, children in layout.items():
        config.major_slots.append(major_id)
        order: list[str] = []
        spans: dict[str, SlotSpan] = {}
        for child in children:
            slot_id = f"{major_id}.{child.name}"
            order.append(slot_id)
            spans[slot_id] = SlotSpan(col=child.col, row=child.row)
            config.slots[slot_id] = SlotDefinition(
                content=child.content,
                class_name=child.class_name,
                parent_class_name=child.parent_class_name,
                metadata={"lastModified": stamp},
            )
        config.micro_slot_orders[major_id] = order
        config.micro_slot_spans[major_id] = spans
    return config


def build_default_configuration(page_type: str) -> SlotConfiguration:
    """Return a fresh built-in configuration for *page_type*.

    Unknown page types get a single-section generic layout so an editing
    session can always start.
    """
    layout = PAGE_LAYOUTS.get(page_type)
    if layout is None:
        logger.warning(f"No built-in layout for page type {page_type!r}; using generic layout")
        layout = _GENERIC
    return _build(layout, page_name=f"{page_type[:1].upper()}{page_type[1:]} Layout")
