"""
Module 'payments' (feature-first): point d'entrée public.
Réunit validation du checkout, metadata Stripe, line items, client Stripe et services.
"""

from .metadata import (
    ItemList,
    LegacySingleItem,
    encode_metadata,
    decode_items,
    decode_shipping_address,
    extract_completion,
)
from .pricing import to_unit_amount, build_line_items
from .stripe_client import require_stripe, create_session, verify_event, parse_event
from .schemas import CheckoutRequest
from .service import parse_checkout_request, start_checkout, handle_event

__all__ = [
    # metadata
    "ItemList",
    "LegacySingleItem",
    "encode_metadata",
    "decode_items",
    "decode_shipping_address",
    "extract_completion",
    # pricing
    "to_unit_amount",
    "build_line_items",
    # stripe
    "require_stripe",
    "create_session",
    "verify_event",
    "parse_event",
    # services
    "CheckoutRequest",
    "parse_checkout_request",
    "start_checkout",
    "handle_event",
]
