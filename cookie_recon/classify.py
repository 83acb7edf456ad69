"""
Classification rules for DC and SC free-text fields.

Every rule is an explicit table or ordered substring check so an unknown string
is detectable (callers record a warning) rather than silently guessed.
"""
from __future__ import annotations

import re
from typing import Dict, Optional

from .models import OrderStatusClass, OrderType, PaymentMethod, TransferCategory, TransferType


# =============================================================================
# DC order status
# =============================================================================

# (class, substrings) in precedence order
ORDER_STATUS_RULES = (
    (OrderStatusClass.NEEDS_APPROVAL, ("Needs Approval",)),
    (OrderStatusClass.COMPLETED, ("Status Delivered", "Completed", "Delivered", "Shipped")),
    (OrderStatusClass.PENDING, ("Pending", "Approved for Delivery")),
)


def classify_order_status(status: Optional[str]) -> OrderStatusClass:
    """Map DC "Order Status" text onto NEEDS_APPROVAL / COMPLETED / PENDING / UNKNOWN"""
    text = (status or "").strip()
    if not text:
        return OrderStatusClass.UNKNOWN
    for status_class, needles in ORDER_STATUS_RULES:
        if any(n in text for n in needles):
            return status_class
    return OrderStatusClass.UNKNOWN


# =============================================================================
# DC order type + payment method
# =============================================================================

DC_DONATION = "Donation"
DC_DELIVERY_MARKERS = ("in-person delivery", "in person delivery", "pick up")


def classify_order_type(dc_order_type: Optional[str], is_site_order: bool = False) -> Optional[OrderType]:
    """
    Classify DC "Order Type" text. Returns None when no rule matches;
    the importer falls back to DELIVERY and records a warning.
    """
    raw = (dc_order_type or "").strip()
    lc = raw.lower()
    if "shipped" in lc:
        return OrderType.DIRECT_SHIP
    if raw == DC_DONATION:
        return OrderType.DONATION
    if "cookies in hand" in lc:
        return OrderType.BOOTH if is_site_order else OrderType.IN_HAND
    if any(m in lc for m in DC_DELIVERY_MARKERS):
        return OrderType.DELIVERY
    return None


def classify_payment_method(payment_status: Optional[str]) -> Optional[PaymentMethod]:
    """None for statuses we cannot map; never assume a card payment"""
    ps = (payment_status or "").strip().upper()
    if ps == "CASH":
        return PaymentMethod.CASH
    if "VENMO" in ps:
        return PaymentMethod.VENMO
    if ps in ("CAPTURED", "AUTHORIZED"):
        return PaymentMethod.CREDIT_CARD
    return None


def is_dc_auto_sync(dc_order_type: Optional[str], payment_status: Optional[str]) -> bool:
    """Shipped and donation-only card orders sync into SC without manual entry"""
    order_type = dc_order_type or ""
    return ("Shipped" in order_type or order_type == DC_DONATION) and (payment_status or "") == "CAPTURED"


# =============================================================================
# SC transfer type → category
# =============================================================================

_TRANSFER_TYPES: Dict[str, TransferType] = {t.value: t for t in TransferType if t != TransferType.OTHER}

# Types whose category needs no flags
_SIMPLE_CATEGORIES: Dict[TransferType, TransferCategory] = {
    TransferType.C2T: TransferCategory.COUNCIL_TO_TROOP,
    TransferType.C2T_P: TransferCategory.COUNCIL_TO_TROOP,
    TransferType.G2T: TransferCategory.GIRL_RETURN,
    TransferType.D: TransferCategory.DC_ORDER_RECORD,
    TransferType.DIRECT_SHIP: TransferCategory.DIRECT_SHIP,
    TransferType.PLANNED: TransferCategory.PLANNED,
    TransferType.OTHER: TransferCategory.OTHER,
}


def is_c2t(raw_type: Optional[str]) -> bool:
    return bool(raw_type) and str(raw_type).startswith("C2T")


def parse_transfer_type(raw_type: Optional[str]) -> TransferType:
    """Exact lookup first; unlisted "C2T..." variants count as plain C2T"""
    raw = (raw_type or "").strip()
    if raw in _TRANSFER_TYPES:
        return _TRANSFER_TYPES[raw]
    if is_c2t(raw):
        return TransferType.C2T
    return TransferType.OTHER


def matches_troop(value: Optional[str], troop_number: Optional[str]) -> bool:
    """Troop labels like "3990", "Troop 3990" or "T3990" all match troop 3990"""
    if not value or not troop_number:
        return False
    if str(value).strip() == str(troop_number).strip():
        return True
    m = re.search(r"\d+", str(value))
    return bool(m) and m.group(0) == str(troop_number).strip()


def classify_transfer_category(
    transfer_type: TransferType,
    sender: str = "",
    troop_number: str = "",
    virtual_booth: bool = False,
    booth_divider: bool = False,
    direct_ship_divider: bool = False,
) -> TransferCategory:
    if transfer_type in _SIMPLE_CATEGORIES:
        return _SIMPLE_CATEGORIES[transfer_type]

    if transfer_type == TransferType.T2T:
        if matches_troop(sender, troop_number):
            return TransferCategory.TROOP_OUTGOING
        return TransferCategory.COUNCIL_TO_TROOP

    if transfer_type == TransferType.T2G:
        if virtual_booth:
            return TransferCategory.VIRTUAL_BOOTH_ALLOCATION
        if booth_divider:
            return TransferCategory.BOOTH_SALES_ALLOCATION
        if direct_ship_divider:
            return TransferCategory.DIRECT_SHIP_ALLOCATION
        return TransferCategory.GIRL_PICKUP

    if transfer_type in (TransferType.COOKIE_SHARE, TransferType.COOKIE_SHARE_D):
        return TransferCategory.BOOTH_COOKIE_SHARE if booth_divider else TransferCategory.COOKIE_SHARE_RECORD

    return TransferCategory.OTHER
