"""Builders for raw Digital Cookie rows and Smart Cookie records."""
from __future__ import annotations

from typing import Dict, Optional

from cookie_recon.cookies import COOKIE_INFO, CookieType

TROOP = "3990"


def build_dc_row(
    first: str = "Amy",
    last: str = "Lee",
    order_number: str = "1001",
    order_type: str = "In-Person Delivery",
    payment: str = "CAPTURED",
    varieties: Optional[Dict[str, int]] = None,
    donation: int = 0,
    refunded: int = 0,
    status: str = "Completed",
    date="2025-01-21",
    amount=None,
) -> Dict[str, object]:
    varieties = varieties or {}
    packages = sum(varieties.values()) + donation
    row: Dict[str, object] = {
        "Order Number": order_number,
        "Girl First Name": first,
        "Girl Last Name": last,
        "Order Date (Central Time)": date,
        "Order Type": order_type,
        "Total Packages (Includes Donate & Gift)": packages,
        "Refunded Packages": refunded,
        "Current Sale Amount": f"${packages * 6:,.2f}" if amount is None else amount,
        "Order Status": status,
        "Payment Status": payment,
        "Donation": donation,
    }
    row.update(varieties)
    return row


def build_sc_record(
    transfer_type: str,
    to: str = "",
    from_: str = "",
    cookies: Optional[Dict[CookieType, int]] = None,
    order_number: str = "",
    date: str = "2025-01-15",
    **extra,
) -> Dict[str, object]:
    record: Dict[str, object] = {
        "type": "TRANSFER",
        "transfer_type": transfer_type,
        "order_number": order_number,
        "to": to,
        "from": from_,
        "date": date,
        "cookies": [
            {"id": COOKIE_INFO[c].sc_api_id, "quantity": q} for c, q in (cookies or {}).items()
        ],
    }
    record.update(extra)
    return record
