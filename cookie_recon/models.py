"""
Reconciliation Data Models

This module defines the typed entities produced at the import boundary and the
immutable aggregates produced by reconciliation:
- Orders come from Digital Cookie (DC) export rows
- Transfers come from Smart Cookie (SC) order/transfer records
- Allocations tie credited packages to one scout via a channel
- UnifiedDataset is the single read-only view every report renders from

Key concepts:
- Physical packages never include Cookie Share (donations are never held)
- Virtual booth transfers credit a scout without adding to the scout's inventory
- SITE orders are troop-level DC orders that must be allocated to scouts in SC
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .cookies import (
    CookieType, COOKIE_ORDER, physical_only, varieties_to_dict,
)


# =============================================================================
# Enums
# =============================================================================

class Owner(str, Enum):
    """Who an order belongs to"""
    GIRL = "girl"
    SITE = "site"     # Troop-level order waiting to be allocated


class OrderType(str, Enum):
    """How a DC order reaches the customer"""
    DELIVERY = "delivery"         # Delivered from the scout's own inventory
    IN_HAND = "in_hand"           # Sold from cookies the girl already had
    DIRECT_SHIP = "direct_ship"   # Shipped by the supplier, no inventory used
    DONATION = "donation"         # Cookie Share only
    BOOTH = "booth"               # Site "cookies in hand" sale at a booth


class OrderSource(str, Enum):
    """Upstream system an order was seen in"""
    DC = "DC"
    SC = "SC"             # Synced into SC as a D<order number> record


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    VENMO = "venmo"
    UNKNOWN = "unknown"


class OrderStatusClass(str, Enum):
    """Classified DC order status"""
    NEEDS_APPROVAL = "needs_approval"
    COMPLETED = "completed"
    PENDING = "pending"
    UNKNOWN = "unknown"


class TransferType(str, Enum):
    """Raw SC transfer type strings"""
    C2T = "C2T"                       # Council to troop
    C2T_P = "C2T(P)"                  # Council to troop, same handling as C2T
    T2T = "T2T"                       # Troop to troop
    T2G = "T2G"                       # Troop to girl
    G2T = "G2T"                       # Girl to troop (return)
    D = "D"                           # DC order synced into SC
    COOKIE_SHARE = "COOKIE_SHARE"
    COOKIE_SHARE_D = "COOKIE_SHARE_D"
    DIRECT_SHIP = "DIRECT_SHIP"
    PLANNED = "PLANNED"               # Future council order, never counted
    OTHER = "OTHER"                   # Unrecognized type string


class TransferCategory(str, Enum):
    """Derived grouping that drives every inventory and credit computation"""
    COUNCIL_TO_TROOP = "council_to_troop"
    TROOP_OUTGOING = "troop_outgoing"
    GIRL_PICKUP = "girl_pickup"
    GIRL_RETURN = "girl_return"
    VIRTUAL_BOOTH_ALLOCATION = "virtual_booth_allocation"
    BOOTH_SALES_ALLOCATION = "booth_sales_allocation"
    DIRECT_SHIP_ALLOCATION = "direct_ship_allocation"
    DC_ORDER_RECORD = "dc_order_record"
    COOKIE_SHARE_RECORD = "cookie_share_record"
    BOOTH_COOKIE_SHARE = "booth_cookie_share"
    DIRECT_SHIP = "direct_ship"
    PLANNED = "planned"
    OTHER = "other"


# Categories that represent packages sold to customers
SALE_CATEGORIES = frozenset({
    TransferCategory.GIRL_PICKUP,
    TransferCategory.VIRTUAL_BOOTH_ALLOCATION,
    TransferCategory.BOOTH_SALES_ALLOCATION,
    TransferCategory.DIRECT_SHIP_ALLOCATION,
    TransferCategory.DIRECT_SHIP,
    TransferCategory.COOKIE_SHARE_RECORD,
    TransferCategory.BOOTH_COOKIE_SHARE,
})

# Categories that never count toward any total
EXCLUDED_CATEGORIES = frozenset({
    TransferCategory.PLANNED,
    TransferCategory.OTHER,
})


class AllocationChannel(str, Enum):
    VIRTUAL_BOOTH = "virtual_booth"
    DIRECT_SHIP = "direct_ship"
    BOOTH_SALES = "booth_sales"


class AllocationSource(str, Enum):
    VIRTUAL_BOOTH_TRANSFER = "VirtualBoothTransfer"
    DIRECT_SHIP_DIVIDER = "DirectShipDivider"
    SMART_DIRECT_SHIP_DIVIDER = "SmartDirectShipDivider"
    SMART_BOOTH_DIVIDER = "SmartBoothDivider"


class BoothStatus(str, Enum):
    DISTRIBUTED = "distributed"               # Terminal
    UPCOMING = "upcoming"
    TODAY = "today"
    IN_PROGRESS = "in_progress"
    NEEDS_DISTRIBUTION = "needs_distribution"


class IdConfidence(str, Enum):
    HIGH = "high"     # From an SC girl id
    LOW = "low"       # Hashed display name


class WarningType(str, Enum):
    UNKNOWN_ORDER_TYPE = "UNKNOWN_ORDER_TYPE"
    UNKNOWN_PAYMENT_METHOD = "UNKNOWN_PAYMENT_METHOD"
    UNKNOWN_TRANSFER_TYPE = "UNKNOWN_TRANSFER_TYPE"
    UNKNOWN_COOKIE_ID = "UNKNOWN_COOKIE_ID"
    UNMATCHED_ALLOCATION = "UNMATCHED_ALLOCATION"
    SC_ONLY_ORDER = "SC_ONLY_ORDER"
    MALFORMED_ROW = "MALFORMED_ROW"


# =============================================================================
# Helpers
# =============================================================================

def freeze(mapping: Optional[Mapping]) -> Mapping:
    """Read-only copy of a mapping"""
    return MappingProxyType(dict(mapping or {}))


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _round(value: float) -> float:
    return round(float(value), 2)


# =============================================================================
# Imported Entities
# =============================================================================

@dataclass(frozen=True)
class ReconWarning:
    """Data-quality finding surfaced in the dataset instead of raised"""
    type: WarningType
    message: str
    order_number: str = ""
    scout: str = ""
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "order_number": self.order_number,
            "scout": self.scout,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class Order:
    """
    One Digital Cookie order row.

    packages = total - refunded; physical_packages = packages - donations.
    When donations > 0 they also appear in varieties as Cookie Share.
    sources gains SC when a matching D<order number> record exists in Smart Cookie.
    """
    order_number: str
    scout: str                       # "First Last"
    first_name: str
    last_name: str
    date: Optional[date]
    owner: Owner
    order_type: OrderType
    dc_order_type: str               # Raw "Order Type" text
    varieties: Mapping[CookieType, int]
    packages: int
    donations: int
    physical_packages: int
    amount: float
    payment_status: str
    payment_method: PaymentMethod
    status: str                      # Raw "Order Status" text
    status_class: OrderStatusClass
    sources: Tuple[OrderSource, ...] = (OrderSource.DC,)

    @property
    def needs_inventory(self) -> bool:
        """Girl orders filled from the girl's own picked-up inventory"""
        return self.owner == Owner.GIRL and self.order_type in (OrderType.DELIVERY, OrderType.IN_HAND)

    @property
    def is_site_order(self) -> bool:
        return self.owner == Owner.SITE

    @property
    def is_electronic(self) -> bool:
        return self.payment_method in (PaymentMethod.CREDIT_CARD, PaymentMethod.VENMO)

    @property
    def physical_varieties(self) -> Dict[CookieType, int]:
        return physical_only(self.varieties)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_number": self.order_number,
            "scout": self.scout,
            "date": _iso(self.date),
            "owner": self.owner.value,
            "order_type": self.order_type.value,
            "dc_order_type": self.dc_order_type,
            "varieties": varieties_to_dict(self.varieties),
            "packages": self.packages,
            "donations": self.donations,
            "physical_packages": self.physical_packages,
            "amount": _round(self.amount),
            "payment_status": self.payment_status,
            "payment_method": self.payment_method.value,
            "status": self.status,
            "status_class": self.status_class.value,
            "sources": [s.value for s in self.sources],
            "needs_inventory": self.needs_inventory,
        }


@dataclass(frozen=True)
class Transfer:
    """
    One Smart Cookie movement record.

    physical_packages = packages - Cookie Share, clamped at zero.
    """
    type: TransferType
    raw_type: str
    category: TransferCategory
    order_number: str
    sender: str                      # SC "from"
    recipient: str                   # SC "to"
    date: Optional[date]
    varieties: Mapping[CookieType, int]
    packages: int
    physical_packages: int
    amount: float = 0.0
    status: str = ""
    actions: Mapping[str, bool] = field(default_factory=lambda: freeze({}))
    virtual_booth: bool = False
    booth_divider: bool = False
    direct_ship_divider: bool = False

    @property
    def physical_varieties(self) -> Dict[CookieType, int]:
        return physical_only(self.varieties)

    @property
    def cookie_share(self) -> int:
        return self.varieties.get(CookieType.COOKIE_SHARE, 0)

    @property
    def is_pending(self) -> bool:
        """Saved but not yet submitted/approved in SC"""
        return (
            self.status.upper() == "SAVED"
            or bool(self.actions.get("submittable"))
            or bool(self.actions.get("approvable"))
        )

    @property
    def counts_toward_totals(self) -> bool:
        return self.category not in EXCLUDED_CATEGORIES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "raw_type": self.raw_type,
            "category": self.category.value,
            "order_number": self.order_number,
            "from": self.sender,
            "to": self.recipient,
            "date": _iso(self.date),
            "varieties": varieties_to_dict(self.varieties),
            "packages": self.packages,
            "physical_packages": self.physical_packages,
            "amount": _round(self.amount),
            "status": self.status,
            "actions": dict(self.actions),
            "virtual_booth": self.virtual_booth,
            "is_pending": self.is_pending,
        }


@dataclass(frozen=True)
class Allocation:
    """Packages and donations credited to one scout through one channel"""
    channel: AllocationChannel
    source: AllocationSource
    packages: int                    # Physical only
    donations: int                   # Cookie Share
    varieties: Mapping[CookieType, int]
    girl_id: Optional[int] = None
    scout: str = ""                  # Display name when known
    order_number: str = ""           # Direct ship order / transfer order number
    reservation_id: str = ""
    store_name: str = ""
    date: Optional[date] = None
    start_time: str = ""
    end_time: str = ""
    note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel": self.channel.value,
            "source": self.source.value,
            "packages": self.packages,
            "donations": self.donations,
            "varieties": varieties_to_dict(self.varieties),
            "girl_id": self.girl_id,
            "scout": self.scout,
            "order_number": self.order_number,
            "reservation_id": self.reservation_id,
            "store_name": self.store_name,
            "date": _iso(self.date),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "note": self.note,
        }


@dataclass(frozen=True)
class BoothReservation:
    id: str
    store_name: str = ""
    address: str = ""
    reservation_type: str = ""
    date: str = ""                   # YYYY-MM-DD, local calendar date
    start_time: str = ""
    end_time: str = ""
    is_distributed: bool = False
    is_virtually_distributed: bool = False
    varieties: Mapping[CookieType, int] = field(default_factory=lambda: freeze({}))
    total_packages: int = 0
    physical_packages: int = 0
    tracked_cookie_share: int = 0

    @property
    def is_virtual(self) -> bool:
        return "virtual" in self.reservation_type.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "store_name": self.store_name,
            "address": self.address,
            "reservation_type": self.reservation_type,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_distributed": self.is_distributed,
            "is_virtually_distributed": self.is_virtually_distributed,
            "varieties": varieties_to_dict(self.varieties),
            "total_packages": self.total_packages,
            "physical_packages": self.physical_packages,
            "tracked_cookie_share": self.tracked_cookie_share,
        }


@dataclass(frozen=True)
class AllocationImport:
    """Result of importing divider and reservation blobs"""
    allocations: Tuple[Allocation, ...] = ()
    reservations: Tuple[BoothReservation, ...] = ()
    # SC girl id → manually entered virtual Cookie Share packages
    virtual_cookie_shares: Mapping[int, int] = field(default_factory=lambda: freeze({}))
    # SC girl id → "First Last" seen in divider payloads
    girl_names: Mapping[int, str] = field(default_factory=lambda: freeze({}))
    warnings: Tuple[ReconWarning, ...] = ()


# =============================================================================
# Scout Aggregate
# =============================================================================

@dataclass(frozen=True)
class CreditedChannel:
    packages: int = 0
    donations: int = 0
    varieties: Mapping[CookieType, int] = field(default_factory=lambda: freeze({}))
    allocations: Tuple[Allocation, ...] = ()

    @property
    def total(self) -> int:
        return self.packages + self.donations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packages": self.packages,
            "donations": self.donations,
            "varieties": varieties_to_dict(self.varieties),
            "allocations": [a.to_dict() for a in self.allocations],
        }


@dataclass(frozen=True)
class ScoutCredited:
    virtual_booth: CreditedChannel = field(default_factory=CreditedChannel)
    direct_ship: CreditedChannel = field(default_factory=CreditedChannel)
    booth_sales: CreditedChannel = field(default_factory=CreditedChannel)

    def channels(self) -> Tuple[Tuple[AllocationChannel, CreditedChannel], ...]:
        return (
            (AllocationChannel.VIRTUAL_BOOTH, self.virtual_booth),
            (AllocationChannel.DIRECT_SHIP, self.direct_ship),
            (AllocationChannel.BOOTH_SALES, self.booth_sales),
        )

    @property
    def total(self) -> int:
        return sum(c.total for _, c in self.channels())

    def to_dict(self) -> Dict[str, Any]:
        return {ch.value: c.to_dict() for ch, c in self.channels()}


@dataclass(frozen=True)
class ScoutInventory:
    """Physical packages picked up (T2G) minus returned (G2T)"""
    total: int = 0
    varieties: Mapping[CookieType, int] = field(default_factory=lambda: freeze({}))

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "varieties": varieties_to_dict(self.varieties)}


@dataclass(frozen=True)
class Financials:
    cash_collected: float = 0.0      # All cash on girl orders
    electronic_payments: float = 0.0  # Physical value paid electronically
    inventory_value: float = 0.0     # Retail value of picked-up inventory
    unsold_value: float = 0.0
    cash_owed: float = 0.0           # cash_collected + unsold_value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cash_collected": _round(self.cash_collected),
            "electronic_payments": _round(self.electronic_payments),
            "inventory_value": _round(self.inventory_value),
            "unsold_value": _round(self.unsold_value),
            "cash_owed": _round(self.cash_owed),
        }


@dataclass(frozen=True)
class NegativeInventoryIssue:
    variety: CookieType
    inventory: int
    sales: int
    shortfall: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variety": self.variety.value,
            "inventory": self.inventory,
            "sales": self.sales,
            "shortfall": self.shortfall,
        }


@dataclass(frozen=True)
class ScoutCookieShare:
    """Per-scout Cookie Share entry check (DC manual donations vs SC virtual entries)"""
    dc_total: int = 0
    dc_manual_entry: int = 0
    sc_entered: int = 0

    @property
    def adjustment_needed(self) -> int:
        return self.dc_manual_entry - self.sc_entered

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dc_total": self.dc_total,
            "dc_manual_entry": self.dc_manual_entry,
            "sc_entered": self.sc_entered,
            "adjustment_needed": self.adjustment_needed,
        }


@dataclass(frozen=True)
class ScoutTotals:
    orders: int = 0
    delivered: int = 0               # Physical packages on inventory orders
    shipped: int = 0                 # Physical packages on direct ship orders
    donations: int = 0
    credited: int = 0                # All channels, packages + donations
    total_sold: int = 0              # delivered + shipped + donations + credited
    inventory: int = 0               # Net on hand, each variety clamped at zero
    inventory_display: Mapping[CookieType, int] = field(default_factory=lambda: freeze({}))
    order_status_counts: Mapping[OrderStatusClass, int] = field(default_factory=lambda: freeze({}))
    financials: Financials = field(default_factory=Financials)
    allocation_summary: Mapping[AllocationChannel, Mapping[str, int]] = field(default_factory=lambda: freeze({}))
    troop_proceeds: float = 0.0
    proceeds_deduction: float = 0.0
    credited_revenue: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orders": self.orders,
            "delivered": self.delivered,
            "shipped": self.shipped,
            "donations": self.donations,
            "credited": self.credited,
            "total_sold": self.total_sold,
            "inventory": self.inventory,
            "inventory_display": {c.value: n for c, n in self.inventory_display.items()},
            "order_status_counts": {s.value: n for s, n in self.order_status_counts.items()},
            "financials": self.financials.to_dict(),
            "allocation_summary": {ch.value: dict(v) for ch, v in self.allocation_summary.items()},
            "troop_proceeds": _round(self.troop_proceeds),
            "proceeds_deduction": _round(self.proceeds_deduction),
            "credited_revenue": _round(self.credited_revenue),
        }


@dataclass(frozen=True)
class Scout:
    """
    Per-scout aggregate.

    Keyed in the dataset by display name; scout_id is the stable key
    ("girl-<id>" from SC, else a hash of the normalized name).
    """
    name: str
    first_name: str
    last_name: str
    scout_id: str
    id_confidence: IdConfidence
    girl_id: Optional[int] = None
    is_site_order: bool = False
    orders: Tuple[Order, ...] = ()
    inventory: ScoutInventory = field(default_factory=ScoutInventory)
    credited: ScoutCredited = field(default_factory=ScoutCredited)
    totals: ScoutTotals = field(default_factory=ScoutTotals)
    negative_inventory: Tuple[NegativeInventoryIssue, ...] = ()
    cookie_share: ScoutCookieShare = field(default_factory=ScoutCookieShare)

    @property
    def has_negative_inventory(self) -> bool:
        return bool(self.negative_inventory)

    @property
    def is_active(self) -> bool:
        return self.totals.total_sold > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "scout_id": self.scout_id,
            "id_confidence": self.id_confidence.value,
            "girl_id": self.girl_id,
            "is_site_order": self.is_site_order,
            "orders": [o.to_dict() for o in self.orders],
            "inventory": self.inventory.to_dict(),
            "credited": self.credited.to_dict(),
            "totals": self.totals.to_dict(),
            "issues": {"negative_inventory": [i.to_dict() for i in self.negative_inventory]},
            "cookie_share": self.cookie_share.to_dict(),
        }


# =============================================================================
# Troop-Level Aggregates
# =============================================================================

@dataclass(frozen=True)
class ScoutCounts:
    total: int = 0
    active: int = 0
    inactive: int = 0
    with_negative_inventory: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "active": self.active,
            "inactive": self.inactive,
            "with_negative_inventory": self.with_negative_inventory,
        }


@dataclass(frozen=True)
class TroopTotals:
    orders: int = 0                  # DC orders imported
    ordered: int = 0                 # C2T + incoming T2T physical
    girl_pickup: int = 0             # Physical T2G
    virtual_booth_t2g: int = 0
    booth_divider_t2g: int = 0
    direct_ship_divider_t2g: int = 0
    troop_outgoing: int = 0          # T2T sent to other troops
    g2t: int = 0
    girl_delivery: int = 0           # Delivered by girls from their inventory
    girl_inventory: int = 0          # Sum of girls' net on hand
    direct_ship: int = 0
    donations: int = 0
    booth_sales_packages: int = 0
    booth_sales_donations: int = 0
    packages_credited: int = 0
    inventory: int = 0               # Troop net on hand
    sold: int = 0
    revenue: float = 0.0
    gross_proceeds: float = 0.0
    troop_proceeds: float = 0.0
    proceeds_deduction: float = 0.0
    proceeds_exempt_packages: int = 0
    proceeds_rate: float = 0.0
    pending_pickup: int = 0          # Sum of negative-inventory shortfalls
    scouts: ScoutCounts = field(default_factory=ScoutCounts)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if isinstance(value, ScoutCounts):
                out[name] = value.to_dict()
            elif isinstance(value, float):
                out[name] = round(value, 4) if name == "proceeds_rate" else _round(value)
            else:
                out[name] = value
        return out


@dataclass(frozen=True)
class SiteOrderEntry:
    order_number: str
    order_type: OrderType
    date: Optional[date]
    packages: int
    allocated: int = 0

    @property
    def unallocated(self) -> int:
        return max(0, self.packages - self.allocated)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_number": self.order_number,
            "order_type": self.order_type.value,
            "date": _iso(self.date),
            "packages": self.packages,
            "allocated": self.allocated,
            "unallocated": self.unallocated,
        }


@dataclass(frozen=True)
class SiteOrderCategory:
    total: int = 0
    allocated: int = 0
    unallocated: int = 0
    has_warning: bool = False
    orders: Tuple[SiteOrderEntry, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "allocated": self.allocated,
            "unallocated": self.unallocated,
            "has_warning": self.has_warning,
            "orders": [o.to_dict() for o in self.orders],
        }


@dataclass(frozen=True)
class SiteOrders:
    girl_delivery: SiteOrderCategory = field(default_factory=SiteOrderCategory)
    direct_ship: SiteOrderCategory = field(default_factory=SiteOrderCategory)
    booth_sale: SiteOrderCategory = field(default_factory=SiteOrderCategory)

    @property
    def has_warning(self) -> bool:
        return self.girl_delivery.has_warning or self.direct_ship.has_warning or self.booth_sale.has_warning

    def to_dict(self) -> Dict[str, Any]:
        return {
            "girl_delivery": self.girl_delivery.to_dict(),
            "direct_ship": self.direct_ship.to_dict(),
            "booth_sale": self.booth_sale.to_dict(),
        }


@dataclass(frozen=True)
class CookieShareTracking:
    dc_total: int = 0
    dc_manual_entry: int = 0         # Donations that will not auto-sync into SC
    sc_manual_entries: int = 0

    @property
    def adjustment_needed(self) -> int:
        return self.dc_manual_entry - self.sc_manual_entries

    @property
    def reconciled(self) -> bool:
        return self.adjustment_needed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "digital_cookie": {"total": self.dc_total, "manual_entry": self.dc_manual_entry},
            "smart_cookie": {"manual_entries": self.sc_manual_entries},
            "adjustment_needed": self.adjustment_needed,
            "reconciled": self.reconciled,
        }


@dataclass(frozen=True)
class VarietiesSummary:
    by_cookie: Mapping[CookieType, int] = field(default_factory=lambda: freeze({}))
    inventory: Mapping[CookieType, int] = field(default_factory=lambda: freeze({}))
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "by_cookie": varieties_to_dict(self.by_cookie),
            "inventory": {c.value: self.inventory[c] for c in COOKIE_ORDER if c in self.inventory},
            "total": self.total,
        }


@dataclass(frozen=True)
class TransferBreakdowns:
    c2t: Tuple[Transfer, ...] = ()
    t2t_out: Tuple[Transfer, ...] = ()
    t2g: Tuple[Transfer, ...] = ()
    g2t: Tuple[Transfer, ...] = ()
    sold: Tuple[Transfer, ...] = ()
    totals: Mapping[str, int] = field(default_factory=lambda: freeze({}))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "c2t": [t.to_dict() for t in self.c2t],
            "t2t_out": [t.to_dict() for t in self.t2t_out],
            "t2g": [t.to_dict() for t in self.t2g],
            "g2t": [t.to_dict() for t in self.g2t],
            "sold": [t.to_dict() for t in self.sold],
            "totals": dict(self.totals),
        }


@dataclass(frozen=True)
class DatasetMetadata:
    troop_number: str = ""
    last_import_dc: Optional[datetime] = None
    last_import_sc: Optional[datetime] = None
    scout_count: int = 0
    order_count: int = 0
    transfer_count: int = 0
    health_checks: Mapping[str, int] = field(default_factory=lambda: freeze({}))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "troop_number": self.troop_number,
            "last_import_dc": self.last_import_dc.isoformat() if self.last_import_dc else None,
            "last_import_sc": self.last_import_sc.isoformat() if self.last_import_sc else None,
            "scout_count": self.scout_count,
            "order_count": self.order_count,
            "transfer_count": self.transfer_count,
            "health_checks": dict(self.health_checks),
        }


@dataclass(frozen=True)
class UnifiedDataset:
    """Root output of reconciliation. Rebuilt from scratch on every import."""
    scouts: Mapping[str, Scout]
    troop_totals: TroopTotals
    varieties: VarietiesSummary
    transfer_breakdowns: TransferBreakdowns
    site_orders: SiteOrders
    cookie_share: CookieShareTracking
    metadata: DatasetMetadata
    has_transfer_data: bool = False
    booth_reservations: Tuple[BoothReservation, ...] = ()
    transfers: Tuple[Transfer, ...] = ()     # Everything imported, PLANNED included
    sc_only_orders: Tuple[Transfer, ...] = ()  # D records with no DC order
    warnings: Tuple[ReconWarning, ...] = ()

    def scout_by_id(self, scout_id: str) -> Optional[Scout]:
        for scout in self.scouts.values():
            if scout.scout_id == scout_id:
                return scout
        return None

    def girl_scouts(self) -> List[Scout]:
        """Real scouts, site scout excluded, in name order"""
        return [s for s in self.scouts.values() if not s.is_site_order]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scouts": {name: s.to_dict() for name, s in self.scouts.items()},
            "troop_totals": self.troop_totals.to_dict(),
            "varieties": self.varieties.to_dict(),
            "transfer_breakdowns": self.transfer_breakdowns.to_dict(),
            "site_orders": self.site_orders.to_dict(),
            "booth_reservations": [b.to_dict() for b in self.booth_reservations],
            "cookie_share": self.cookie_share.to_dict(),
            "metadata": self.metadata.to_dict(),
            "has_transfer_data": self.has_transfer_data,
            "sc_only_orders": [t.to_dict() for t in self.sc_only_orders],
            "warnings": [w.to_dict() for w in self.warnings],
        }
