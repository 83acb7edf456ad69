"""
Reconciliation Engine

reconcile() is a pure fold from typed orders, transfers and allocations to one
immutable UnifiedDataset. Inputs are put into a canonical order first so the
result never depends on the order rows arrived in.

Pipeline:
1. Resolve scout identities (SC girl id first, normalized name otherwise)
2. Per scout: orders, picked-up inventory, credited allocations, totals
3. Troop rollups: totals, varieties, transfer breakdowns
4. Discrepancies: negative inventory, unallocated site orders, Cookie Share
"""
from __future__ import annotations

import hashlib
import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .adapters import allocations_from_transfers, import_allocations, import_orders, import_transfers
from .classify import is_dc_auto_sync
from .cookies import (
    CookieType, PHYSICAL_COOKIE_TYPES, add_varieties, calculate_revenue,
    ordered_varieties, physical_only, proceeds_rate_for_pga,
)
from .models import (
    SALE_CATEGORIES, Allocation, AllocationChannel, BoothReservation,
    CookieShareTracking, CreditedChannel, DatasetMetadata, Financials,
    IdConfidence, NegativeInventoryIssue, Order, OrderSource, OrderStatusClass, OrderType,
    Owner, ReconWarning, Scout, ScoutCookieShare, ScoutCounts, ScoutCredited,
    ScoutInventory, ScoutTotals, SiteOrderCategory, SiteOrderEntry, SiteOrders,
    Transfer, TransferBreakdowns, TransferCategory, TroopTotals, UnifiedDataset,
    VarietiesSummary, WarningType, freeze,
)
from .settings import DEFAULT_SETTINGS, ReconSettings

logger = logging.getLogger(__name__)

# Troop stock moves: sign per category
TROOP_STOCK_SIGN: Dict[TransferCategory, int] = {
    TransferCategory.COUNCIL_TO_TROOP: 1,
    TransferCategory.GIRL_RETURN: 1,
    TransferCategory.GIRL_PICKUP: -1,
    TransferCategory.VIRTUAL_BOOTH_ALLOCATION: -1,
    TransferCategory.BOOTH_SALES_ALLOCATION: -1,
    TransferCategory.TROOP_OUTGOING: -1,
}


# -----------------------------
# Helpers: identity
# -----------------------------
def normalize_name(name: str) -> str:
    return " ".join((name or "").split()).casefold()


def name_scout_id(name: str) -> str:
    digest = hashlib.sha1(normalize_name(name).encode("utf-8")).hexdigest()[:12]
    return f"name-{digest}"


def _split_name(name: str) -> Tuple[str, str]:
    parts = name.split(" ", 1)
    return (parts[0], parts[1]) if len(parts) == 2 else (name, "")


# -----------------------------
# Helpers: canonical ordering
# -----------------------------
def _varieties_key(varieties: Mapping[CookieType, int]) -> Tuple[Tuple[str, int], ...]:
    return tuple(sorted((c.value, n) for c, n in varieties.items()))


def _order_key(o: Order) -> Tuple[Any, ...]:
    return (o.order_number, o.scout, o.date or date.min, o.order_type.value,
            o.packages, o.donations, o.amount, _varieties_key(o.varieties))


def _transfer_key(t: Transfer) -> Tuple[Any, ...]:
    return (t.date or date.min, t.order_number, t.raw_type, t.sender, t.recipient,
            t.packages, t.amount, _varieties_key(t.varieties))


def _allocation_key(a: Allocation) -> Tuple[Any, ...]:
    return (a.channel.value, a.source.value, a.girl_id if a.girl_id is not None else -1,
            a.scout, a.order_number, a.reservation_id, a.date or date.min,
            a.packages, a.donations, _varieties_key(a.varieties))


def _newest_first(transfers: Iterable[Transfer]) -> Tuple[Transfer, ...]:
    return tuple(sorted(transfers, key=lambda t: (t.date or date.min, t.order_number), reverse=True))


# -----------------------------
# Working state (never escapes this module)
# -----------------------------
@dataclass
class _ScoutWork:
    key: str
    name: str
    girl_id: Optional[int] = None
    is_site: bool = False
    orders: List[Order] = field(default_factory=list)
    inventory: Dict[CookieType, int] = field(default_factory=dict)
    allocations: Dict[AllocationChannel, List[Allocation]] = field(default_factory=dict)


class _ScoutDirectory:
    """
    Scouts keyed by SC girl id ("girl-<id>") when one is known, else by
    normalized name. A name shared by several girl ids resolves to the lowest id.
    """

    def __init__(self, girl_names: Mapping[int, str]):
        self.girl_names = dict(girl_names)
        self.by_key: Dict[str, _ScoutWork] = {}
        self.ids_by_name: Dict[str, List[int]] = {}
        for girl_id in sorted(self.girl_names):
            self.ids_by_name.setdefault(normalize_name(self.girl_names[girl_id]), []).append(girl_id)

    def _add(self, key: str, name: str, girl_id: Optional[int] = None) -> _ScoutWork:
        work = self.by_key.get(key)
        if work is None:
            work = _ScoutWork(key=key, name=" ".join(name.split()), girl_id=girl_id)
            self.by_key[key] = work
        return work

    def by_girl_id(self, girl_id: int) -> _ScoutWork:
        return self._add(f"girl-{girl_id}", self.girl_names[girl_id], girl_id)

    def get_or_add(self, name: str, is_site: bool = False) -> Optional[_ScoutWork]:
        normalized = normalize_name(name)
        if not normalized:
            return None
        ids = self.ids_by_name.get(normalized)
        if ids and not is_site:
            work = self.by_girl_id(ids[0])
        else:
            work = self._add(f"name-{normalized}", name)
        work.is_site = work.is_site or is_site
        return work

    def resolve_allocation(self, alloc: Allocation) -> Optional[_ScoutWork]:
        if alloc.girl_id is not None and alloc.girl_id in self.girl_names:
            return self.by_girl_id(alloc.girl_id)
        return self.get_or_add(alloc.scout)


def _girl_names_with_allocations(
    girl_names: Optional[Mapping[int, str]],
    allocations: Sequence[Allocation],
) -> Dict[int, str]:
    """SC girl id → name, filled in from allocations that carry both"""
    names = dict(girl_names or {})
    for a in allocations:
        if a.girl_id is not None and a.girl_id not in names and a.scout.strip():
            names[a.girl_id] = a.scout
    return names


def _scout_keys(works: Sequence[_ScoutWork]) -> List[str]:
    """Display names as mapping keys; repeats become "Name (2)", "Name (3)" """
    keys: List[str] = []
    seen: Counter = Counter()
    for w in works:
        seen[w.name] += 1
        keys.append(w.name if seen[w.name] == 1 else f"{w.name} ({seen[w.name]})")
    return keys


# -----------------------------
# DC ↔ SC order matching
# -----------------------------
def dc_order_number(transfer: Transfer) -> str:
    """DC order number carried by an SC D record ("D12345" → "12345")"""
    number = transfer.order_number
    return number[1:] if number.startswith("D") else number


def match_sc_orders(
    orders: Sequence[Order],
    transfers: Sequence[Transfer],
) -> Tuple[List[Order], List[Transfer]]:
    """
    Mark DC orders that were synced into SC, and collect D records that have
    no DC order behind them.
    """
    records = [t for t in transfers if t.category == TransferCategory.DC_ORDER_RECORD]
    synced = {dc_order_number(t) for t in records}
    dc_numbers = {o.order_number for o in orders}

    matched = [
        replace(o, sources=(OrderSource.DC, OrderSource.SC)) if o.order_number in synced else o
        for o in orders
    ]
    sc_only = [t for t in records if dc_order_number(t) not in dc_numbers]
    return matched, sc_only


# =============================================================================
# Main entry point
# =============================================================================

def reconcile(
    orders: Sequence[Order],
    transfers: Sequence[Transfer],
    allocations: Sequence[Allocation] = (),
    reservations: Sequence[BoothReservation] = (),
    settings: ReconSettings = DEFAULT_SETTINGS,
    *,
    girl_names: Optional[Mapping[int, str]] = None,
    virtual_cookie_shares: Optional[Mapping[int, int]] = None,
    warnings: Sequence[ReconWarning] = (),
    imported_at: Optional[datetime] = None,
) -> UnifiedDataset:
    """
    Build the UnifiedDataset.

    `allocations` holds divider allocations (booth sales, direct ship); virtual
    booth credits are always derived from VIRTUAL_BOOTH_ALLOCATION transfers.
    PLANNED and unrecognized transfers are kept for display only.
    """
    orders = sorted(orders, key=_order_key)
    all_transfers = sorted(transfers, key=_transfer_key)
    counted = [t for t in all_transfers if t.counts_toward_totals]
    allocs = sorted(list(allocations) + allocations_from_transfers(counted), key=_allocation_key)
    out_warnings: List[ReconWarning] = list(warnings)

    troop_number = settings.troop_number or _infer_troop_number(all_transfers)
    directory = _ScoutDirectory(_girl_names_with_allocations(girl_names, allocs))

    # 0. DC orders that SC also knows about (D records)
    orders, sc_only_orders = match_sc_orders(orders, counted)
    for t in sc_only_orders:
        msg = f"SC order {t.order_number} for {t.recipient or 'unknown scout'} has no matching DC order"
        logger.warning(msg)
        out_warnings.append(ReconWarning(
            type=WarningType.SC_ONLY_ORDER, message=msg,
            order_number=t.order_number, scout=t.recipient,
        ))

    # 1. Orders, grouped by scout (site orders under the synthetic site key)
    for order in orders:
        work = directory.get_or_add(order.scout, is_site=order.owner == Owner.SITE)
        if work is not None:
            work.orders.append(order)

    # 2. Physical inventory: pickups add, returns subtract, Cookie Share never counts
    for t in counted:
        if t.category == TransferCategory.GIRL_PICKUP:
            work = directory.get_or_add(t.recipient)
            if work is not None:
                add_varieties(work.inventory, t.physical_varieties)
        elif t.category == TransferCategory.GIRL_RETURN:
            work = directory.get_or_add(t.sender)
            if work is not None:
                add_varieties(work.inventory, t.physical_varieties, sign=-1)

    # 3. Credited allocations
    for alloc in allocs:
        work = directory.resolve_allocation(alloc)
        if work is None:
            msg = (f"{alloc.channel.value} allocation of {alloc.packages} packages "
                   f"(girl id {alloc.girl_id}) does not match any scout")
            logger.warning(msg)
            out_warnings.append(ReconWarning(
                type=WarningType.UNMATCHED_ALLOCATION, message=msg,
                order_number=alloc.order_number or alloc.reservation_id,
            ))
            continue
        work.allocations.setdefault(alloc.channel, []).append(alloc)

    for girl_id in sorted(directory.girl_names):
        directory.by_girl_id(girl_id)

    works = sorted(
        directory.by_key.values(),
        key=lambda w: (w.name.casefold(), w.name, w.girl_id is None, w.girl_id or 0, w.key),
    )

    # 4. Per-scout base totals, then the troop-wide proceeds rate
    base = {w.key: _base_totals(w) for w in works}
    rate = _proceeds_rate(works, base, settings)

    cookie_shares = virtual_cookie_shares or {}
    scouts: Dict[str, Scout] = {}
    for label, w in zip(_scout_keys(works), works):
        scouts[label] = _build_scout(w, base[w.key], rate, settings, cookie_shares)

    site_orders = build_site_orders(scouts.values(), allocs)
    troop_totals = build_troop_totals(orders, counted, scouts.values(), rate, settings)
    all_warnings = tuple(out_warnings)

    return UnifiedDataset(
        scouts=freeze(scouts),
        troop_totals=troop_totals,
        varieties=build_varieties(counted, scouts.values()),
        transfer_breakdowns=build_transfer_breakdowns(counted),
        site_orders=site_orders,
        cookie_share=build_cookie_share_tracking(orders, counted),
        metadata=DatasetMetadata(
            troop_number=troop_number,
            last_import_dc=imported_at if orders else None,
            last_import_sc=imported_at if all_transfers else None,
            scout_count=sum(1 for s in scouts.values() if not s.is_site_order),
            order_count=len(orders),
            transfer_count=len(all_transfers),
            health_checks=freeze(_health_checks(all_warnings)),
        ),
        has_transfer_data=bool(all_transfers),
        booth_reservations=tuple(sorted(reservations, key=lambda r: (r.date, r.start_time, r.id))),
        transfers=tuple(all_transfers),
        sc_only_orders=tuple(sc_only_orders),
        warnings=all_warnings,
    )


def build_unified_dataset(
    dc_rows: Any,
    sc_records: Any,
    allocation_data: Any = None,
    settings: ReconSettings = DEFAULT_SETTINGS,
    imported_at: Optional[datetime] = None,
) -> UnifiedDataset:
    """Import raw DC rows and SC payloads, then reconcile"""
    warnings: List[ReconWarning] = []
    allocation_data = allocation_data or {}
    cookie_id_map = allocation_data.get("cookieIdMap") if isinstance(allocation_data, Mapping) else None

    orders = import_orders(dc_rows, settings, warnings=warnings)
    transfers = import_transfers(sc_records, settings, cookie_id_map=cookie_id_map, warnings=warnings)
    alloc_import = import_allocations(allocation_data, cookie_id_map=cookie_id_map)
    warnings.extend(alloc_import.warnings)

    return reconcile(
        orders,
        transfers,
        alloc_import.allocations,
        alloc_import.reservations,
        settings,
        girl_names=alloc_import.girl_names,
        virtual_cookie_shares=alloc_import.virtual_cookie_shares,
        warnings=warnings,
        imported_at=imported_at,
    )


def _infer_troop_number(transfers: Sequence[Transfer]) -> str:
    for t in transfers:
        if t.category == TransferCategory.COUNCIL_TO_TROOP and t.recipient:
            return t.recipient
    return ""


# =============================================================================
# Scout calculations
# =============================================================================

@dataclass(frozen=True)
class _BaseTotals:
    delivered: int
    shipped: int
    donations: int
    credited: int

    @property
    def total_sold(self) -> int:
        return self.delivered + self.shipped + self.donations + self.credited


def _credited(work: _ScoutWork) -> ScoutCredited:
    channels: Dict[AllocationChannel, CreditedChannel] = {}
    for channel in AllocationChannel:
        items = work.allocations.get(channel, [])
        varieties: Dict[CookieType, int] = {}
        for a in items:
            add_varieties(varieties, a.varieties)
        channels[channel] = CreditedChannel(
            packages=sum(a.packages for a in items),
            donations=sum(a.donations for a in items),
            varieties=freeze(ordered_varieties(varieties)),
            allocations=tuple(items),
        )
    return ScoutCredited(
        virtual_booth=channels[AllocationChannel.VIRTUAL_BOOTH],
        direct_ship=channels[AllocationChannel.DIRECT_SHIP],
        booth_sales=channels[AllocationChannel.BOOTH_SALES],
    )


def _base_totals(work: _ScoutWork) -> _BaseTotals:
    delivered = sum(o.physical_packages for o in work.orders if o.needs_inventory)
    shipped = sum(o.physical_packages for o in work.orders if o.order_type == OrderType.DIRECT_SHIP)
    donations = sum(o.donations for o in work.orders)
    credited = _credited(work).total
    return _BaseTotals(delivered, shipped, donations, credited)


def _proceeds_rate(works: Sequence[_ScoutWork], base: Mapping[str, _BaseTotals], settings: ReconSettings) -> float:
    if settings.proceeds_rate is not None:
        return settings.proceeds_rate
    sold = [base[w.key].total_sold for w in works if not w.is_site and base[w.key].total_sold > 0]
    per_girl_average = sum(sold) / len(sold) if sold else 0.0
    return proceeds_rate_for_pga(per_girl_average)


def sales_by_variety(orders: Iterable[Order]) -> Dict[CookieType, int]:
    """Physical varieties sold from a girl's own inventory"""
    sales: Dict[CookieType, int] = {}
    for o in orders:
        if o.needs_inventory:
            add_varieties(sales, o.physical_varieties)
    return sales


def calculate_financials(orders: Iterable[Order], inventory: Mapping[CookieType, int]) -> Financials:
    cash_collected = 0.0
    electronic = 0.0
    cash_physical = 0.0
    for o in orders:
        if o.owner != Owner.GIRL:
            continue
        if o.is_electronic:
            if o.needs_inventory:
                electronic += calculate_revenue(o.physical_varieties)
        else:
            # All cash is turned in, whatever the order type
            cash_collected += o.amount
            if o.needs_inventory:
                cash_physical += calculate_revenue(o.physical_varieties)

    inventory_value = calculate_revenue(inventory)
    unsold = max(0.0, inventory_value - (electronic + cash_physical))
    return Financials(
        cash_collected=cash_collected,
        electronic_payments=electronic,
        inventory_value=inventory_value,
        unsold_value=unsold,
        cash_owed=cash_collected + unsold,
    )


def _build_scout(
    work: _ScoutWork,
    base: _BaseTotals,
    rate: float,
    settings: ReconSettings,
    virtual_cookie_shares: Mapping[int, int],
) -> Scout:
    credited = _credited(work)
    inventory = ordered_varieties(work.inventory)
    sales = sales_by_variety(work.orders)

    display: Dict[CookieType, int] = {}
    issues: List[NegativeInventoryIssue] = []
    on_hand = 0
    for cookie in PHYSICAL_COOKIE_TYPES:
        have = inventory.get(cookie, 0)
        sold = sales.get(cookie, 0)
        net = have - sold
        display[cookie] = net
        on_hand += max(0, net)
        if net < 0:
            issues.append(NegativeInventoryIssue(variety=cookie, inventory=have, sales=sold, shortfall=-net))

    total_sold = base.total_sold
    gross = total_sold * rate
    if not work.is_site and total_sold > 0:
        deduction = min(total_sold, settings.proceeds_exempt_packages) * rate
    else:
        deduction = 0.0

    status_counts = Counter(o.status_class for o in work.orders)
    allocation_summary = {
        channel: freeze({"packages": c.packages, "donations": c.donations, "allocations": len(c.allocations)})
        for channel, c in credited.channels()
    }

    dc_total = sum(o.donations for o in work.orders if o.owner == Owner.GIRL)
    dc_manual = sum(
        o.donations for o in work.orders
        if o.owner == Owner.GIRL and not is_dc_auto_sync(o.dc_order_type, o.payment_status)
    )
    sc_entered = virtual_cookie_shares.get(work.girl_id, 0) if work.girl_id is not None else 0

    if work.is_site:
        scout_id, confidence = f"site-{name_scout_id(work.name)[5:]}", IdConfidence.HIGH
    elif work.girl_id is not None:
        scout_id, confidence = f"girl-{work.girl_id}", IdConfidence.HIGH
    else:
        scout_id, confidence = name_scout_id(work.name), IdConfidence.LOW

    first, last = _split_name(work.name)
    if work.orders:
        first, last = work.orders[0].first_name, work.orders[0].last_name

    return Scout(
        name=work.name,
        first_name=first,
        last_name=last,
        scout_id=scout_id,
        id_confidence=confidence,
        girl_id=work.girl_id,
        is_site_order=work.is_site,
        orders=tuple(sorted(work.orders, key=lambda o: (o.date or date.min, o.order_number))),
        inventory=ScoutInventory(total=sum(inventory.values()), varieties=freeze(inventory)),
        credited=credited,
        totals=ScoutTotals(
            orders=len(work.orders),
            delivered=base.delivered,
            shipped=base.shipped,
            donations=base.donations,
            credited=base.credited,
            total_sold=total_sold,
            inventory=on_hand,
            inventory_display=freeze(display),
            order_status_counts=freeze({s: status_counts[s] for s in OrderStatusClass if status_counts[s]}),
            financials=calculate_financials(work.orders, inventory),
            allocation_summary=freeze(allocation_summary),
            troop_proceeds=gross - deduction,
            proceeds_deduction=deduction,
            credited_revenue=sum(calculate_revenue(c.varieties) for _, c in credited.channels()),
        ),
        negative_inventory=tuple(issues),
        cookie_share=ScoutCookieShare(dc_total=dc_total, dc_manual_entry=dc_manual, sc_entered=sc_entered),
    )


# =============================================================================
# Site orders
# =============================================================================

def _fifo(packages: Sequence[int], pool: int) -> List[int]:
    """Consume a pool oldest-first; returns the amount given to each entry"""
    out = []
    for p in packages:
        take = max(0, min(p, pool))
        out.append(take)
        pool -= take
    return out


def _site_category(entries: Sequence[SiteOrderEntry], allocated: int) -> SiteOrderCategory:
    total = sum(e.packages for e in entries)
    return SiteOrderCategory(
        total=total,
        allocated=allocated,
        unallocated=max(0, total - allocated),
        has_warning=total > allocated,
        orders=tuple(entries),
    )


def build_site_orders(scouts: Iterable[Scout], allocations: Sequence[Allocation]) -> SiteOrders:
    """
    Pass 1 buckets site orders by type (oldest first); pass 2 sums every
    allocation per channel; per-order amounts are then handed out FIFO.
    """
    site_orders: List[Order] = []
    for s in scouts:
        if s.is_site_order:
            site_orders.extend(s.orders)
    site_orders.sort(key=lambda o: (o.date or date.min, o.order_number))

    buckets: Dict[str, List[Order]] = {"girl_delivery": [], "direct_ship": [], "booth_sale": []}
    for o in site_orders:
        if o.order_type == OrderType.DONATION:
            continue
        if o.order_type == OrderType.DIRECT_SHIP:
            buckets["direct_ship"].append(o)
        elif o.order_type == OrderType.BOOTH:
            buckets["booth_sale"].append(o)
        else:
            buckets["girl_delivery"].append(o)

    channel_totals = {ch: 0 for ch in AllocationChannel}
    for a in allocations:
        channel_totals[a.channel] += a.packages

    # Direct ship: match divider entries to orders by order id, FIFO if none match
    ds_orders = buckets["direct_ship"]
    ds_allocs = [a for a in allocations if a.channel == AllocationChannel.DIRECT_SHIP]
    matched = [
        sum(a.packages for a in ds_allocs if a.order_number in (o.order_number, f"D{o.order_number}"))
        for o in ds_orders
    ]
    if not any(matched):
        matched = _fifo([o.physical_packages for o in ds_orders], channel_totals[AllocationChannel.DIRECT_SHIP])

    def entries(orders: Sequence[Order], allocated: Sequence[int]) -> List[SiteOrderEntry]:
        return [
            SiteOrderEntry(order_number=o.order_number, order_type=o.order_type, date=o.date,
                           packages=o.physical_packages, allocated=n)
            for o, n in zip(orders, allocated)
        ]

    gd_orders = buckets["girl_delivery"]
    bs_orders = buckets["booth_sale"]
    return SiteOrders(
        girl_delivery=_site_category(
            entries(gd_orders, _fifo([o.physical_packages for o in gd_orders],
                                     channel_totals[AllocationChannel.VIRTUAL_BOOTH])),
            channel_totals[AllocationChannel.VIRTUAL_BOOTH],
        ),
        direct_ship=_site_category(entries(ds_orders, matched), channel_totals[AllocationChannel.DIRECT_SHIP]),
        booth_sale=_site_category(
            entries(bs_orders, _fifo([o.physical_packages for o in bs_orders],
                                     channel_totals[AllocationChannel.BOOTH_SALES])),
            channel_totals[AllocationChannel.BOOTH_SALES],
        ),
    )


# =============================================================================
# Troop rollups
# =============================================================================

def build_troop_totals(
    orders: Sequence[Order],
    transfers: Sequence[Transfer],
    scouts: Iterable[Scout],
    rate: float,
    settings: ReconSettings = DEFAULT_SETTINGS,
) -> TroopTotals:
    by_category: Dict[TransferCategory, int] = Counter()
    donations = 0
    sold = 0
    revenue = 0.0
    for t in transfers:
        by_category[t.category] += t.physical_packages
        donations += t.cookie_share
        if t.category in SALE_CATEGORIES:
            sold += t.packages
            revenue += t.amount

    ordered = by_category[TransferCategory.COUNCIL_TO_TROOP]
    g2t = by_category[TransferCategory.GIRL_RETURN]
    pickup = by_category[TransferCategory.GIRL_PICKUP]
    virtual_booth = by_category[TransferCategory.VIRTUAL_BOOTH_ALLOCATION]
    booth_divider = by_category[TransferCategory.BOOTH_SALES_ALLOCATION]
    outgoing = by_category[TransferCategory.TROOP_OUTGOING]

    direct_ship = 0
    deduction = 0.0
    exempt = 0
    girl_delivery = 0
    girl_inventory = 0
    booth_packages = 0
    booth_donations = 0
    credited = 0
    pending_pickup = 0
    counts = Counter()
    for s in scouts:
        direct_ship += s.totals.shipped
        deduction += s.totals.proceeds_deduction
        if s.is_site_order:
            continue
        girl_delivery += s.totals.delivered
        girl_inventory += max(0, s.totals.inventory)
        booth_packages += s.credited.booth_sales.packages
        booth_donations += s.credited.booth_sales.donations
        credited += s.totals.credited
        pending_pickup += sum(i.shortfall for i in s.negative_inventory)
        counts["total"] += 1
        if s.totals.total_sold > 0:
            counts["active"] += 1
            exempt += min(s.totals.total_sold, settings.proceeds_exempt_packages)
        if s.has_negative_inventory:
            counts["negative"] += 1

    gross = (ordered + donations + direct_ship) * rate
    return TroopTotals(
        orders=len(orders),
        ordered=ordered,
        girl_pickup=pickup,
        virtual_booth_t2g=virtual_booth,
        booth_divider_t2g=booth_divider,
        direct_ship_divider_t2g=by_category[TransferCategory.DIRECT_SHIP_ALLOCATION],
        troop_outgoing=outgoing,
        g2t=g2t,
        girl_delivery=girl_delivery,
        girl_inventory=girl_inventory,
        direct_ship=direct_ship,
        donations=donations,
        booth_sales_packages=booth_packages,
        booth_sales_donations=booth_donations,
        packages_credited=credited,
        inventory=ordered + g2t - pickup - virtual_booth - booth_divider - outgoing,
        sold=sold,
        revenue=revenue,
        gross_proceeds=gross,
        troop_proceeds=gross - deduction,
        proceeds_deduction=deduction,
        proceeds_exempt_packages=exempt,
        proceeds_rate=rate,
        pending_pickup=pending_pickup,
        scouts=ScoutCounts(
            total=counts["total"],
            active=counts["active"],
            inactive=counts["total"] - counts["active"],
            with_negative_inventory=counts["negative"],
        ),
    )


def build_varieties(transfers: Sequence[Transfer], scouts: Iterable[Scout]) -> VarietiesSummary:
    by_cookie: Dict[CookieType, int] = {}
    for s in scouts:
        for o in s.orders:
            if o.needs_inventory or o.order_type == OrderType.DIRECT_SHIP:
                add_varieties(by_cookie, o.physical_varieties)
        if not s.is_site_order:
            for _, channel in s.credited.channels():
                add_varieties(by_cookie, physical_only(channel.varieties))

    inventory: Dict[CookieType, int] = {}
    for t in transfers:
        sign = TROOP_STOCK_SIGN.get(t.category)
        if sign:
            for cookie, count in t.physical_varieties.items():
                inventory[cookie] = inventory.get(cookie, 0) + sign * count

    return VarietiesSummary(
        by_cookie=freeze(ordered_varieties(by_cookie)),
        inventory=freeze({c: inventory[c] for c in PHYSICAL_COOKIE_TYPES if c in inventory}),
        total=sum(by_cookie.values()),
    )


def build_transfer_breakdowns(transfers: Sequence[Transfer]) -> TransferBreakdowns:
    c2t = [t for t in transfers if t.category == TransferCategory.COUNCIL_TO_TROOP]
    t2t_out = [t for t in transfers if t.category == TransferCategory.TROOP_OUTGOING]
    t2g = [t for t in transfers if t.category == TransferCategory.GIRL_PICKUP]
    g2t = [t for t in transfers if t.category == TransferCategory.GIRL_RETURN]
    sold = [t for t in transfers if t.category in SALE_CATEGORIES]
    return TransferBreakdowns(
        c2t=_newest_first(c2t),
        t2t_out=_newest_first(t2t_out),
        t2g=_newest_first(t2g),
        g2t=_newest_first(g2t),
        sold=_newest_first(sold),
        totals=freeze({
            "c2t": sum(t.physical_packages for t in c2t),
            "t2t_out": sum(t.physical_packages for t in t2t_out),
            "t2g_physical": sum(t.physical_packages for t in t2g),
            "g2t": sum(t.physical_packages for t in g2t),
            "sold": sum(t.physical_packages for t in sold),
        }),
    )


def build_cookie_share_tracking(orders: Sequence[Order], transfers: Sequence[Transfer]) -> CookieShareTracking:
    """
    DC donations needing manual SC entry vs manually entered SC Cookie Share.
    Site orders are skipped: booth donations arrive through the booth divider.
    """
    dc_total = 0
    dc_manual = 0
    for o in orders:
        if o.owner == Owner.SITE or o.donations <= 0:
            continue
        dc_total += o.donations
        if not is_dc_auto_sync(o.dc_order_type, o.payment_status):
            dc_manual += o.donations

    sc_manual = sum(
        abs(t.packages) for t in transfers
        if t.category == TransferCategory.COOKIE_SHARE_RECORD and not t.order_number.startswith("D")
    )
    return CookieShareTracking(dc_total=dc_total, dc_manual_entry=dc_manual, sc_manual_entries=sc_manual)


def _health_checks(warnings: Sequence[ReconWarning]) -> Dict[str, int]:
    counts = Counter(w.type for w in warnings)
    return {t.value: counts[t] for t in WarningType}
