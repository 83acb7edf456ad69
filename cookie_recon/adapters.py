"""
Source Adapters

Each adapter turns one upstream shape into typed entities. Nothing downstream
of this module reads raw column names or JSON keys.

Supported sources:
- Digital Cookie order export (xlsx/csv rows) → Order
- Smart Cookie /orders/search records → Transfer
- Smart Cookie divider and reservation payloads → Allocation, BoothReservation

Adapters never raise on a bad row or record: fields are coerced to zero/empty
and the problem is recorded as a ReconWarning.
"""
from __future__ import annotations

import json
import logging
import math
import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

import pandas as pd

from .classify import (
    classify_order_status, classify_order_type, classify_payment_method,
    classify_transfer_category, is_c2t, parse_transfer_type,
)
from .cookies import (
    COOKIE_ID_MAP, DC_COOKIE_COLUMNS, CookieType, build_cookie_id_map,
    normalize_cookie_name, sum_physical,
)
from .models import (
    Allocation, AllocationChannel, AllocationImport, AllocationSource,
    BoothReservation, Order, OrderType, Owner, PaymentMethod, ReconWarning,
    Transfer, TransferCategory, TransferType, WarningType, freeze,
)
from .settings import DEFAULT_SETTINGS, ReconSettings

logger = logging.getLogger(__name__)

EXCEL_EPOCH = date(1899, 12, 30)
PER_ORDER_UNAVAILABLE = "per-order breakdown unavailable"


# =============================================================================
# Base Adapter
# =============================================================================

class BaseAdapter(ABC):
    """Base class for all source adapters"""

    def __init__(self):
        self.warnings: List[ReconWarning] = []

    @abstractmethod
    def parse(self, data: Any) -> Any:
        """Parse raw upstream data into typed entities"""
        pass

    def _warn(self, warning_type: WarningType, message: str, **kwargs: str) -> None:
        logger.warning(message)
        self.warnings.append(ReconWarning(type=warning_type, message=message, **kwargs))

    def _read_file(self, file_path: Path) -> pd.DataFrame:
        """Read a spreadsheet export into a DataFrame, empty on failure"""
        ext = file_path.suffix.lower()
        try:
            if ext in [".xlsx", ".xls"]:
                return pd.read_excel(file_path)
            elif ext == ".csv":
                for encoding in ["utf-8", "latin-1", "cp1252"]:
                    try:
                        return pd.read_csv(file_path, encoding=encoding)
                    except UnicodeDecodeError:
                        continue
                return pd.read_csv(file_path, encoding="utf-8", encoding_errors="ignore")
            else:
                raise ValueError(f"Unsupported file type: {ext}")
        except pd.errors.EmptyDataError:
            logger.warning("Empty file: %s", file_path)
            return pd.DataFrame()
        except (OSError, ValueError) as e:
            logger.error("Failed reading %s: %s", file_path, e)
            return pd.DataFrame()

    def _read_json(self, file_path: Path) -> Any:
        """Load a JSON snapshot, None on failure"""
        try:
            with open(file_path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as e:
            logger.error("Failed reading %s: %s", file_path, e)
            return None

    # -----------------------------
    # Field coercion
    # -----------------------------
    @staticmethod
    def _is_missing(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False

    def _text(self, value: Any) -> str:
        if self._is_missing(value):
            return ""
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value).strip()

    def _parse_int(self, value: Any) -> int:
        """Integer package count; missing or non-numeric → 0"""
        if self._is_missing(value):
            return 0
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return int(value) if math.isfinite(value) else 0
        s = str(value).strip().replace(",", "")
        try:
            number = float(s)
        except ValueError:
            return 0
        return int(number) if math.isfinite(number) else 0

    def _parse_amount(self, value: Any) -> float:
        """Parse currency text like "$1,234.50" or "(12.00)" """
        if self._is_missing(value):
            return 0.0
        if isinstance(value, (int, float)):
            return float(value) if math.isfinite(value) else 0.0
        s = str(value).strip().replace(",", "").replace("$", "")
        if s.startswith("(") and s.endswith(")"):
            s = "-" + s[1:-1]
        try:
            amount = float(s)
        except ValueError:
            return 0.0
        return amount if math.isfinite(amount) else 0.0

    def _parse_date(self, value: Any) -> Optional[date]:
        """Excel serial numbers, datetimes, or date strings"""
        if self._is_missing(value):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if 0 < value < 2958466:
                return EXCEL_EPOCH + timedelta(days=int(value))
            return None
        s = str(value).strip()
        if re.fullmatch(r"\d+(\.\d+)?", s):
            return self._parse_date(float(s))
        parsed = pd.to_datetime(s, errors="coerce")
        if pd.isna(parsed):
            return None
        return parsed.date()

    @staticmethod
    def _flag(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "y")
        return bool(value)


# =============================================================================
# Digital Cookie Adapter (order export rows)
# =============================================================================

class DigitalCookieAdapter(BaseAdapter):
    """
    Adapter for the Digital Cookie order export.

    Expected columns (exact export headers):
    Order Number, Girl First Name, Girl Last Name, Order Date (Central Time),
    Order Type, Total Packages (Includes Donate & Gift), Refunded Packages,
    Current Sale Amount, Order Status, Payment Status, Donation, plus one
    column per cookie variety.
    """

    ORDER_NUMBER = "Order Number"
    FIRST_NAME = "Girl First Name"
    LAST_NAME = "Girl Last Name"
    ORDER_DATE = "Order Date (Central Time)"
    ORDER_TYPE = "Order Type"
    TOTAL_PACKAGES = "Total Packages (Includes Donate & Gift)"
    REFUNDED_PACKAGES = "Refunded Packages"
    SALE_AMOUNT = "Current Sale Amount"
    ORDER_STATUS = "Order Status"
    PAYMENT_STATUS = "Payment Status"
    DONATION = "Donation"

    def __init__(self, settings: ReconSettings = DEFAULT_SETTINGS):
        super().__init__()
        self.settings = settings

    def can_handle(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in (".xlsx", ".xls", ".csv")

    def read(self, file_path: Path) -> pd.DataFrame:
        return self._read_file(file_path)

    def parse(self, data: Any) -> List[Order]:
        """Rows (list of mappings or a DataFrame) → orders, in input order"""
        if isinstance(data, pd.DataFrame):
            rows: Iterable[Any] = data.to_dict("records")
        else:
            rows = data or []

        orders: List[Order] = []
        for idx, row in enumerate(rows):
            if not isinstance(row, Mapping):
                self._warn(WarningType.MALFORMED_ROW, f"DC row {idx + 1} is not a mapping; skipped")
                continue
            order = self._parse_row(row, idx)
            if order is not None:
                orders.append(order)
        return orders

    def _parse_row(self, row: Mapping[str, Any], idx: int) -> Optional[Order]:
        order_number = self._text(row.get(self.ORDER_NUMBER))
        first = self._text(row.get(self.FIRST_NAME))
        last = self._text(row.get(self.LAST_NAME))
        if not (order_number or first or last):
            self._warn(WarningType.MALFORMED_ROW, f"DC row {idx + 1} has no order number or scout name; skipped")
            return None
        scout = f"{first} {last}".strip()

        is_site = last == self.settings.site_last_name
        owner = Owner.SITE if is_site else Owner.GIRL

        dc_order_type = self._text(row.get(self.ORDER_TYPE))
        order_type = classify_order_type(dc_order_type, is_site)
        if order_type is None:
            self._warn(
                WarningType.UNKNOWN_ORDER_TYPE,
                f'Unknown DC order type "{dc_order_type}" on order {order_number}; treated as delivery',
                order_number=order_number, scout=scout, detail=dc_order_type,
            )
            order_type = OrderType.DELIVERY

        payment_status = self._text(row.get(self.PAYMENT_STATUS))
        payment_method = classify_payment_method(payment_status)
        if payment_method is None:
            self._warn(
                WarningType.UNKNOWN_PAYMENT_METHOD,
                f'Unknown payment status "{payment_status}" on order {order_number}',
                order_number=order_number, scout=scout, detail=payment_status,
            )
            payment_method = PaymentMethod.UNKNOWN

        total = self._parse_int(row.get(self.TOTAL_PACKAGES))
        refunded = self._parse_int(row.get(self.REFUNDED_PACKAGES))
        donations = max(0, self._parse_int(row.get(self.DONATION)))
        packages = total - refunded

        varieties: Dict[CookieType, int] = {}
        for column, cookie in DC_COOKIE_COLUMNS.items():
            count = self._parse_int(row.get(column))
            if count:
                varieties[cookie] = count
        if donations > 0:
            varieties[CookieType.COOKIE_SHARE] = donations

        status = self._text(row.get(self.ORDER_STATUS))
        return Order(
            order_number=order_number,
            scout=scout,
            first_name=first,
            last_name=last,
            date=self._parse_date(row.get(self.ORDER_DATE)),
            owner=owner,
            order_type=order_type,
            dc_order_type=dc_order_type,
            varieties=freeze(varieties),
            packages=packages,
            donations=donations,
            physical_packages=max(0, packages - donations),
            amount=self._parse_amount(row.get(self.SALE_AMOUNT)),
            payment_status=payment_status,
            payment_method=payment_method,
            status=status,
            status_class=classify_order_status(status),
        )


# =============================================================================
# Cookie parsing shared by SC adapters
# =============================================================================

class _SmartCookieBase(BaseAdapter):

    def __init__(self, cookie_id_map: Optional[Mapping[Any, Any]] = None):
        super().__init__()
        self.cookie_id_map: Dict[str, CookieType] = (
            build_cookie_id_map(cookie_id_map) if cookie_id_map else dict(COOKIE_ID_MAP)
        )
        self._unknown_ids: Set[str] = set()

    def read(self, file_path: Path) -> Any:
        return self._read_json(file_path)

    def _parse_cookies(self, cookies: Any, context: str = "") -> Dict[CookieType, int]:
        """cookies[] ({id|cookieId, quantity}) → varieties with absolute quantities"""
        varieties: Dict[CookieType, int] = {}
        if not isinstance(cookies, list):
            return varieties
        for entry in cookies:
            if not isinstance(entry, Mapping):
                continue
            quantity = abs(self._parse_int(entry.get("quantity")))
            if not quantity:
                continue
            raw_id = entry.get("id", entry.get("cookieId"))
            cookie = self.cookie_id_map.get(self._text(raw_id)) if not self._is_missing(raw_id) else None
            if cookie is None:
                cookie = normalize_cookie_name(entry.get("name") or entry.get("cookieName"))
            if cookie is None:
                key = self._text(raw_id) or "?"
                if key not in self._unknown_ids:
                    self._unknown_ids.add(key)
                    self._warn(
                        WarningType.UNKNOWN_COOKIE_ID,
                        f"Unknown cookie ID {key}" + (f" in {context}" if context else ""),
                        order_number=context, detail=key,
                    )
                continue
            varieties[cookie] = varieties.get(cookie, 0) + quantity
        return varieties


# =============================================================================
# Smart Cookie Transfer Adapter
# =============================================================================

class SmartCookieAdapter(_SmartCookieBase):
    """
    Adapter for Smart Cookie transfer/order records.

    Accepts the generic shape (type, from, to, date, cookies[], actions, status)
    and the /orders/search aliases (transfer_type, order_number, virtual_booth,
    smart_divider_id, total). A {"orders": [...]} wrapper is unwrapped.
    """

    def __init__(self, settings: ReconSettings = DEFAULT_SETTINGS,
                 cookie_id_map: Optional[Mapping[Any, Any]] = None):
        super().__init__(cookie_id_map)
        self.settings = settings
        self.troop_number = settings.troop_number

    def parse(self, data: Any) -> List[Transfer]:
        if isinstance(data, Mapping):
            data = data.get("orders") or []
        records = [r for r in (data or []) if isinstance(r, Mapping)]
        if not self.troop_number:
            self.troop_number = self._infer_troop_number(records)

        seen_unknown: Set[str] = set()
        transfers: List[Transfer] = []
        for record in records:
            transfer = self._parse_record(record)
            if transfer.type == TransferType.OTHER and transfer.raw_type not in seen_unknown:
                seen_unknown.add(transfer.raw_type)
                self._warn(
                    WarningType.UNKNOWN_TRANSFER_TYPE,
                    f'Unknown transfer type "{transfer.raw_type}"',
                    order_number=transfer.order_number, detail=transfer.raw_type,
                )
            transfers.append(transfer)
        return transfers

    def _raw_type(self, record: Mapping[str, Any]) -> str:
        # SC reports type="TRANSFER" for every transfer; transfer_type holds the real one
        return self._text(record.get("transfer_type") or record.get("type") or record.get("orderType"))

    def _infer_troop_number(self, records: List[Mapping[str, Any]]) -> str:
        """The first C2T recipient is our troop"""
        for record in records:
            if is_c2t(self._raw_type(record)):
                to = self._text(record.get("to"))
                if to:
                    return to
        return ""

    def _parse_record(self, record: Mapping[str, Any]) -> Transfer:
        raw_type = self._raw_type(record)
        transfer_type = parse_transfer_type(raw_type)
        order_number = self._text(record.get("order_number") or record.get("orderNumber"))
        sender = self._text(record.get("from"))
        recipient = self._text(record.get("to"))

        varieties = self._parse_cookies(record.get("cookies"), order_number)
        packages = sum(varieties.values())
        physical = max(0, packages - varieties.get(CookieType.COOKIE_SHARE, 0))

        virtual_booth = self._flag(record.get("virtual_booth") or record.get("virtualBooth"))
        booth_divider = bool(record.get("smart_divider_id")) and not virtual_booth
        direct_ship_divider = self._flag(record.get("direct_ship_divider") or record.get("directShipDivider"))

        actions_raw = record.get("actions")
        actions = {str(k): bool(v) for k, v in actions_raw.items()} if isinstance(actions_raw, Mapping) else {}

        return Transfer(
            type=transfer_type,
            raw_type=raw_type,
            category=classify_transfer_category(
                transfer_type,
                sender=sender,
                troop_number=self.troop_number,
                virtual_booth=virtual_booth,
                booth_divider=booth_divider,
                direct_ship_divider=direct_ship_divider,
            ),
            order_number=order_number,
            sender=sender,
            recipient=recipient,
            date=self._parse_date(record.get("date") or record.get("createdDate")),
            varieties=freeze(varieties),
            packages=packages,
            physical_packages=physical,
            amount=abs(self._parse_amount(record.get("total", record.get("totalPrice")))),
            status=self._text(record.get("status")),
            actions=freeze(actions),
            virtual_booth=virtual_booth,
            booth_divider=booth_divider,
            direct_ship_divider=direct_ship_divider,
        )


# =============================================================================
# Smart Cookie Allocation Adapter (dividers + reservations)
# =============================================================================

class AllocationAdapter(_SmartCookieBase):
    """
    Adapter for divider and reservation payloads.

    Expected keys (all optional):
    - boothDividers: [{reservationId, booth, timeslot, divider: {girls}}]
    - directShipDivider: {girls} (single blob) or [{orderId, divider: {girls}}]
    - virtualCookieShares: [{girls: [{id, quantity}], smart_divider_id}]
    - reservations: [...] or {reservations: [...]}
    - cookieIdMap: {sc_id: cookie name}
    """

    def __init__(self, cookie_id_map: Optional[Mapping[Any, Any]] = None):
        super().__init__(cookie_id_map)
        self.allocations: List[Allocation] = []
        self.reservations: List[BoothReservation] = []
        self.virtual_cookie_shares: Dict[int, int] = {}
        self.girl_names: Dict[int, str] = {}

    def parse(self, data: Any) -> AllocationImport:
        data = data if isinstance(data, Mapping) else {}
        if isinstance(data.get("cookieIdMap"), Mapping):
            self.cookie_id_map = build_cookie_id_map(data["cookieIdMap"])

        self._import_reservations(data.get("reservations"))
        self._import_booth_dividers(data.get("boothDividers"))
        self._import_direct_ship(data.get("directShipDivider"))
        self._import_virtual_cookie_shares(data.get("virtualCookieShares"))

        return AllocationImport(
            allocations=tuple(self.allocations),
            reservations=tuple(self.reservations),
            virtual_cookie_shares=freeze(self.virtual_cookie_shares),
            girl_names=freeze(self.girl_names),
            warnings=tuple(self.warnings),
        )

    # -----------------------------
    # Girls
    # -----------------------------
    def _girl_id(self, girl: Mapping[str, Any]) -> Optional[int]:
        raw = girl.get("id", girl.get("girl_id"))
        if self._is_missing(raw):
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            return None

    def _register_girl(self, girl_id: Optional[int], girl: Mapping[str, Any]) -> str:
        first = self._text(girl.get("first_name") or girl.get("firstName"))
        last = self._text(girl.get("last_name") or girl.get("lastName"))
        name = f"{first} {last}".strip()
        if girl_id is not None and name:
            self.girl_names.setdefault(girl_id, name)
        return name or (self.girl_names.get(girl_id, "") if girl_id is not None else "")

    def _girl_allocation(
        self,
        girl: Any,
        dedupe_prefix: str,
        seen: Set[str],
    ) -> Optional[Tuple[Optional[int], str, Dict[CookieType, int]]]:
        """Varieties for one divider girl; None for empty or duplicate entries"""
        if not isinstance(girl, Mapping):
            return None
        girl_id = self._girl_id(girl)
        varieties = self._parse_cookies(girl.get("cookies"), dedupe_prefix)
        if not sum(varieties.values()):
            return None
        key = f"{dedupe_prefix}-{girl_id}"
        if key in seen:
            return None
        seen.add(key)
        return girl_id, self._register_girl(girl_id, girl), varieties

    # -----------------------------
    # Payload sections
    # -----------------------------
    def _import_reservations(self, payload: Any) -> None:
        if isinstance(payload, Mapping):
            payload = payload.get("reservations")
        if not isinstance(payload, list):
            return
        for r in payload:
            if not isinstance(r, Mapping):
                continue
            booth = r.get("booth") if isinstance(r.get("booth"), Mapping) else {}
            timeslot = r.get("timeslot") if isinstance(r.get("timeslot"), Mapping) else {}
            reservation_id = self._text(r.get("id") or r.get("reservation_id"))
            varieties = self._parse_cookies(r.get("cookies"), f"reservation {reservation_id}")
            self.reservations.append(BoothReservation(
                id=reservation_id,
                store_name=self._text(booth.get("store_name")),
                address=self._text(booth.get("address")),
                reservation_type=self._text(booth.get("reservation_type")),
                date=self._text(timeslot.get("date")),
                start_time=self._text(timeslot.get("start_time")),
                end_time=self._text(timeslot.get("end_time")),
                is_distributed=self._flag(booth.get("is_distributed")),
                is_virtually_distributed=self._flag(booth.get("is_virtually_distributed")),
                varieties=freeze(varieties),
                total_packages=sum(varieties.values()),
                physical_packages=sum_physical(varieties),
                tracked_cookie_share=varieties.get(CookieType.COOKIE_SHARE, 0),
            ))

    def _import_booth_dividers(self, payload: Any) -> None:
        if not isinstance(payload, list):
            return
        seen: Set[str] = set()
        for entry in payload:
            if not isinstance(entry, Mapping):
                continue
            divider = entry.get("divider") if isinstance(entry.get("divider"), Mapping) else {}
            raw_booth = entry.get("booth") if isinstance(entry.get("booth"), Mapping) else {}
            # booth may be the nested booth object or the whole reservation
            booth = raw_booth if raw_booth.get("booth_id") else (raw_booth.get("booth") or raw_booth)
            timeslot = raw_booth.get("timeslot") or entry.get("timeslot") or {}
            reservation_id = self._text(entry.get("reservationId"))

            for girl in divider.get("girls") or []:
                parsed = self._girl_allocation(girl, reservation_id, seen)
                if parsed is None:
                    continue
                girl_id, name, varieties = parsed
                self.allocations.append(Allocation(
                    channel=AllocationChannel.BOOTH_SALES,
                    source=AllocationSource.SMART_BOOTH_DIVIDER,
                    packages=sum_physical(varieties),
                    donations=varieties.get(CookieType.COOKIE_SHARE, 0),
                    varieties=freeze(varieties),
                    girl_id=girl_id,
                    scout=name,
                    reservation_id=reservation_id,
                    store_name=self._text(booth.get("store_name") or booth.get("booth_name") or booth.get("location")),
                    date=self._parse_date(timeslot.get("date")),
                    start_time=self._text(timeslot.get("start_time") or timeslot.get("startTime")),
                    end_time=self._text(timeslot.get("end_time") or timeslot.get("endTime")),
                ))

    def _import_direct_ship(self, payload: Any) -> None:
        if isinstance(payload, Mapping):
            # Single divider blob: SC gives no per-order key
            entries = [(None, payload)]
        elif isinstance(payload, list):
            entries = []
            for entry in payload:
                if isinstance(entry, Mapping):
                    divider = entry.get("divider") if isinstance(entry.get("divider"), Mapping) else entry
                    order_id = self._text(entry.get("orderId") or entry.get("id"))
                    entries.append((order_id or None, divider))
        else:
            return

        seen: Set[str] = set()
        for order_id, divider in entries:
            for girl in divider.get("girls") or []:
                parsed = self._girl_allocation(girl, order_id or "", seen)
                if parsed is None:
                    continue
                girl_id, name, varieties = parsed
                self.allocations.append(Allocation(
                    channel=AllocationChannel.DIRECT_SHIP,
                    source=(AllocationSource.SMART_DIRECT_SHIP_DIVIDER if order_id
                            else AllocationSource.DIRECT_SHIP_DIVIDER),
                    packages=sum_physical(varieties),
                    donations=varieties.get(CookieType.COOKIE_SHARE, 0),
                    varieties=freeze(varieties),
                    girl_id=girl_id,
                    scout=name,
                    order_number=order_id or "",
                    note="" if order_id else PER_ORDER_UNAVAILABLE,
                ))

    def _import_virtual_cookie_shares(self, payload: Any) -> None:
        if not isinstance(payload, list):
            return
        for entry in payload:
            if not isinstance(entry, Mapping):
                continue
            if entry.get("smart_divider_id"):
                # Booth Cookie Share is carried by the booth divider allocations
                continue
            for girl in entry.get("girls") or []:
                if not isinstance(girl, Mapping):
                    continue
                girl_id = self._girl_id(girl)
                if girl_id is None:
                    continue
                self._register_girl(girl_id, girl)
                quantity = self._parse_int(girl.get("quantity"))
                self.virtual_cookie_shares[girl_id] = self.virtual_cookie_shares.get(girl_id, 0) + quantity


# =============================================================================
# Import entry points
# =============================================================================

def import_orders(
    rows: Any,
    settings: ReconSettings = DEFAULT_SETTINGS,
    warnings: Optional[List[ReconWarning]] = None,
) -> List[Order]:
    """DC rows → orders. Warnings are appended to `warnings` when given."""
    adapter = DigitalCookieAdapter(settings)
    orders = adapter.parse(rows)
    if warnings is not None:
        warnings.extend(adapter.warnings)
    return orders


def import_transfers(
    records: Any,
    settings: ReconSettings = DEFAULT_SETTINGS,
    cookie_id_map: Optional[Mapping[Any, Any]] = None,
    warnings: Optional[List[ReconWarning]] = None,
) -> List[Transfer]:
    """SC transfer records → transfers, one per record, in input order"""
    adapter = SmartCookieAdapter(settings, cookie_id_map)
    transfers = adapter.parse(records)
    if warnings is not None:
        warnings.extend(adapter.warnings)
    return transfers


def import_allocations(
    api_data: Any,
    cookie_id_map: Optional[Mapping[Any, Any]] = None,
) -> AllocationImport:
    return AllocationAdapter(cookie_id_map).parse(api_data)


def allocations_from_transfers(transfers: Iterable[Transfer]) -> List[Allocation]:
    """Virtual booth T2G transfers credit their recipient without moving inventory"""
    allocations: List[Allocation] = []
    for t in transfers:
        if t.category != TransferCategory.VIRTUAL_BOOTH_ALLOCATION:
            continue
        allocations.append(Allocation(
            channel=AllocationChannel.VIRTUAL_BOOTH,
            source=AllocationSource.VIRTUAL_BOOTH_TRANSFER,
            packages=t.physical_packages,
            donations=t.cookie_share,
            varieties=freeze(t.varieties),
            scout=t.recipient,
            order_number=t.order_number,
            date=t.date,
        ))
    return allocations
