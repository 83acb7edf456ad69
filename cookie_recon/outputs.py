"""
Output Formatting

Renders a UnifiedDataset for the troop leader:
- Summary sheet with troop totals, proceeds and health checks
- Scouts sheet with per-scout sold/credited/inventory/cash owed
- Inventory sheet listing negative-inventory shortfalls
- Site Orders sheet with allocation status per order
- Booths sheet with distribution status
- Warnings sheet with every data-quality finding

Also writes the dataset as JSON (unified.json).
"""
from __future__ import annotations

import io
import json
from datetime import datetime
from pathlib import Path
from typing import Any, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .booths import booth_status, count_booths_needing_distribution
from .cookies import PHYSICAL_COOKIE_TYPES
from .models import BoothStatus, SiteOrderCategory, UnifiedDataset


# =============================================================================
# Style Constants
# =============================================================================

HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")

GREEN_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
YELLOW_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
RED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")

THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)

CURRENCY_FORMAT = '_("$"* #,##0.00_);_("$"* (#,##0.00);_("$"* "-"??_);_(@_)'
PERCENT_FORMAT = '0.00%'
RATE_FORMAT = '0.00'

BOOTH_STATUS_FILLS = {
    BoothStatus.DISTRIBUTED: GREEN_FILL,
    BoothStatus.UPCOMING: None,
    BoothStatus.TODAY: YELLOW_FILL,
    BoothStatus.IN_PROGRESS: YELLOW_FILL,
    BoothStatus.NEEDS_DISTRIBUTION: RED_FILL,
}


def percent_of(part: float, total: float) -> float:
    """Fraction for PERCENT_FORMAT cells; 0 when there is no total"""
    return part / total if total else 0.0


# =============================================================================
# Main Output Functions
# =============================================================================

def write_recon_xlsx(output: io.BytesIO | Path, dataset: UnifiedDataset, now: datetime) -> None:
    """
    Write the reconciliation workbook.

    `now` is the local time used for booth distribution status.
    """
    wb = Workbook()
    wb.remove(wb.active)

    _create_summary_sheet(wb, dataset, now)
    _create_scouts_sheet(wb, dataset)
    _create_inventory_sheet(wb, dataset)
    _create_site_orders_sheet(wb, dataset)
    _create_booths_sheet(wb, dataset, now)
    _create_warnings_sheet(wb, dataset)

    if isinstance(output, io.BytesIO):
        wb.save(output)
        output.seek(0)
    else:
        wb.save(str(output))


def write_unified_json(output: Path, dataset: UnifiedDataset) -> None:
    output.write_text(json.dumps(dataset.to_dict(), indent=2, sort_keys=False), encoding="utf-8")


def output_filename(troop_number: str, when: datetime, ext: str = "xlsx") -> str:
    label = f"troop_{troop_number}" if troop_number else "troop"
    return f"cookie_recon_{label}_{when.strftime('%Y-%m-%d')}.{ext}"


# =============================================================================
# Summary Sheet
# =============================================================================

def _create_summary_sheet(wb: Workbook, dataset: UnifiedDataset, now: datetime):
    ws = wb.create_sheet("Summary")
    tt = dataset.troop_totals
    meta = dataset.metadata

    ws["A1"] = "Cookie Reconciliation Summary"
    ws["A1"].font = Font(bold=True, size=14)
    ws["A2"] = f"Troop: {meta.troop_number or 'Unknown'}"
    ws["A3"] = f"Generated: {now.strftime('%Y-%m-%d %H:%M')}"

    rows: List[tuple] = [
        ("Packages Received (C2T)", tt.ordered, None),
        ("Picked Up by Girls (T2G)", tt.girl_pickup, None),
        ("Returned by Girls (G2T)", tt.g2t, None),
        ("Troop Inventory On Hand", tt.inventory, None),
        ("Girl Inventory On Hand", tt.girl_inventory, None),
        ("Girl Delivery", tt.girl_delivery, None),
        ("Direct Ship", tt.direct_ship, None),
        ("Cookie Share", tt.donations, None),
        ("Booth Sales Credited", tt.booth_sales_packages, None),
        ("Pending Pickup (shortfall)", tt.pending_pickup, None),
        ("Revenue", tt.revenue, CURRENCY_FORMAT),
        ("Proceeds Rate", tt.proceeds_rate, RATE_FORMAT),
        ("Gross Proceeds", tt.gross_proceeds, CURRENCY_FORMAT),
        ("Exempt Deduction", tt.proceeds_deduction, CURRENCY_FORMAT),
        ("Troop Proceeds", tt.troop_proceeds, CURRENCY_FORMAT),
    ]

    row = 5
    ws[f"A{row}"] = "Troop Totals"
    ws[f"A{row}"].font = Font(bold=True)
    row += 1
    for label, value, fmt in rows:
        ws[f"A{row}"] = label
        ws[f"B{row}"] = value
        if fmt:
            ws[f"B{row}"].number_format = fmt
        row += 1

    row += 1
    ws[f"A{row}"] = "Scouts"
    ws[f"A{row}"].font = Font(bold=True)
    row += 1
    counts = tt.scouts
    for label, value in (("Total", counts.total), ("Active", counts.active), ("Inactive", counts.inactive)):
        ws[f"A{row}"] = label
        ws[f"B{row}"] = value
        row += 1
    ws[f"A{row}"] = "Active %"
    ws[f"B{row}"] = percent_of(counts.active, counts.total)
    ws[f"B{row}"].number_format = PERCENT_FORMAT
    row += 1
    ws[f"A{row}"] = "With Negative Inventory"
    ws[f"B{row}"] = counts.with_negative_inventory
    ws[f"B{row}"].fill = RED_FILL if counts.with_negative_inventory else GREEN_FILL
    row += 1

    row += 1
    ws[f"A{row}"] = "Checks"
    ws[f"A{row}"].font = Font(bold=True)
    row += 1
    cs = dataset.cookie_share
    ws[f"A{row}"] = "Cookie Share adjustment needed"
    ws[f"B{row}"] = cs.adjustment_needed
    ws[f"B{row}"].fill = GREEN_FILL if cs.reconciled else RED_FILL
    row += 1
    ws[f"A{row}"] = "Site orders unallocated"
    unallocated = sum(c.unallocated for c in _site_categories(dataset))
    ws[f"B{row}"] = unallocated
    ws[f"B{row}"].fill = RED_FILL if unallocated else GREEN_FILL
    row += 1
    ws[f"A{row}"] = "Booths needing distribution"
    pending_booths = count_booths_needing_distribution(dataset.booth_reservations, now)
    ws[f"B{row}"] = pending_booths
    ws[f"B{row}"].fill = YELLOW_FILL if pending_booths else GREEN_FILL
    row += 1
    for check, count in meta.health_checks.items():
        ws[f"A{row}"] = check
        ws[f"B{row}"] = count
        ws[f"B{row}"].fill = YELLOW_FILL if count else GREEN_FILL
        row += 1

    _auto_width(ws)


# =============================================================================
# Scouts Sheet
# =============================================================================

def _create_scouts_sheet(wb: Workbook, dataset: UnifiedDataset):
    ws = wb.create_sheet("Scouts")
    headers = ["Scout", "Orders", "Delivered", "Shipped", "Donations", "Credited",
               "Total Sold", "Picked Up", "On Hand", "Cash Collected", "Electronic",
               "Unsold Value", "Cash Owed", "Troop Proceeds", "ID Confidence"]
    row = _header_row(ws, 1, headers)

    for label, scout in dataset.scouts.items():
        t = scout.totals
        values: Sequence[Any] = [
            label, t.orders, t.delivered, t.shipped, t.donations, t.credited,
            t.total_sold, scout.inventory.total, t.inventory,
            t.financials.cash_collected, t.financials.electronic_payments,
            t.financials.unsold_value, t.financials.cash_owed, t.troop_proceeds,
            scout.id_confidence.value,
        ]
        for col, value in enumerate(values, 1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.border = THIN_BORDER
            if 10 <= col <= 14:
                cell.number_format = CURRENCY_FORMAT
        if scout.has_negative_inventory:
            ws.cell(row=row, column=9).fill = RED_FILL
        if scout.is_site_order:
            ws.cell(row=row, column=1).font = Font(italic=True)
        row += 1

    _auto_width(ws)


# =============================================================================
# Inventory Sheet
# =============================================================================

def _create_inventory_sheet(wb: Workbook, dataset: UnifiedDataset):
    ws = wb.create_sheet("Inventory")
    ws["A1"] = "Troop Inventory by Variety"
    ws["A1"].font = Font(bold=True, size=14)

    row = _header_row(ws, 3, ["Variety", "Sold", "Troop On Hand"])
    for cookie in PHYSICAL_COOKIE_TYPES:
        ws.cell(row=row, column=1, value=cookie.value)
        ws.cell(row=row, column=2, value=dataset.varieties.by_cookie.get(cookie, 0))
        on_hand = ws.cell(row=row, column=3, value=dataset.varieties.inventory.get(cookie, 0))
        if on_hand.value < 0:
            on_hand.fill = RED_FILL
        row += 1

    row += 1
    ws[f"A{row}"] = "Negative Inventory"
    ws[f"A{row}"].font = Font(bold=True)
    row = _header_row(ws, row + 1, ["Scout", "Variety", "Picked Up", "Sold", "Shortfall"])
    found = False
    for label, scout in dataset.scouts.items():
        for issue in scout.negative_inventory:
            found = True
            for col, value in enumerate(
                [label, issue.variety.value, issue.inventory, issue.sales, issue.shortfall], 1
            ):
                ws.cell(row=row, column=col, value=value).border = THIN_BORDER
            ws.cell(row=row, column=5).fill = RED_FILL
            row += 1
    if not found:
        ws.cell(row=row, column=1, value="No negative inventory")

    _auto_width(ws)


# =============================================================================
# Site Orders Sheet
# =============================================================================

def _site_categories(dataset: UnifiedDataset) -> List[SiteOrderCategory]:
    so = dataset.site_orders
    return [so.girl_delivery, so.direct_ship, so.booth_sale]


def _create_site_orders_sheet(wb: Workbook, dataset: UnifiedDataset):
    ws = wb.create_sheet("Site Orders")
    so = dataset.site_orders
    labels = [("Girl Delivery", so.girl_delivery), ("Direct Ship", so.direct_ship), ("Booth Sale", so.booth_sale)]

    row = _header_row(ws, 1, ["Category", "Total", "Allocated", "Unallocated", "Status"])
    for label, category in labels:
        ws.cell(row=row, column=1, value=label)
        ws.cell(row=row, column=2, value=category.total)
        ws.cell(row=row, column=3, value=category.allocated)
        ws.cell(row=row, column=4, value=category.unallocated)
        status = ws.cell(row=row, column=5, value="ALLOCATE" if category.has_warning else "OK")
        status.fill = RED_FILL if category.has_warning else GREEN_FILL
        row += 1

    row += 1
    row = _header_row(ws, row, ["Order", "Date", "Type", "Packages", "Allocated", "Unallocated"])
    for _, category in labels:
        for entry in category.orders:
            values = [entry.order_number, entry.date.isoformat() if entry.date else "",
                      entry.order_type.value, entry.packages, entry.allocated, entry.unallocated]
            for col, value in enumerate(values, 1):
                ws.cell(row=row, column=col, value=value).border = THIN_BORDER
            if entry.unallocated:
                ws.cell(row=row, column=6).fill = YELLOW_FILL
            row += 1

    _auto_width(ws)


# =============================================================================
# Booths Sheet
# =============================================================================

def _create_booths_sheet(wb: Workbook, dataset: UnifiedDataset, now: datetime):
    ws = wb.create_sheet("Booths")
    row = _header_row(ws, 1, ["Store", "Date", "Start", "End", "Type", "Packages", "Cookie Share", "Status"])
    for booth in dataset.booth_reservations:
        status = booth_status(booth, now)
        values = [booth.store_name, booth.date, booth.start_time, booth.end_time,
                  booth.reservation_type, booth.physical_packages, booth.tracked_cookie_share,
                  status.value.replace("_", " ").upper()]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value).border = THIN_BORDER
        fill = BOOTH_STATUS_FILLS.get(status)
        if fill is not None:
            ws.cell(row=row, column=8).fill = fill
        row += 1

    _auto_width(ws)


# =============================================================================
# Warnings Sheet
# =============================================================================

def _create_warnings_sheet(wb: Workbook, dataset: UnifiedDataset):
    ws = wb.create_sheet("Warnings")
    row = _header_row(ws, 1, ["Type", "Message", "Order", "Scout"])
    if not dataset.warnings:
        ws.cell(row=row, column=1, value="No warnings")
    for w in dataset.warnings:
        for col, value in enumerate([w.type.value, w.message, w.order_number, w.scout], 1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.border = THIN_BORDER
            cell.alignment = Alignment(wrap_text=col == 2)
        row += 1

    _auto_width(ws)


# =============================================================================
# Helpers
# =============================================================================

def _header_row(ws, row: int, headers: Sequence[str]) -> int:
    """Write a styled header row; returns the first data row"""
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
    return row + 1


def _auto_width(ws):
    """Auto-adjust column widths"""
    for column in ws.columns:
        max_length = 0
        column_letter = get_column_letter(column[0].column)
        for cell in column:
            if cell.value is not None:
                max_length = max(max_length, len(str(cell.value)))
        ws.column_dimensions[column_letter].width = min(max_length + 2, 50)
