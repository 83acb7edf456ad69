"""
Snapshot loading.

A snapshot directory holds the files the scrapers saved for one sync:

    dc-export.xlsx (or .csv)      Digital Cookie order export
    sc-orders.json                SC /orders/search response
    sc-direct-ship.json           Direct ship divider
    sc-booth-allocations.json     Booth dividers
    sc-reservations.json          Booth reservations
    sc-virtual-cookie-shares.json Manual virtual Cookie Share entries
    sc-cookie-id-map.json         Season cookie id → name map

Missing files mean "no data yet" and are treated as empty.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .adapters import DigitalCookieAdapter, SmartCookieAdapter
from .engine import build_unified_dataset
from .models import UnifiedDataset
from .settings import DEFAULT_SETTINGS, ReconSettings

logger = logging.getLogger(__name__)

DC_EXPORT_NAMES = ["dc-export.xlsx", "dc-export.xls", "dc-export.csv"]
SC_ORDERS_FILE = "sc-orders.json"

# file name → key in the allocation payload
ALLOCATION_FILES: Dict[str, str] = {
    "sc-direct-ship.json": "directShipDivider",
    "sc-booth-allocations.json": "boothDividers",
    "sc-reservations.json": "reservations",
    "sc-virtual-cookie-shares.json": "virtualCookieShares",
    "sc-cookie-id-map.json": "cookieIdMap",
}


@dataclass
class Snapshot:
    dc_rows: pd.DataFrame = field(default_factory=pd.DataFrame)
    sc_orders: Any = None
    allocation_data: Dict[str, Any] = field(default_factory=dict)
    files: List[Path] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.dc_rows.empty and not self.sc_orders and not self.allocation_data


def find_dc_export(root: Path, adapter: DigitalCookieAdapter) -> Optional[Path]:
    for name in DC_EXPORT_NAMES:
        p = root / name
        if p.is_file():
            return p
    # Fall back to the newest export-looking file, e.g. "DC_Orders_2025-02-01.xlsx"
    candidates = [p for p in root.iterdir() if p.is_file() and p.name.lower().startswith("dc") and adapter.can_handle(p)]
    return max(candidates, key=lambda p: p.stat().st_mtime) if candidates else None


def load_snapshot(input_dir: Path | str, settings: ReconSettings = DEFAULT_SETTINGS) -> Snapshot:
    root = Path(input_dir)
    snap = Snapshot()
    if not root.exists():
        logger.warning("Snapshot folder not found: %s", root)
        return snap

    dc_adapter = DigitalCookieAdapter(settings)
    dc_path = find_dc_export(root, dc_adapter)
    if dc_path is not None:
        snap.dc_rows = dc_adapter.read(dc_path)
        snap.files.append(dc_path)

    json_reader = SmartCookieAdapter(settings)
    orders_path = root / SC_ORDERS_FILE
    if orders_path.is_file():
        snap.sc_orders = json_reader.read(orders_path)
        snap.files.append(orders_path)

    for name, key in ALLOCATION_FILES.items():
        path = root / name
        if not path.is_file():
            continue
        payload = json_reader.read(path)
        if payload is None:
            continue
        snap.allocation_data[key] = payload
        snap.files.append(path)

    logger.info("Loaded %d snapshot files from %s", len(snap.files), root)
    return snap


def reconcile_snapshot(
    input_dir: Path | str,
    settings: ReconSettings = DEFAULT_SETTINGS,
    imported_at: Optional[datetime] = None,
) -> UnifiedDataset:
    snap = load_snapshot(input_dir, settings)
    if snap.is_empty:
        logger.warning("No snapshot data in %s; the dataset will be empty", input_dir)
    return build_unified_dataset(
        snap.dc_rows,
        snap.sc_orders,
        snap.allocation_data,
        settings=settings,
        imported_at=imported_at,
    )
