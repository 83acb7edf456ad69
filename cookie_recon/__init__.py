"""Cookie reconciliation package.

Merges a Digital Cookie order export and Smart Cookie transfer data into one
UnifiedDataset. Library use:

    from cookie_recon import build_unified_dataset
    dataset = build_unified_dataset(dc_rows, sc_orders, allocation_data)

Or run against a snapshot folder:

    cookie-recon --input ./data/current --output ./data/out
"""
from __future__ import annotations

from .adapters import allocations_from_transfers, import_allocations, import_orders, import_transfers
from .booths import booth_status, count_booths_needing_distribution
from .classify import classify_order_status
from .engine import build_unified_dataset, reconcile
from .models import UnifiedDataset
from .settings import DEFAULT_SETTINGS, ReconSettings

__all__ = [
    "DEFAULT_SETTINGS",
    "ReconSettings",
    "UnifiedDataset",
    "allocations_from_transfers",
    "booth_status",
    "build_unified_dataset",
    "classify_order_status",
    "count_booths_needing_distribution",
    "import_allocations",
    "import_orders",
    "import_transfers",
    "reconcile",
]
