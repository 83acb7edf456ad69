from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

# NOTE:
# - Every value can be overridden with an environment variable.
#
# Suggested env overrides:
#   RECON_TROOP_NUMBER     (e.g. 3990; inferred from the first C2T recipient when blank)
#   RECON_SITE_LAST_NAME   (DC last name used for troop-level orders)
#   RECON_PROCEEDS_RATE    (e.g. 0.90; blank means tiered by per-girl average)
#   RECON_PROCEEDS_EXEMPT  (int)
#   RECON_TIMEZONE         (e.g. US/Pacific)
#   RECON_INPUT_DIR
#   RECON_OUTPUT_DIR


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass(frozen=True)
class ReconSettings:
    # Troop identifier as it appears in SC "to"/"from" fields
    troop_number: str = os.environ.get("RECON_TROOP_NUMBER", "")

    # DC marks troop-level (site) orders with this last name, first name "Troop<number>"
    site_last_name: str = os.environ.get("RECON_SITE_LAST_NAME", "Site")

    # Proceeds: fixed rate per package, or None to pick the tier from the per-girl average
    proceeds_rate: Optional[float] = _optional_float(os.environ.get("RECON_PROCEEDS_RATE"))
    proceeds_exempt_packages: int = int(os.environ.get("RECON_PROCEEDS_EXEMPT", "50"))

    # Local timezone used for booth status and import timestamps
    timezone: str = os.environ.get("RECON_TIMEZONE", "US/Pacific")

    # Snapshot folder (dc-export.xlsx, sc-*.json) and report output folder
    input_dir: str = os.environ.get("RECON_INPUT_DIR", os.path.join(".", "data", "current"))
    output_dir: str = os.environ.get("RECON_OUTPUT_DIR", os.path.join(".", "data", "out"))


DEFAULT_SETTINGS = ReconSettings()
