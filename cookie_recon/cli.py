from __future__ import annotations

import argparse
import io
import logging
import sys
from datetime import datetime
from pathlib import Path

from .booths import local_now
from .outputs import output_filename, write_recon_xlsx, write_unified_json
from .settings import DEFAULT_SETTINGS
from .snapshot import reconcile_snapshot


def run(input_dir: Path, output_dir: Path, write_json: bool = True) -> int:
    s = DEFAULT_SETTINGS
    if not input_dir.is_dir():
        print(f"ERROR: snapshot folder not found: {input_dir}", file=sys.stderr)
        return 1

    now: datetime = local_now(s)
    dataset = reconcile_snapshot(input_dir, s, imported_at=now)

    output_dir.mkdir(parents=True, exist_ok=True)
    bio = io.BytesIO()
    write_recon_xlsx(bio, dataset, now)
    xlsx_path = output_dir / output_filename(dataset.metadata.troop_number, now)
    xlsx_path.write_bytes(bio.getvalue())
    print(f"Wrote: {xlsx_path}")

    if write_json:
        json_path = output_dir / "unified.json"
        write_unified_json(json_path, dataset)
        print(f"Wrote: {json_path}")

    tt = dataset.troop_totals
    print(
        f"Scouts: {tt.scouts.total} ({tt.scouts.active} active), "
        f"negative inventory: {tt.scouts.with_negative_inventory}, "
        f"warnings: {len(dataset.warnings)}"
    )
    return 0


def main(argv=None):
    s = DEFAULT_SETTINGS
    ap = argparse.ArgumentParser(prog="cookie-recon", description="Reconcile Digital Cookie and Smart Cookie snapshots")
    ap.add_argument("--input", default=s.input_dir, help="snapshot folder (dc-export.xlsx, sc-*.json)")
    ap.add_argument("--output", default=s.output_dir, help="folder for the workbook and unified.json")
    ap.add_argument("--no-json", action="store_true", help="skip writing unified.json")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return run(Path(args.input), Path(args.output), write_json=not args.no_json)


if __name__ == "__main__":
    sys.exit(main())
