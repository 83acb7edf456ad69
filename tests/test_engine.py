import json
from dataclasses import FrozenInstanceError
from datetime import date, datetime

import pytest

from cookie_recon.adapters import import_allocations, import_orders, import_transfers
from cookie_recon.cookies import CookieType
from cookie_recon.engine import build_unified_dataset, name_scout_id, normalize_name, reconcile
from cookie_recon.models import IdConfidence, OrderSource, TransferCategory, WarningType
from cookie_recon.settings import ReconSettings

from .factories import TROOP, build_dc_row as dc_row, build_sc_record as sc_record

TM = CookieType.THIN_MINTS
TRE = CookieType.TREFOILS
CS = CookieType.COOKIE_SHARE

SITE = dict(first=f"Troop{TROOP}", last="Site")


def dataset(rows=(), records=(), allocation_data=None, settings=None):
    settings = settings or ReconSettings(troop_number=TROOP, proceeds_rate=0.90)
    return build_unified_dataset(list(rows), list(records), allocation_data, settings=settings,
                                 imported_at=datetime(2025, 3, 1, 9, 0))


def pickup(to, cookies, **kwargs):
    return sc_record("T2G", to=to, from_=TROOP, cookies=cookies, **kwargs)


# =============================================================================
# End-to-end scenarios
# =============================================================================

class TestScenarios:
    def test_delivery_without_pickup_is_negative(self):
        ds = dataset([dc_row(varieties={"Thin Mints": 2})])
        amy = ds.scouts["Amy Lee"]
        assert amy.totals.delivered == 2
        assert amy.inventory.total == 0
        assert amy.totals.inventory == 0
        assert [(i.variety, i.inventory, i.sales, i.shortfall) for i in amy.negative_inventory] == [(TM, 0, 2, 2)]
        assert amy.totals.inventory_display[TM] == -2
        assert ds.troop_totals.scouts.with_negative_inventory == 1
        assert ds.troop_totals.pending_pickup == 2

    def test_pickup_clears_shortfall(self):
        ds = dataset([dc_row(varieties={"Thin Mints": 2})], [pickup("Amy Lee", {TM: 2})])
        amy = ds.scouts["Amy Lee"]
        assert amy.inventory.total == 2
        assert amy.totals.inventory == 0
        assert amy.negative_inventory == ()
        assert ds.troop_totals.scouts.with_negative_inventory == 0

    def test_virtual_booth_credits_without_inventory(self):
        ds = dataset(
            [dc_row(varieties={"Thin Mints": 2})],
            [pickup("Amy Lee", {TM: 5}, virtual_booth=True, order_number="V1")],
        )
        amy = ds.scouts["Amy Lee"]
        assert amy.credited.virtual_booth.packages == 5
        assert amy.inventory.total == 0
        assert amy.totals.credited == 5
        assert amy.totals.total_sold == 7
        assert ds.troop_totals.virtual_booth_t2g == 5
        assert ds.troop_totals.girl_pickup == 0

    def test_unallocated_site_direct_ship(self):
        ds = dataset([dc_row(order_number="5001", order_type="Shipped", varieties={"Thin Mints": 3}, **SITE)])
        ds_cat = ds.site_orders.direct_ship
        assert (ds_cat.total, ds_cat.allocated, ds_cat.unallocated) == (3, 0, 3)
        assert ds_cat.has_warning
        assert ds.site_orders.has_warning
        site = ds.scouts[f"Troop{TROOP} Site"]
        assert site.is_site_order
        assert site.scout_id.startswith("site-")
        assert site.id_confidence == IdConfidence.HIGH
        assert ds.girl_scouts() == []

    def test_cash_donation_needs_manual_entry(self):
        ds = dataset([dc_row(payment="CASH", donation=4)])
        cs = ds.cookie_share
        assert (cs.dc_total, cs.dc_manual_entry, cs.sc_manual_entries) == (4, 4, 0)
        assert cs.adjustment_needed == 4
        assert not cs.reconciled
        assert ds.scouts["Amy Lee"].cookie_share.dc_manual_entry == 4

    def test_manual_cookie_share_entry_reconciles(self):
        ds = dataset(
            [dc_row(payment="CASH", donation=4)],
            [sc_record("COOKIE_SHARE", to="Amy Lee", cookies={CS: 4}, order_number="CS1")],
        )
        assert ds.cookie_share.reconciled

    def test_auto_synced_donations_excluded(self):
        ds = dataset(
            [dc_row(order_type="Donation", payment="CAPTURED", donation=3)],
            [sc_record("COOKIE_SHARE", to="Amy Lee", cookies={CS: 3}, order_number="D1001")],
        )
        cs = ds.cookie_share
        assert (cs.dc_total, cs.dc_manual_entry, cs.sc_manual_entries) == (3, 0, 0)
        assert cs.reconciled


# =============================================================================
# Determinism
# =============================================================================

def _mixed_inputs():
    s = ReconSettings(troop_number=TROOP, proceeds_rate=0.90)
    rows = [
        dc_row(order_number="1001", varieties={"Thin Mints": 2}, date="2025-01-10"),
        dc_row(order_number="1002", first="Zoe", last="Adams", varieties={"Trefoils": 3}, payment="CASH"),
        dc_row(order_number="1003", donation=2, payment="CASH", date="2025-01-12"),
        dc_row(order_number="S1", varieties={"Thin Mints": 3}, **SITE),
    ]
    records = [
        sc_record("C2T", to=TROOP, from_="Council", cookies={TM: 24, TRE: 12}, order_number="C1"),
        pickup("Amy Lee", {TM: 4}, order_number="T1", date="2025-01-11"),
        pickup("Zoe Adams", {TRE: 2}, order_number="T2"),
        pickup("Zoe Adams", {TM: 3}, virtual_booth=True, order_number="V1"),
        sc_record("G2T", to=TROOP, from_="Amy Lee", cookies={TM: 1}, order_number="G1"),
    ]
    allocation_data = {"boothDividers": [{
        "reservationId": "R1",
        "divider": {"girls": [{"id": 7, "first_name": "Zoe", "last_name": "Adams",
                               "cookies": [{"id": 4, "quantity": 2}]}]},
    }]}
    orders = import_orders(rows, s)
    transfers = import_transfers(records, s)
    allocs = import_allocations(allocation_data)
    return s, orders, transfers, allocs


class TestDeterminism:
    def test_same_input_same_output(self):
        s, orders, transfers, allocs = _mixed_inputs()
        first = reconcile(orders, transfers, allocs.allocations, settings=s, girl_names=allocs.girl_names)
        second = reconcile(orders, transfers, allocs.allocations, settings=s, girl_names=allocs.girl_names)
        assert first.to_dict() == second.to_dict()

    def test_input_order_does_not_matter(self):
        s, orders, transfers, allocs = _mixed_inputs()
        forward = reconcile(orders, transfers, allocs.allocations, settings=s, girl_names=allocs.girl_names)
        backward = reconcile(
            list(reversed(orders)), list(reversed(transfers)), list(reversed(allocs.allocations)),
            settings=s, girl_names=allocs.girl_names,
        )
        assert forward.to_dict() == backward.to_dict()

    def test_inventory_conserved_or_flagged(self):
        s, orders, transfers, allocs = _mixed_inputs()
        ds = reconcile(orders, transfers, allocs.allocations, settings=s, girl_names=allocs.girl_names)
        for scout in ds.girl_scouts():
            flagged = {i.variety: i.shortfall for i in scout.negative_inventory}
            for cookie, net in scout.totals.inventory_display.items():
                assert net >= 0 or flagged[cookie] == -net

    def test_dataset_is_read_only(self):
        ds = dataset([dc_row(varieties={"Thin Mints": 2})])
        with pytest.raises(FrozenInstanceError):
            ds.troop_totals.ordered = 10
        with pytest.raises(TypeError):
            ds.scouts["Someone"] = ds.scouts["Amy Lee"]

    def test_empty_inputs(self):
        ds = dataset()
        assert dict(ds.scouts) == {}
        assert not ds.has_transfer_data
        assert ds.troop_totals.inventory == 0
        assert ds.metadata.last_import_dc is None
        assert ds.cookie_share.reconciled


# =============================================================================
# Scouts
# =============================================================================

class TestScouts:
    def test_alphabetical(self):
        ds = dataset([
            dc_row(order_number="1", first="Zoe", last="Adams"),
            dc_row(order_number="2", first="Amy", last="Lee"),
        ])
        assert list(ds.scouts) == ["Amy Lee", "Zoe Adams"]

    def test_name_variants_merge(self):
        ds = dataset([dc_row(varieties={"Thin Mints": 2})], [pickup("amy  lee", {TM: 2})])
        assert list(ds.scouts) == ["Amy Lee"]
        assert ds.scouts["Amy Lee"].inventory.total == 2

    def test_name_based_id(self):
        ds = dataset([dc_row()])
        amy = ds.scouts["Amy Lee"]
        assert amy.scout_id == name_scout_id("Amy Lee")
        assert amy.scout_id.startswith("name-")
        assert amy.id_confidence == IdConfidence.LOW
        assert ds.scout_by_id(amy.scout_id) is amy
        assert normalize_name("  AMY   Lee ") == "amy lee"

    def test_girl_id_from_divider(self):
        ds = dataset(
            [dc_row()],
            allocation_data={"directShipDivider": {"girls": [
                {"id": 42, "first_name": "Amy", "last_name": "Lee", "cookies": [{"id": 4, "quantity": 1}]},
            ]}},
        )
        amy = ds.scouts["Amy Lee"]
        assert amy.scout_id == "girl-42"
        assert amy.id_confidence == IdConfidence.HIGH
        assert amy.girl_id == 42
        assert amy.credited.direct_ship.packages == 1

    def test_same_name_girls_stay_separate(self):
        ds = dataset(
            [dc_row(varieties={"Thin Mints": 1})],
            allocation_data={"boothDividers": [{"reservationId": "R1", "divider": {"girls": [
                {"id": 2, "first_name": "Amy", "last_name": "Lee", "cookies": [{"id": 4, "quantity": 5}]},
                {"id": 1, "first_name": "Amy", "last_name": "Lee", "cookies": [{"id": 4, "quantity": 3}]},
            ]}}]},
        )
        assert list(ds.scouts) == ["Amy Lee", "Amy Lee (2)"]
        first, second = ds.scouts["Amy Lee"], ds.scouts["Amy Lee (2)"]
        assert (first.scout_id, second.scout_id) == ("girl-1", "girl-2")
        assert first.credited.booth_sales.packages == 3
        assert second.credited.booth_sales.packages == 5
        # A DC order carries only a name; it goes to the lowest girl id
        assert first.totals.orders == 1
        assert second.totals.orders == 0
        assert ds.scout_by_id("girl-2") is second

    def test_divider_only_scout_is_listed(self):
        ds = dataset(allocation_data={"virtualCookieShares": [
            {"girls": [{"id": 5, "first_name": "Bea", "last_name": "Ray", "quantity": 2}]},
        ]})
        bea = ds.scouts["Bea Ray"]
        assert bea.cookie_share.sc_entered == 2
        assert not bea.is_active
        assert ds.troop_totals.scouts.inactive == 1

    def test_cookie_share_never_in_inventory(self):
        ds = dataset([], [pickup("Amy Lee", {TM: 2, CS: 3})])
        amy = ds.scouts["Amy Lee"]
        assert amy.inventory.total == 2
        assert CS not in amy.inventory.varieties
        assert ds.troop_totals.girl_pickup == 2
        assert ds.troop_totals.donations == 3

    def test_returns_reduce_inventory(self):
        ds = dataset([], [
            pickup("Amy Lee", {TM: 5}),
            sc_record("G2T", to=TROOP, from_="Amy Lee", cookies={TM: 2}),
        ])
        assert ds.scouts["Amy Lee"].inventory.total == 3

    def test_order_status_counts(self):
        ds = dataset([
            dc_row(order_number="1", status="Completed"),
            dc_row(order_number="2", status="Needs Approval"),
            dc_row(order_number="3", status="Completed"),
        ])
        counts = ds.scouts["Amy Lee"].totals.order_status_counts
        assert {k.value: v for k, v in counts.items()} == {"needs_approval": 1, "completed": 2}

    def test_financials(self):
        ds = dataset(
            [
                dc_row(order_number="1001", payment="CASH", varieties={"Thin Mints": 2}),
                dc_row(order_number="1002", payment="CAPTURED", varieties={"Thin Mints": 1}),
            ],
            [pickup("Amy Lee", {TM: 4})],
        )
        f = ds.scouts["Amy Lee"].totals.financials
        assert f.cash_collected == pytest.approx(12.0)
        assert f.electronic_payments == pytest.approx(6.0)
        assert f.inventory_value == pytest.approx(24.0)
        assert f.unsold_value == pytest.approx(6.0)
        assert f.cash_owed == pytest.approx(18.0)

    def test_inventory_value_nets_negative_varieties(self):
        ds = dataset([], [
            pickup("Amy Lee", {TM: 2}),
            sc_record("G2T", to=TROOP, from_="Amy Lee", cookies={TRE: 1}),
        ])
        amy = ds.scouts["Amy Lee"]
        assert dict(amy.inventory.varieties) == {TM: 2, TRE: -1}
        assert amy.totals.financials.inventory_value == pytest.approx(6.0)
        assert amy.totals.financials.cash_owed == pytest.approx(6.0)


# =============================================================================
# Proceeds
# =============================================================================

class TestProceeds:
    def test_fixed_rate_with_exemption(self):
        ds = dataset(
            [dc_row(varieties={"Thin Mints": 60})],
            [sc_record("C2T", to=TROOP, from_="Council", cookies={TM: 60})],
        )
        amy = ds.scouts["Amy Lee"]
        assert amy.totals.proceeds_deduction == pytest.approx(45.0)
        assert amy.totals.troop_proceeds == pytest.approx(9.0)
        tt = ds.troop_totals
        assert tt.proceeds_rate == pytest.approx(0.90)
        assert tt.gross_proceeds == pytest.approx(54.0)
        assert tt.proceeds_exempt_packages == 50
        assert tt.troop_proceeds == pytest.approx(9.0)

    def test_small_seller_fully_exempt(self):
        ds = dataset([dc_row(varieties={"Thin Mints": 10})])
        assert ds.scouts["Amy Lee"].totals.troop_proceeds == pytest.approx(0.0)

    @pytest.mark.parametrize("packages,rate", [(2, 0.85), (200, 0.90), (400, 0.95)])
    def test_tiered_rate(self, packages, rate):
        s = ReconSettings(troop_number=TROOP, proceeds_rate=None)
        ds = dataset([
            dc_row(order_number="1", varieties={"Thin Mints": packages}),
            dc_row(order_number="2", first="Zoe", last="Adams", status="Pending"),
        ], settings=s)
        # Zoe sold nothing, so only Amy counts toward the per-girl average
        assert ds.troop_totals.proceeds_rate == pytest.approx(rate)


# =============================================================================
# Troop totals
# =============================================================================

class TestTroopTotals:
    def test_inventory_flow(self):
        ds = dataset([], [
            sc_record("C2T", to=TROOP, from_="Council", cookies={TM: 100}, order_number="C1"),
            pickup("Amy Lee", {TM: 10}, order_number="T1"),
            sc_record("G2T", to=TROOP, from_="Amy Lee", cookies={TM: 2}, order_number="G1"),
            pickup("Amy Lee", {TM: 5}, virtual_booth=True, order_number="V1"),
            sc_record("T2T", to="4000", from_=TROOP, cookies={TM: 3}, order_number="X1"),
            sc_record("PLANNED", to=TROOP, cookies={TM: 50}, order_number="P1"),
        ])
        tt = ds.troop_totals
        assert (tt.ordered, tt.girl_pickup, tt.g2t, tt.virtual_booth_t2g, tt.troop_outgoing) == (100, 10, 2, 5, 3)
        assert tt.inventory == 84
        assert ds.varieties.inventory[TM] == 84
        assert tt.girl_inventory == 8
        assert ds.metadata.transfer_count == 6
        assert len(ds.transfers) == 6
        assert [t.order_number for t in ds.transfer_breakdowns.c2t] == ["C1"]
        assert ds.transfer_breakdowns.totals["t2t_out"] == 3

    def test_direct_ship_divider_does_not_move_troop_stock(self):
        ds = dataset([], [
            sc_record("C2T", to=TROOP, from_="Council", cookies={TM: 10}),
            pickup("Amy Lee", {TM: 4}, direct_ship_divider=True),
        ])
        assert ds.troop_totals.direct_ship_divider_t2g == 4
        assert ds.troop_totals.inventory == 10
        assert ds.varieties.inventory[TM] == 10

    def test_planned_never_counts(self):
        ds = dataset([], [sc_record("PLANNED", to=TROOP, cookies={TM: 50})])
        assert ds.troop_totals.ordered == 0
        assert ds.has_transfer_data
        assert ds.transfers[0].category == TransferCategory.PLANNED

    def test_breakdowns_newest_first(self):
        ds = dataset([], [
            pickup("Amy Lee", {TM: 1}, order_number="T1", date="2025-01-01"),
            pickup("Amy Lee", {TM: 1}, order_number="T2", date="2025-02-01"),
        ])
        assert [t.order_number for t in ds.transfer_breakdowns.t2g] == ["T2", "T1"]

    def test_varieties_sold(self):
        ds = dataset([
            dc_row(order_number="1", varieties={"Thin Mints": 2}),
            dc_row(order_number="2", order_type="Shipped", varieties={"Trefoils": 1}),
        ])
        assert dict(ds.varieties.by_cookie) == {TM: 2, TRE: 1}
        assert ds.varieties.total == 3

    def test_metadata(self):
        ds = dataset([dc_row()], [])
        assert ds.metadata.troop_number == TROOP
        assert ds.metadata.last_import_dc == datetime(2025, 3, 1, 9, 0)
        assert ds.metadata.last_import_sc is None
        assert ds.metadata.order_count == 1

    def test_troop_number_inferred(self):
        s = ReconSettings(troop_number="", proceeds_rate=0.90)
        ds = dataset([], [sc_record("C2T", to="5150", from_="Council", cookies={TM: 1})], settings=s)
        assert ds.metadata.troop_number == "5150"


# =============================================================================
# Site orders
# =============================================================================

class TestSiteOrders:
    def test_virtual_booth_fifo(self):
        ds = dataset(
            [
                dc_row(order_number="S2", varieties={"Thin Mints": 4}, date="2025-01-12", **SITE),
                dc_row(order_number="S1", varieties={"Thin Mints": 3}, date="2025-01-10", **SITE),
            ],
            [pickup("Amy Lee", {TM: 5}, virtual_booth=True)],
        )
        gd = ds.site_orders.girl_delivery
        assert (gd.total, gd.allocated, gd.unallocated, gd.has_warning) == (7, 5, 2, True)
        assert [(e.order_number, e.allocated, e.unallocated) for e in gd.orders] == [
            ("S1", 3, 0), ("S2", 2, 2),
        ]
        assert gd.orders[0].date == date(2025, 1, 10)

    def test_direct_ship_matched_by_order(self):
        ds = dataset(
            [dc_row(order_number="5001", order_type="Shipped", varieties={"Thin Mints": 3}, **SITE)],
            allocation_data={"directShipDivider": [{"orderId": "D5001", "divider": {"girls": [
                {"id": 1, "first_name": "Amy", "last_name": "Lee", "cookies": [{"id": 4, "quantity": 3}]},
            ]}}]},
        )
        cat = ds.site_orders.direct_ship
        assert (cat.allocated, cat.unallocated, cat.has_warning) == (3, 0, False)
        assert cat.orders[0].allocated == 3
        amy = ds.scouts["Amy Lee"]
        assert amy.credited.direct_ship.packages == 3
        assert amy.totals.total_sold == 3

    def test_booth_sales(self):
        ds = dataset(
            [dc_row(order_number="B1", order_type="Cookies in Hand", varieties={"Thin Mints": 6}, **SITE)],
            allocation_data={"boothDividers": [{"reservationId": "R1", "divider": {"girls": [
                {"id": 1, "first_name": "Amy", "last_name": "Lee", "cookies": [{"id": 4, "quantity": 6}]},
            ]}}]},
        )
        cat = ds.site_orders.booth_sale
        assert (cat.total, cat.allocated, cat.has_warning) == (6, 6, False)
        assert ds.troop_totals.booth_sales_packages == 6

    def test_site_orders_not_girl_delivery(self):
        ds = dataset([dc_row(order_number="S1", varieties={"Thin Mints": 3}, **SITE)])
        assert ds.troop_totals.girl_delivery == 0
        assert ds.scouts[f"Troop{TROOP} Site"].negative_inventory == ()


# =============================================================================
# Warnings
# =============================================================================

class TestOrderSources:
    def test_dc_only_by_default(self):
        ds = dataset([dc_row()])
        assert ds.scouts["Amy Lee"].orders[0].sources == (OrderSource.DC,)
        assert ds.sc_only_orders == ()

    def test_d_record_joins_dc_order(self):
        ds = dataset(
            [dc_row(order_number="1001", varieties={"Thin Mints": 2})],
            [sc_record("D", to="Amy Lee", order_number="D1001", cookies={TM: 2})],
        )
        order = ds.scouts["Amy Lee"].orders[0]
        assert order.sources == (OrderSource.DC, OrderSource.SC)
        assert ds.sc_only_orders == ()
        assert WarningType.SC_ONLY_ORDER not in {w.type for w in ds.warnings}

    def test_sc_only_order_surfaced(self):
        ds = dataset(
            [dc_row(order_number="1001")],
            [sc_record("D", to="Amy Lee", order_number="D2002", cookies={TM: 1})],
        )
        assert [t.order_number for t in ds.sc_only_orders] == ["D2002"]
        assert ds.scouts["Amy Lee"].orders[0].sources == (OrderSource.DC,)
        sc_only = [w for w in ds.warnings if w.type == WarningType.SC_ONLY_ORDER]
        assert [(w.order_number, w.scout) for w in sc_only] == [("D2002", "Amy Lee")]
        assert ds.metadata.health_checks["SC_ONLY_ORDER"] == 1

        data = ds.to_dict()
        assert data["sc_only_orders"][0]["order_number"] == "D2002"
        assert data["scouts"]["Amy Lee"]["orders"][0]["sources"] == ["DC"]


class TestWarnings:
    def test_non_finite_input_still_serializes(self):
        row = dc_row(payment="CASH", amount="nan", varieties={"Thin Mints": 2})
        row["Trefoils"] = "1e999"
        ds = dataset([row], [pickup("Amy Lee", {TM: 2})])
        amy = ds.scouts["Amy Lee"]
        assert amy.orders[0].amount == 0.0
        assert dict(amy.orders[0].varieties) == {TM: 2}
        json.dumps(ds.to_dict(), allow_nan=False)

    def test_unmatched_allocation(self):
        ds = dataset(allocation_data={"boothDividers": [{"reservationId": "R1", "divider": {"girls": [
            {"cookies": [{"id": 4, "quantity": 2}]},
        ]}}]})
        assert [w.type for w in ds.warnings] == [WarningType.UNMATCHED_ALLOCATION]
        assert ds.metadata.health_checks["UNMATCHED_ALLOCATION"] == 1
        assert ds.metadata.health_checks["UNKNOWN_ORDER_TYPE"] == 0

    def test_import_warnings_carried(self):
        ds = dataset([dc_row(order_type="Carrier Pigeon")], [sc_record("XYZ")])
        types = {w.type for w in ds.warnings}
        assert types == {WarningType.UNKNOWN_ORDER_TYPE, WarningType.UNKNOWN_TRANSFER_TYPE}
