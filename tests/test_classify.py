import pytest

from cookie_recon.classify import (
    classify_order_status, classify_order_type, classify_payment_method,
    classify_transfer_category, is_dc_auto_sync,
    matches_troop, parse_transfer_type,
)
from cookie_recon.models import (
    OrderStatusClass, OrderType, PaymentMethod, TransferCategory, TransferType,
)


class TestOrderStatus:
    @pytest.mark.parametrize("status,expected", [
        ("Needs Approval for Delivery", OrderStatusClass.NEEDS_APPROVAL),
        ("Status Delivered", OrderStatusClass.COMPLETED),
        ("Completed", OrderStatusClass.COMPLETED),
        ("Shipped", OrderStatusClass.COMPLETED),
        ("Approved for Delivery", OrderStatusClass.PENDING),
        ("Pending", OrderStatusClass.PENDING),
        ("Cancelled", OrderStatusClass.UNKNOWN),
        ("", OrderStatusClass.UNKNOWN),
        (None, OrderStatusClass.UNKNOWN),
    ])
    def test_classify(self, status, expected):
        assert classify_order_status(status) == expected


class TestOrderType:
    def test_shipped_wins(self):
        assert classify_order_type("Shipped with Donation") == OrderType.DIRECT_SHIP

    def test_donation_exact(self):
        assert classify_order_type("Donation") == OrderType.DONATION

    def test_cookies_in_hand_depends_on_owner(self):
        assert classify_order_type("Cookies in Hand") == OrderType.IN_HAND
        assert classify_order_type("Cookies in Hand", is_site_order=True) == OrderType.BOOTH

    @pytest.mark.parametrize("text", ["In-Person Delivery", "In Person Delivery with Donation", "Pick Up"])
    def test_delivery(self, text):
        assert classify_order_type(text) == OrderType.DELIVERY

    def test_unknown_is_none(self):
        assert classify_order_type("Carrier Pigeon") is None


class TestPaymentMethod:
    @pytest.mark.parametrize("status,expected", [
        ("CASH", PaymentMethod.CASH),
        ("cash", PaymentMethod.CASH),
        ("VENMO - CAPTURED", PaymentMethod.VENMO),
        ("CAPTURED", PaymentMethod.CREDIT_CARD),
        ("AUTHORIZED", PaymentMethod.CREDIT_CARD),
    ])
    def test_known(self, status, expected):
        assert classify_payment_method(status) == expected

    def test_unknown_is_not_credit_card(self):
        assert classify_payment_method("CHECK") is None
        assert classify_payment_method("") is None


class TestAutoSync:
    def test_shipped_card(self):
        assert is_dc_auto_sync("Shipped", "CAPTURED")

    def test_donation_card(self):
        assert is_dc_auto_sync("Donation", "CAPTURED")

    def test_cash_needs_manual_entry(self):
        assert not is_dc_auto_sync("Donation", "CASH")

    def test_delivery_needs_manual_entry(self):
        assert not is_dc_auto_sync("In-Person Delivery", "CAPTURED")


class TestTransferType:
    def test_exact(self):
        assert parse_transfer_type("T2G") == TransferType.T2G
        assert parse_transfer_type("C2T(P)") == TransferType.C2T_P

    def test_c2t_variant(self):
        assert parse_transfer_type("C2T-X") == TransferType.C2T

    def test_unknown(self):
        assert parse_transfer_type("XYZ") == TransferType.OTHER

    @pytest.mark.parametrize("value", ["3990", "Troop 3990", "T3990"])
    def test_matches_troop(self, value):
        assert matches_troop(value, "3990")

    def test_other_troop(self):
        assert not matches_troop("4000", "3990")
        assert not matches_troop("3990", "")


class TestTransferCategory:
    def test_c2t_p_same_as_c2t(self):
        assert classify_transfer_category(TransferType.C2T_P) == classify_transfer_category(TransferType.C2T)
        assert classify_transfer_category(TransferType.C2T) == TransferCategory.COUNCIL_TO_TROOP

    def test_t2t_direction(self):
        assert classify_transfer_category(TransferType.T2T, sender="3990", troop_number="3990") == \
            TransferCategory.TROOP_OUTGOING
        assert classify_transfer_category(TransferType.T2T, sender="4000", troop_number="3990") == \
            TransferCategory.COUNCIL_TO_TROOP

    def test_t2g_flags(self):
        assert classify_transfer_category(TransferType.T2G) == TransferCategory.GIRL_PICKUP
        assert classify_transfer_category(TransferType.T2G, virtual_booth=True, booth_divider=True) == \
            TransferCategory.VIRTUAL_BOOTH_ALLOCATION
        assert classify_transfer_category(TransferType.T2G, booth_divider=True) == \
            TransferCategory.BOOTH_SALES_ALLOCATION
        assert classify_transfer_category(TransferType.T2G, direct_ship_divider=True) == \
            TransferCategory.DIRECT_SHIP_ALLOCATION

    def test_cookie_share(self):
        assert classify_transfer_category(TransferType.COOKIE_SHARE) == TransferCategory.COOKIE_SHARE_RECORD
        assert classify_transfer_category(TransferType.COOKIE_SHARE_D, booth_divider=True) == \
            TransferCategory.BOOTH_COOKIE_SHARE

    def test_simple(self):
        assert classify_transfer_category(TransferType.G2T) == TransferCategory.GIRL_RETURN
        assert classify_transfer_category(TransferType.D) == TransferCategory.DC_ORDER_RECORD
        assert classify_transfer_category(TransferType.PLANNED) == TransferCategory.PLANNED
        assert classify_transfer_category(TransferType.OTHER) == TransferCategory.OTHER
