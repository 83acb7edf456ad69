from datetime import date, datetime

import pytest
import pytz

from cookie_recon.booths import (
    booth_status, count_booths_needing_distribution, local_now,
    parse_local_date, parse_time_to_minutes,
)
from cookie_recon.models import BoothReservation, BoothStatus
from cookie_recon.settings import ReconSettings


def booth(**kwargs):
    defaults = dict(id="r1", store_name="Market", date="2025-02-14", start_time="11:00 AM", end_time="1:00 PM")
    defaults.update(kwargs)
    return BoothReservation(**defaults)


class TestTimeParsing:
    @pytest.mark.parametrize("value,expected", [
        ("16:00", 960),
        ("09:30:00", 570),
        ("4:00 PM", 960),
        ("12:00 PM", 720),
        ("12:15 am", 15),
        ("bogus", None),
        ("", None),
        (None, None),
    ])
    def test_parse_time(self, value, expected):
        assert parse_time_to_minutes(value) == expected

    def test_parse_local_date(self):
        assert parse_local_date("2025-02-14") == date(2025, 2, 14)
        assert parse_local_date("2025-02-14T00:00:00Z") == date(2025, 2, 14)
        assert parse_local_date("2025-02-30") is None
        assert parse_local_date("") is None


class TestBoothStatus:
    def test_distributed_is_terminal(self):
        assert booth_status(booth(is_distributed=True), datetime(2025, 1, 1)) == BoothStatus.DISTRIBUTED

    def test_upcoming(self):
        assert booth_status(booth(), datetime(2025, 2, 13, 12, 0)) == BoothStatus.UPCOMING

    def test_today_before_start(self):
        assert booth_status(booth(), datetime(2025, 2, 14, 10, 0)) == BoothStatus.TODAY

    def test_in_progress(self):
        assert booth_status(booth(), datetime(2025, 2, 14, 12, 0)) == BoothStatus.IN_PROGRESS

    def test_ended_needs_distribution(self):
        assert booth_status(booth(), datetime(2025, 2, 14, 13, 30)) == BoothStatus.NEEDS_DISTRIBUTION

    def test_past_day(self):
        assert booth_status(booth(), datetime(2025, 2, 20, 9, 0)) == BoothStatus.NEEDS_DISTRIBUTION

    def test_no_end_time_same_day(self):
        assert booth_status(booth(end_time=""), datetime(2025, 2, 14, 23, 0)) == BoothStatus.IN_PROGRESS

    def test_missing_date(self):
        assert booth_status(booth(date=""), datetime(2025, 2, 14)) == BoothStatus.NEEDS_DISTRIBUTION

    def test_local_date_not_utc(self):
        # 23:30 Pacific on the 13th is already the 14th in UTC
        now = pytz.timezone("US/Pacific").localize(datetime(2025, 2, 13, 23, 30))
        assert booth_status(booth(), now) == BoothStatus.UPCOMING

    def test_count_skips_virtual(self):
        now = datetime(2025, 3, 1)
        reservations = [
            booth(id="a"),
            booth(id="b", reservation_type="Virtual"),
            booth(id="c", is_distributed=True),
        ]
        assert count_booths_needing_distribution(reservations, now) == 1


def test_local_now_uses_timezone():
    now = local_now(ReconSettings(timezone="US/Eastern"))
    assert now.tzinfo is not None
    assert now.tzinfo.zone == "US/Eastern"
