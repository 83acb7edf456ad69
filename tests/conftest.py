import pytest

from cookie_recon.settings import ReconSettings

from .factories import TROOP, build_dc_row, build_sc_record


@pytest.fixture
def settings() -> ReconSettings:
    return ReconSettings(troop_number=TROOP, proceeds_rate=0.90, proceeds_exempt_packages=50)


@pytest.fixture
def dc_row():
    return build_dc_row


@pytest.fixture
def sc_record():
    return build_sc_record
