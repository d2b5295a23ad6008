import pytest

from klroute.station_matcher import StationMatcher
from network_helpers import build_test_catalog


@pytest.fixture
def catalog():
    return build_test_catalog()


@pytest.fixture
def matcher(catalog):
    return StationMatcher(catalog)
