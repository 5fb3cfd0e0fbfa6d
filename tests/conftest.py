"""
Shared test configuration and fixtures.
"""

import pytest

from infrastructure.cache.rate_cache import ExchangeRateCache
from infrastructure.providers import StaticRateProvider


class FixedRates:
    """USD-relative rate table following the same relative-rate rules as the cache."""

    def __init__(self, rates):
        self.rates = {'USD': 1.0, **rates}

    def get_rate(self, currency, relative_to=None):
        rate = self.rates[str(currency)]
        if relative_to is None:
            return rate
        if str(relative_to) == str(currency):
            return 1.0
        comparison = self.rates[str(relative_to)]
        return rate / comparison if comparison else 0.0


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def simple_rates():
    """Binary-exact rates, so expected amounts can be written down directly."""
    return FixedRates({'EUR': 2.0, 'GBP': 4.0, 'JPY': 0.0078125})


@pytest.fixture
def scenario_rates():
    # USD -> EUR 0.908, EUR -> INR 70.2, INR -> JPY 117.3
    eur = 1 / 0.908
    inr = eur / 70.2
    jpy = inr / 117.3
    return FixedRates({'EUR': eur, 'INR': inr, 'JPY': jpy})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def static_provider():
    return StaticRateProvider({'EUR': 1.1, 'GBP': 1.25, 'JPY': 0.0075})


@pytest.fixture
def rate_cache(static_provider, clock):
    cache = ExchangeRateCache(
        fetcher=static_provider,
        currencies=['EUR', 'GBP', 'JPY'],
        refresh_interval=60,
        max_workers=2,
        clock=clock,
    )
    yield cache
    cache.close()
