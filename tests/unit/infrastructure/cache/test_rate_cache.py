# nosec B101


import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest

from config.settings import Settings
from domain.exceptions.currency import (
    CacheError,
    HostUnreachableError,
    InvalidCurrencyError,
    ProviderError,
)
from domain.models.currency import RefreshOutcome
from domain.models.money import CurrencyValue
from infrastructure.cache.rate_cache import ExchangeRateCache, get_rate_cache
from infrastructure.providers import StaticRateProvider


class BlockingFetcher:
    """Holds sweep workers until released; fetches from any other thread go straight through."""

    name = 'blocking'

    def __init__(self, rates):
        self.rates = rates
        self.release = threading.Event()
        self.calls = []

    def fetch_rate(self, code):
        if threading.current_thread().name.startswith('rate-fetch'):
            self.release.wait(timeout=5)
        self.calls.append((threading.current_thread().name, code))
        return self.rates[code]

    def close(self):
        self.release.set()


@pytest.fixture
def make_cache(clock):
    caches = []

    def _make(fetcher, currencies, **kwargs):
        cache = ExchangeRateCache(
            fetcher=fetcher,
            currencies=currencies,
            refresh_interval=kwargs.pop('refresh_interval', 60),
            clock=clock,
            **kwargs,
        )
        caches.append(cache)
        return cache

    yield _make
    for cache in caches:
        cache.close()


# ============================================================================
# TEST: Reads
# ============================================================================

def test_reference_currency_is_fixed_and_never_fetched(rate_cache, static_provider):
    assert rate_cache.get_rate('USD') == 1.0
    assert rate_cache.wait_for_refresh(timeout=5)

    assert 'USD' not in static_provider.calls
    assert rate_cache.entry('USD').outcome == RefreshOutcome.FRESH
    assert [d.code for d in rate_cache.currencies] == ['EUR', 'GBP', 'JPY', 'USD']


def test_first_read_returns_a_fresh_rate(rate_cache):
    assert rate_cache.get_rate('EUR') == 1.1
    assert rate_cache.get_rate('eur') == 1.1


def test_relative_rates(rate_cache):
    assert rate_cache.get_rate('EUR', relative_to='GBP') == 1.1 / 1.25
    assert rate_cache.get_rate('USD', relative_to='EUR') == 1.0 / 1.1
    assert rate_cache.get_rate('GBP', relative_to='GBP') == 1.0


def test_reads_after_a_sweep_come_from_the_cache(rate_cache, static_provider):
    rate_cache.get_rate('EUR')
    assert rate_cache.wait_for_refresh(timeout=5)
    static_provider.calls.clear()

    assert rate_cache.get_rate('GBP') == 1.25
    assert rate_cache.get_rate('JPY', relative_to='EUR') == 0.0075 / 1.1
    assert static_provider.calls == []


def test_unknown_or_untracked_currency_raises(make_cache, static_provider):
    cache = make_cache(static_provider, ['EUR'])

    with pytest.raises(InvalidCurrencyError, match='not tracked'):
        cache.get_rate('GBP')
    with pytest.raises(InvalidCurrencyError, match='not supported'):
        cache.get_rate('ZZZ')
    with pytest.raises(InvalidCurrencyError):
        cache.get_rate('EUR', relative_to='GBP')
    assert cache.cycle == 0


# ============================================================================
# TEST: Refresh scheduling
# ============================================================================

def test_forced_sweep_refreshes_every_currency(rate_cache, clock):
    sweep = rate_cache.schedule_refresh(force=True)

    assert sweep.result(timeout=5) == {RefreshOutcome.FRESH: 3}
    assert rate_cache.cycle == 1
    assert not rate_cache.is_refreshing()
    assert rate_cache.next_refresh_at == clock() + 60
    for entry in rate_cache.entries():
        assert entry.is_valid
        assert entry.refreshed_this_cycle
        assert entry.outcome == RefreshOutcome.FRESH
    assert rate_cache.entry('EUR').updated_at is not None


def test_concurrent_readers_start_a_single_sweep(rate_cache, clock):
    codes = ['EUR', 'GBP', 'JPY', 'USD'] * 10
    expected = {'EUR': 1.1, 'GBP': 1.25, 'JPY': 0.0075, 'USD': 1.0}

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(rate_cache.get_rate, codes))

    assert results == [expected[code] for code in codes]
    assert rate_cache.wait_for_refresh(timeout=5)
    assert rate_cache.cycle == 1

    # Still inside the interval
    assert rate_cache.schedule_refresh() is None
    assert rate_cache.cycle == 1

    clock.advance(61)
    rate_cache.get_rate('GBP')
    assert rate_cache.wait_for_refresh(timeout=5)
    assert rate_cache.cycle == 2


def test_readers_never_see_the_previous_cycle(rate_cache, static_provider, clock):
    assert rate_cache.get_rate('EUR') == 1.1
    assert rate_cache.wait_for_refresh(timeout=5)

    static_provider.rates['EUR'] = 1.2
    clock.advance(61)

    assert rate_cache.get_rate('EUR') == 1.2


def test_reader_fetches_inline_while_sweep_is_behind(make_cache):
    fetcher = BlockingFetcher({'EUR': 1.1, 'GBP': 1.25})
    cache = make_cache(fetcher, ['EUR', 'GBP'], max_workers=2)
    reader = threading.current_thread().name

    assert cache.get_rate('EUR') == 1.1
    assert cache.is_refreshing()
    assert (reader, 'EUR') in fetcher.calls

    # Already refreshed this cycle, so no second point-fetch
    assert cache.get_rate('EUR') == 1.1
    assert fetcher.calls.count((reader, 'EUR')) == 1

    fetcher.release.set()
    assert cache.wait_for_refresh(timeout=5)
    assert not cache.is_refreshing()
    assert cache.entry('GBP').rate == 1.25


def test_wait_for_refresh_without_a_sweep(rate_cache):
    assert rate_cache.wait_for_refresh(timeout=0)


def test_wait_for_refresh_times_out(make_cache):
    fetcher = BlockingFetcher({'EUR': 1.1})
    cache = make_cache(fetcher, ['EUR'])

    cache.schedule_refresh(force=True)

    assert not cache.wait_for_refresh(timeout=0.05)
    fetcher.release.set()
    assert cache.wait_for_refresh(timeout=5)


def test_seconds_until_refresh_counts_down(rate_cache, clock):
    rate_cache.schedule_refresh(force=True).result(timeout=5)

    assert rate_cache.seconds_until_refresh() == 60
    clock.advance(30)
    assert rate_cache.seconds_until_refresh() == 30
    clock.advance(40)
    assert rate_cache.seconds_until_refresh() == 0.0


def test_refresh_interval_accepts_seconds_or_timedelta(rate_cache, static_provider):
    rate_cache.refresh_interval = timedelta(minutes=5)
    assert rate_cache.refresh_interval == timedelta(seconds=300)

    rate_cache.refresh_interval = 30
    assert rate_cache.refresh_interval == timedelta(seconds=30)

    with pytest.raises(ValueError):
        rate_cache.refresh_interval = 0
    with pytest.raises(ValueError):
        ExchangeRateCache(static_provider, ['EUR'], refresh_interval=-1)


def test_closed_cache_stops_scheduling(rate_cache):
    rate_cache.close()

    assert rate_cache.schedule_refresh() is None
    with pytest.raises(CacheError):
        rate_cache.schedule_refresh(force=True)


# ============================================================================
# TEST: Fetch failures
# ============================================================================

def test_unreachable_host_keeps_last_known_rate(make_cache):
    fetcher = Mock()
    fetcher.fetch_rate.side_effect = [1.1, HostUnreachableError('down')]
    cache = make_cache(fetcher, ['EUR'])

    assert cache.schedule_refresh(force=True).result(timeout=5) == {RefreshOutcome.FRESH: 1}
    assert cache.schedule_refresh(force=True).result(timeout=5) == {RefreshOutcome.UNREACHABLE: 1}

    entry = cache.entry('EUR')
    assert entry.rate == 1.1
    assert entry.is_valid
    assert entry.outcome == RefreshOutcome.UNREACHABLE
    assert entry.error == 'down'
    assert not entry.refreshed_this_cycle
    assert cache.get_rate('EUR') == 1.1
    assert fetcher.fetch_rate.call_count == 2


def test_malformed_quote_marks_currency_invalid(make_cache):
    cache = make_cache(StaticRateProvider({'EUR': 1.1}), ['EUR', 'XAU'])

    summary = cache.schedule_refresh(force=True).result(timeout=5)

    assert summary == {RefreshOutcome.FRESH: 1, RefreshOutcome.DELISTED: 1}
    entry = cache.entry('XAU')
    assert entry.rate == 0.0
    assert not entry.is_valid
    assert entry.refreshed_this_cycle
    assert entry.outcome == RefreshOutcome.DELISTED
    assert not cache.is_valid('XAU')
    assert cache.is_valid('EUR')


def test_converting_into_an_invalid_currency_yields_zero(make_cache):
    cache = make_cache(StaticRateProvider({'EUR': 1.1}), ['EUR', 'XAU'])
    cache.schedule_refresh(force=True).result(timeout=5)

    assert cache.get_rate('EUR', relative_to='XAU') == 0.0
    assert cache.get_rate('XAU', relative_to='EUR') == 0.0
    assert CurrencyValue.of('EUR', 10, rates=cache).convert('XAU').amount == Decimal('0')


@pytest.mark.parametrize('error', [RuntimeError('boom'), ProviderError('boom')])
def test_other_failures_are_recorded_not_raised(make_cache, error):
    fetcher = Mock()
    fetcher.fetch_rate.side_effect = error
    cache = make_cache(fetcher, ['EUR'])

    assert cache.get_rate('EUR') == 0.0
    assert cache.wait_for_refresh(timeout=5)

    entry = cache.entry('EUR')
    assert entry.outcome == RefreshOutcome.FAILED
    assert entry.error == 'boom'
    assert entry.is_valid


# ============================================================================
# TEST: get_rate_cache()
# ============================================================================

def test_get_rate_cache_builds_from_settings(monkeypatch):
    settings = Settings(
        RATE_PROVIDER='static',
        STATIC_RATES={'EUR': 1.1},
        RATE_REFRESH_INTERVAL_SECONDS=120,
        RATE_FETCH_WORKERS=3,
    )
    monkeypatch.setattr('infrastructure.cache.rate_cache.get_settings', lambda: settings)
    get_rate_cache.cache_clear()

    try:
        cache = get_rate_cache()

        assert get_rate_cache() is cache
        assert cache.fetcher.name == 'static'
        assert cache.refresh_interval == timedelta(seconds=120)
        assert cache.max_workers == 3
        assert len(cache.currencies) == 158
        cache.close()
    finally:
        get_rate_cache.cache_clear()


def test_currency_without_any_quote_is_not_usable(make_cache):
    fetcher = Mock()
    fetcher.fetch_rate.side_effect = [HostUnreachableError('down'), 1.1]
    cache = make_cache(fetcher, ['EUR'])

    assert not cache.entry('EUR').has_rate
    cache.schedule_refresh(force=True).result(timeout=5)

    assert cache.is_valid('EUR')
    assert not cache.is_usable('EUR')
    assert cache.is_usable('USD')

    cache.schedule_refresh(force=True).result(timeout=5)
    assert cache.is_usable('EUR')


# ============================================================================
# TEST: Fetches that straddle a cycle boundary
# ============================================================================

def test_fetch_from_an_earlier_cycle_does_not_count_for_the_next(make_cache):
    release = threading.Event()
    rates = iter([1.1, 1.2])

    def fetch_rate(code):
        rate = next(rates)
        if rate == 1.1:
            # A new sweep starts while this point-fetch is still in flight
            cache.schedule_refresh(force=True)
        else:
            release.wait(timeout=5)
        return rate

    fetcher = Mock()
    fetcher.fetch_rate.side_effect = fetch_rate
    cache = make_cache(fetcher, ['EUR'])

    entry = cache.refresh('EUR')

    assert entry.rate == 1.1
    assert entry.fetched_cycle == 0
    assert not entry.refreshed_this_cycle
    assert cache.cycle == 1

    release.set()
    assert cache.wait_for_refresh(timeout=5)
    entry = cache.entry('EUR')
    assert entry.rate == 1.2
    assert entry.fetched_cycle == 1
    assert entry.refreshed_this_cycle
    assert fetcher.fetch_rate.call_count == 2


def test_late_result_from_an_earlier_cycle_is_dropped(make_cache):
    started = threading.Event()
    release = threading.Event()

    def fetch_rate(code):
        if threading.current_thread().name.startswith('rate-fetch'):
            return 1.2
        started.set()
        release.wait(timeout=5)
        return 1.1

    fetcher = Mock()
    fetcher.fetch_rate.side_effect = fetch_rate
    cache = make_cache(fetcher, ['EUR'])

    with ThreadPoolExecutor(max_workers=1) as pool:
        # Slow point-fetch that starts before any sweep
        slow = pool.submit(cache.refresh, 'EUR')
        assert started.wait(timeout=5)
        cache.schedule_refresh(force=True).result(timeout=5)
        release.set()
        late = slow.result(timeout=5)

    assert late.rate == 1.2
    assert late.fetched_cycle == 1
    assert cache.entry('EUR').rate == 1.2
    assert cache.entry('EUR').refreshed_this_cycle
