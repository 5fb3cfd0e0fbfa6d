import logging
import threading
import time
from collections import Counter
from collections.abc import Callable, Iterable
from concurrent import futures
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from functools import lru_cache

from config.settings import get_settings
from domain.exceptions.currency import (
	CacheError,
	HostUnreachableError,
	InvalidCurrencyError,
	MalformedQuoteError,
)
from domain.models.currency import CurrencyDescriptor, RateEntry, RefreshOutcome
from domain.models.registry import CURRENCIES, REFERENCE_CODE, get_currency
from infrastructure.providers import RateFetcher, create_rate_fetcher

logger = logging.getLogger(__name__)


class ExchangeRateCache:
	"""
	Process-wide cache of exchange rates, all expressed in reference currency (USD) units.

	Once the refresh deadline passes, the next reader starts a background sweep over every
	tracked currency and carries on with whatever is cached. While a sweep is running, a
	reader asking for a currency the sweep has not reached yet fetches that one currency
	inline, so it never sees a rate older than the current cycle.
	"""

	def __init__(
		self,
		fetcher: RateFetcher,
		currencies: Iterable[CurrencyDescriptor | str] | None = None,
		refresh_interval: timedelta | float = timedelta(hours=1),
		max_workers: int = 8,
		clock: Callable[[], float] = time.monotonic,
	):
		self.fetcher = fetcher
		self.max_workers = max_workers
		self.refresh_interval = refresh_interval
		self._clock = clock

		if currencies is None:
			currencies = CURRENCIES.values()
		descriptors = [get_currency(c) for c in currencies]
		self._currencies = {d.code: d for d in descriptors}
		self._currencies.setdefault(REFERENCE_CODE, CURRENCIES[REFERENCE_CODE])

		self._entries_lock = threading.Lock()
		self._entries = {code: RateEntry(code=code) for code in self._currencies}
		# The reference currency is never fetched
		self._entries[REFERENCE_CODE] = RateEntry(
			code=REFERENCE_CODE,
			rate=1.0,
			refreshed_this_cycle=True,
			outcome=RefreshOutcome.FRESH,
		)

		self._schedule_lock = threading.Lock()
		self._next_refresh_at = clock()
		self._refreshing = False
		self._cycle = 0
		self._sweep: Future | None = None
		self._closed = False
		self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='rate-sweep')

	@property
	def refresh_interval(self) -> timedelta:
		return timedelta(seconds=self._refresh_interval)

	@refresh_interval.setter
	def refresh_interval(self, value: timedelta | float) -> None:
		seconds = value.total_seconds() if isinstance(value, timedelta) else float(value)
		if seconds <= 0:
			raise ValueError('Refresh interval must be positive')
		self._refresh_interval = seconds

	@property
	def next_refresh_at(self) -> float:
		return self._next_refresh_at

	@property
	def cycle(self) -> int:
		"""Number of sweeps started so far."""
		return self._cycle

	@property
	def currencies(self) -> list[CurrencyDescriptor]:
		return list(self._currencies.values())

	def seconds_until_refresh(self) -> float:
		return max(0.0, self._next_refresh_at - self._clock())

	def _key(self, currency: CurrencyDescriptor | str) -> str:
		code = get_currency(currency).code
		if code not in self._currencies:
			raise InvalidCurrencyError(f'Currency {code} is not tracked by this cache')
		return code

	# Reads

	def get_rate(
		self,
		currency: CurrencyDescriptor | str,
		relative_to: CurrencyDescriptor | str | None = None,
	) -> float:
		if relative_to is not None:
			return self._relative_rate(currency, relative_to)

		code = self._key(currency)
		self.schedule_refresh()

		# Flag before entry: once a sweep is seen as finished, its writes are visible
		refreshing = self.is_refreshing()
		entry = self.entry(code)
		if refreshing and not entry.refreshed_this_cycle:
			entry = self.refresh(code)
		return entry.rate

	def _relative_rate(self, currency, relative_to) -> float:
		code, comparison_code = self._key(currency), self._key(relative_to)
		if code == comparison_code:
			return 1.0

		rate = self.get_rate(code)
		comparison = self.get_rate(comparison_code)
		if comparison == 0.0:
			# Invalid or never quoted: treat like an invalid descriptor
			return 0.0
		return rate / comparison

	def entry(self, currency: CurrencyDescriptor | str) -> RateEntry:
		code = self._key(currency)
		with self._entries_lock:
			return self._entries[code]

	def entries(self) -> list[RateEntry]:
		with self._entries_lock:
			return list(self._entries.values())

	def is_valid(self, currency: CurrencyDescriptor | str) -> bool:
		return self.entry(currency).is_valid

	def is_usable(self, currency: CurrencyDescriptor | str) -> bool:
		"""Valid and actually quoted; a rate of 0 from a failed first fetch is not usable."""
		entry = self.entry(currency)
		return entry.is_valid and entry.has_rate

	def is_refreshing(self) -> bool:
		with self._schedule_lock:
			return self._refreshing

	# Refreshing

	def schedule_refresh(self, force: bool = False) -> Future | None:
		"""Start a sweep if the deadline has passed (or when forced) and return its handle."""
		with self._schedule_lock:
			if self._closed:
				if force:
					raise CacheError('Exchange rate cache is closed')
				return None

			now = self._clock()
			if not force and now < self._next_refresh_at:
				return None

			self._next_refresh_at = now + self._refresh_interval
			self._cycle += 1
			cycle = self._cycle
			self._refreshing = True

			with self._entries_lock:
				for code, entry in self._entries.items():
					if code != REFERENCE_CODE:
						self._entries[code] = replace(entry, refreshed_this_cycle=False)

			logger.info(f'Starting rate sweep #{cycle} over {len(self._entries) - 1} currencies')
			self._sweep = self._executor.submit(self._run_sweep, cycle)
			return self._sweep

	def wait_for_refresh(self, timeout: float | None = None) -> bool:
		"""Block until the latest sweep finishes. Returns False on timeout."""
		sweep = self._sweep
		if sweep is None:
			return True
		done, _ = futures.wait([sweep], timeout=timeout)
		return bool(done)

	def _run_sweep(self, cycle: int) -> dict[RefreshOutcome, int]:
		started = time.monotonic()
		pending = [code for code in self._currencies if code != REFERENCE_CODE]

		try:
			with ThreadPoolExecutor(
				max_workers=self.max_workers, thread_name_prefix='rate-fetch'
			) as pool:
				outcomes = list(pool.map(self._refresh_if_stale, pending))
		finally:
			with self._schedule_lock:
				if self._cycle == cycle:
					self._refreshing = False

		summary = Counter(outcome for outcome in outcomes if outcome is not None)
		logger.info(
			f'Rate sweep #{cycle} finished in {time.monotonic() - started:.2f}s: '
			+ (', '.join(f'{outcome.value}={count}' for outcome, count in summary.items()) or 'nothing stale')
		)
		return dict(summary)

	def _refresh_if_stale(self, code: str) -> RefreshOutcome | None:
		if self.entry(code).refreshed_this_cycle:
			return None
		return self.refresh(code).outcome

	def refresh(self, currency: CurrencyDescriptor | str) -> RateEntry:
		"""Fetch one currency right now. Fetch failures are recorded, never raised."""
		code = self._key(currency)
		if code == REFERENCE_CODE:
			return self.entry(code)

		with self._schedule_lock:
			cycle = self._cycle

		try:
			rate = self.fetcher.fetch_rate(code)
		except HostUnreachableError as e:
			logger.error(f'Rate refresh for {code} failed, keeping last known rate: {e}')
			return self._update(code, outcome=RefreshOutcome.UNREACHABLE, error=str(e))
		except MalformedQuoteError as e:
			logger.warning(f'{code} is no longer quoted, marking it invalid: {e}')
			return self._update(
				code,
				rate=0.0,
				is_valid=False,
				refreshed_this_cycle=True,
				outcome=RefreshOutcome.DELISTED,
				updated_at=datetime.now(UTC),
				error=str(e),
				fetched_cycle=cycle,
			)
		except Exception as e:
			logger.warning(f'Rate refresh for {code} failed: {e}')
			return self._update(code, outcome=RefreshOutcome.FAILED, error=str(e))

		logger.debug(f'Refreshed {code}: {rate}')
		return self._update(
			code,
			rate=rate,
			is_valid=True,
			refreshed_this_cycle=True,
			outcome=RefreshOutcome.FRESH,
			updated_at=datetime.now(UTC),
			error=None,
			fetched_cycle=cycle,
		)

	def _update(self, code: str, **changes) -> RateEntry:
		with self._entries_lock:
			current = self._entries[code]
			fetched_cycle = changes.get('fetched_cycle', self._cycle)
			if fetched_cycle < current.fetched_cycle:
				# A later cycle already stored its rate
				return current
			# The cycle is bumped before its flags are reset under this lock, so a fetch
			# that started in an earlier cycle cannot count for the current one
			if fetched_cycle != self._cycle:
				changes.pop('refreshed_this_cycle', None)
			entry = replace(current, **changes)
			self._entries[code] = entry
			return entry

	def close(self, wait: bool = True) -> None:
		with self._schedule_lock:
			self._closed = True
		self._executor.shutdown(wait=wait)
		self.fetcher.close()


@lru_cache
def get_rate_cache() -> ExchangeRateCache:
	settings = get_settings()
	return ExchangeRateCache(
		fetcher=create_rate_fetcher(settings),
		refresh_interval=settings.RATE_REFRESH_INTERVAL_SECONDS,
		max_workers=settings.RATE_FETCH_WORKERS,
	)
