from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class CurrencyDescriptor:
	code: str
	name: str
	symbol: str | None = None

	def __post_init__(self):
		if not self.symbol:
			object.__setattr__(self, 'symbol', self.code)

	@property
	def has_symbol(self) -> bool:
		return self.symbol != self.code

	def __str__(self) -> str:
		return self.code


class RefreshOutcome(Enum):
	NEVER_FETCHED = 'never_fetched'
	FRESH = 'fresh'
	UNREACHABLE = 'unreachable'
	DELISTED = 'delisted'
	FAILED = 'failed'


@dataclass(frozen=True)
class RateEntry:
	"""Snapshot of one currency's cached rate, expressed in reference currency units."""

	code: str
	rate: float = 0.0
	is_valid: bool = True
	refreshed_this_cycle: bool = False
	outcome: RefreshOutcome = RefreshOutcome.NEVER_FETCHED
	updated_at: datetime | None = None
	error: str | None = None
	# Sweep cycle the current rate was fetched for
	fetched_cycle: int = 0

	@property
	def has_rate(self) -> bool:
		"""False while no usable quote is stored, e.g. before the first successful fetch."""
		return self.outcome is RefreshOutcome.FRESH or self.rate != 0.0
