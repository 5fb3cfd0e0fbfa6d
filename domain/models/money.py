from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Context, Decimal, InvalidOperation
from typing import Protocol

from domain.exceptions.currency import InvalidAmountError
from domain.models.currency import CurrencyDescriptor
from domain.models.registry import REFERENCE_CODE, get_currency
from infrastructure.cache.rate_cache import get_rate_cache

SCALE = 9

_QUANTUM = Decimal(1).scaleb(-SCALE)
_CENT = Decimal('0.01')
_MIN_PRECISION = 100

Currency = CurrencyDescriptor | str
Amount = Decimal | int | float | str


class RateSource(Protocol):
	def get_rate(self, currency: Currency, relative_to: Currency | None = None) -> float: ...


def _context(*operands: Decimal) -> Context:
	"""Context with room for every integer digit of the operands plus the fractional scale."""
	digits = max(operand.adjusted() for operand in operands) + SCALE + 2
	return Context(prec=max(_MIN_PRECISION, digits), rounding=ROUND_HALF_EVEN)


def to_amount(value: Amount) -> Decimal:
	"""Quantize to nine fractional digits with banker's rounding."""
	if isinstance(value, float):
		value = str(value)
	if not isinstance(value, Decimal | int | str):
		raise TypeError(f'Cannot use {type(value).__name__} as an amount')

	try:
		amount = Decimal(value)
	except InvalidOperation as e:
		raise InvalidAmountError(f'Not a decimal amount: {value!r}') from e
	if not amount.is_finite():
		raise InvalidAmountError(f'Amount must be finite, got {value!r}')

	amount = amount.quantize(_QUANTUM, context=_context(amount))
	# No negative zero
	return amount.copy_abs() if amount.is_zero() else amount


class CurrencyValue(ABC):
	"""
	An immutable amount of money in a given currency.

	Every value is anchored to a root: the value it was originally created as. Conversions
	always start again from the root amount instead of from the previous result, so the
	rounding error of a conversion is paid once and never compounds, no matter how many
	times a value is converted back and forth.

	Values are created with ``CurrencyValue.of(...)``, which returns a ``RootValue``; every
	operation returns a new value and leaves the original untouched.
	"""

	currency: CurrencyDescriptor
	amount: Decimal

	@staticmethod
	def of(
		currency: Currency = REFERENCE_CODE,
		amount: Amount = 0,
		rates: RateSource | None = None,
	) -> 'RootValue':
		return RootValue(currency, amount, rates)

	@property
	@abstractmethod
	def source(self) -> 'RootValue': ...

	@property
	def rates(self) -> RateSource:
		return self.source.rates

	@property
	def code(self) -> str:
		return self.currency.code

	@property
	def is_root(self) -> bool:
		return self.source is self

	@property
	def is_debt(self) -> bool:
		return self.amount < 0

	@property
	def is_profit(self) -> bool:
		return self.amount >= 0

	def rate_to(self, target: Currency | None = None) -> float:
		"""Rate of this value's currency against ``target`` (the reference currency by default)."""
		return self.rates.get_rate(self.code, get_currency(target).code if target else None)

	def convert(self, target: Currency) -> 'CurrencyValue':
		target = get_currency(target)
		root = self.source
		return root._derive(target, root._amount_in(target))

	def convert_to_amount(self, target: Currency) -> Decimal:
		return self.source._amount_in(get_currency(target))

	def change_by(self, delta: 'CurrencyValue | Amount', currency: Currency | None = None) -> 'CurrencyValue':
		"""
		Add ``delta`` (a value, or an amount in ``currency``, by default this value's own).

		The change is applied to the root, producing a new root, so later conversions of the
		result start from the changed amount.
		"""
		if isinstance(delta, CurrencyValue):
			if currency is not None:
				raise TypeError('currency cannot be combined with a CurrencyValue delta')
		else:
			delta = RootValue(currency or self.currency, delta, self.rates)

		root = self.source
		change = delta.convert_to_amount(root.currency)
		new_root = RootValue(
			root.currency,
			_context(root.amount, change).add(root.amount, change),
			root.rates,
		)
		return new_root.convert(self.currency)

	def change_to(self, amount: Amount) -> 'RootValue':
		# An explicit overwrite starts a new history
		return RootValue(self.currency, amount, self.rates)

	def to_debt(self) -> 'CurrencyValue':
		if self.is_debt:
			return self
		return self._resign(Decimal.copy_negate)

	def to_profit(self) -> 'CurrencyValue':
		if self.is_profit:
			return self
		return self._resign(Decimal.copy_abs)

	def _resign(self, op) -> 'CurrencyValue':
		root = self.source
		new_root = RootValue(root.currency, op(root.amount), root.rates)
		if self.is_root:
			return new_root
		return DerivedValue(self.currency, op(self.amount), new_root)

	def is_same_amount(self, other: 'CurrencyValue') -> bool:
		return self.source.convert_to_amount(self.currency) == other.source.convert_to_amount(
			self.currency
		)

	# Display

	def display(self) -> str:
		if self.amount.copy_abs() >= _CENT:
			return f'{self.currency.symbol}{self.amount.quantize(_CENT, context=_context(self.amount)):f}'
		return self.display_unrounded()

	def display_unrounded(self) -> str:
		return f'{self.currency.symbol}{self.amount:f}'

	def display_full(self) -> str:
		return f'{self.currency.name} ({self.code}) = {self.display_unrounded()}'

	def __str__(self) -> str:
		return self.display()

	def __repr__(self) -> str:
		return f'{self.__class__.__name__}({self.code} {self.amount:f})'

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, CurrencyValue):
			return NotImplemented
		return self.code == other.code and self.amount == other.amount

	def __hash__(self) -> int:
		return hash((self.code, self.amount))


@dataclass(frozen=True, eq=False, repr=False)
class RootValue(CurrencyValue):
	"""A value that is its own source; its amount is the ground truth for conversions."""

	currency: CurrencyDescriptor
	amount: Decimal
	_rates: RateSource | None = None

	def __post_init__(self):
		object.__setattr__(self, 'currency', get_currency(self.currency))
		object.__setattr__(self, 'amount', to_amount(self.amount))
		if self._rates is None:
			object.__setattr__(self, '_rates', get_rate_cache())

	@property
	def source(self) -> 'RootValue':
		return self

	@property
	def rates(self) -> RateSource:
		return self._rates

	def _amount_in(self, target: CurrencyDescriptor) -> Decimal:
		rate = Decimal(self._rates.get_rate(self.code, target.code))
		# Enough digits for the exact product, rounded once by the quantize
		digits = len(rate.as_tuple().digits) + len(self.amount.as_tuple().digits)
		product = Context(prec=digits).multiply(rate, self.amount)
		return product.quantize(_QUANTUM, context=_context(product))

	def _derive(self, target: CurrencyDescriptor, amount: Decimal) -> CurrencyValue:
		if target.code == self.code:
			return self
		return DerivedValue(target, amount, self)


@dataclass(frozen=True, eq=False, repr=False)
class DerivedValue(CurrencyValue):
	"""A value computed from a root; its amount is for display and is never converted again."""

	currency: CurrencyDescriptor
	amount: Decimal
	root: RootValue

	def __post_init__(self):
		if not isinstance(self.root, RootValue):
			raise TypeError('DerivedValue must be anchored to a RootValue')
		object.__setattr__(self, 'currency', get_currency(self.currency))
		object.__setattr__(self, 'amount', to_amount(self.amount))

	@property
	def source(self) -> RootValue:
		return self.root
