from collections.abc import Mapping

from domain.exceptions.currency import MalformedQuoteError
from domain.models.registry import REFERENCE_CODE


class StaticRateProvider:
	"""
	Serves a fixed table of rates expressed in reference currency units.

	Useful for:
	- Running without network access
	- Tests that need deterministic rates
	"""

	def __init__(self, rates: Mapping[str, float]):
		self.rates = {code.upper(): float(rate) for code, rate in rates.items()}
		self.rates.setdefault(REFERENCE_CODE, 1.0)
		self.calls: list[str] = []

	@property
	def name(self) -> str:
		return 'static'

	def fetch_rate(self, code: str) -> float:
		self.calls.append(code)
		try:
			return self.rates[code]
		except KeyError as e:
			raise MalformedQuoteError(f'No static rate for {code}') from e

	def close(self) -> None:
		pass
