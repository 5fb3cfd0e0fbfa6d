from typing import Protocol, runtime_checkable


@runtime_checkable
class RateFetcher(Protocol):
	"""Fetches the current rate of a single currency against the reference currency.

	Implementations raise ``HostUnreachableError`` when the quote service cannot be
	contacted, ``MalformedQuoteError`` when the answer is not a usable rate and
	``ProviderError`` for anything else.
	"""

	@property
	def name(self) -> str: ...

	def fetch_rate(self, code: str) -> float: ...

	def close(self) -> None: ...
