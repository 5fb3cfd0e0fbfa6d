class CurrencyException(Exception):
	pass


class InvalidCurrencyError(CurrencyException):
	pass


class ProviderError(CurrencyException):
	pass


class HostUnreachableError(ProviderError):
	"""The quote service could not be contacted at all."""


class MalformedQuoteError(ProviderError):
	"""The quote service answered, but not with a usable rate."""


class CacheError(CurrencyException):
	pass


class InvalidAmountError(CurrencyException, ValueError):
	"""An amount that is not a finite decimal number."""
