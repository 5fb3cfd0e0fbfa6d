from .responses import (
	ConversionResponse,
	CurrencyStatusResponse,
	ExchangeRateResponse,
	HealthResponse,
	SupportedCurrenciesResponse,
)

__all__ = [
	'ConversionResponse',
	'CurrencyStatusResponse',
	'ExchangeRateResponse',
	'HealthResponse',
	'SupportedCurrenciesResponse',
]
